"""
Config Normalizer - Turns loosely typed project input into a ProjectConfig.

Two input schemas are accepted:

- v1 (legacy): ``description`` + ``requirements`` + ``techStack``
- v2 (flexible): ``context``, ``sourceDocuments``, ``interviewAnswers``, ...

Raw input is first classified into one of three variants, each with its
own conversion. Validation is separate and collects every problem instead
of stopping at the first one.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .models import (
    GenerationMode,
    MVP_SCOPE_KEY,
    ProjectConfig,
    TeamContext,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


V2_FIELDS = ("context", "sourceDocuments", "interviewAnswers", "mode")


# =============================================================================
# Field readers
# =============================================================================

def _string(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    return value if isinstance(value, str) else None


def _list(raw: Mapping[str, Any], key: str) -> List[Any]:
    value = raw.get(key)
    return list(value) if isinstance(value, list) else []


def _string_list(raw: Mapping[str, Any], key: str) -> List[str]:
    return [item for item in _list(raw, key) if isinstance(item, str)]


def _answers(raw: Mapping[str, Any]) -> Dict[str, str]:
    value = raw.get("interviewAnswers")
    if not isinstance(value, Mapping):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def _team_context(raw: Mapping[str, Any]) -> Optional[TeamContext]:
    value = raw.get("teamContext")
    if isinstance(value, Mapping):
        return TeamContext.from_dict(value)
    return None


def fold_legacy_requirements(answers: Dict[str, str], requirements: List[str]) -> Dict[str, str]:
    """
    Fold a legacy requirements list into the interview answers.

    The list becomes a bulleted ``mvpScope`` answer, but only when no
    ``mvpScope`` answer exists: explicit answers always win.

    Returns:
        A new answers dict (the input is not modified)
    """
    folded = dict(answers)
    if not requirements:
        return folded

    existing = folded.get(MVP_SCOPE_KEY)
    if existing and existing.strip():
        return folded

    folded[MVP_SCOPE_KEY] = "Key requirements:\n- " + "\n- ".join(requirements)
    return folded


# =============================================================================
# Input variants
# =============================================================================

@dataclass
class _BaseVariant:
    """Fields every variant shares."""
    project_name: str
    tech_stack: List[str] = field(default_factory=list)
    has_frontend: bool = False
    team_context: Optional[TeamContext] = None
    jira_project_key: Optional[str] = None
    author: Optional[str] = None

    def _common(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "tech_stack": list(self.tech_stack),
            "has_frontend": self.has_frontend,
            "team_context": self.team_context,
            "jira_project_key": self.jira_project_key,
            "author": self.author,
        }


@dataclass
class LegacyConfigV1(_BaseVariant):
    """v1 input: description plus a non-empty requirements list."""
    description: str = ""
    requirements: List[str] = field(default_factory=list)

    def to_project_config(self) -> ProjectConfig:
        return ProjectConfig(
            context=self.description,
            interview_answers=fold_legacy_requirements({}, self.requirements),
            requirements=list(self.requirements),
            **self._common(),
        )


@dataclass
class FlexibleConfigV2(_BaseVariant):
    """v2 input, possibly still carrying legacy description/requirements."""
    context: Optional[str] = None
    source_documents: List[Any] = field(default_factory=list)
    interview_answers: Dict[str, str] = field(default_factory=dict)
    mode: Optional[str] = None
    description: Optional[str] = None
    requirements: List[str] = field(default_factory=list)

    def to_project_config(self) -> ProjectConfig:
        context = self.context
        if not context and self.description is not None:
            context = self.description

        return ProjectConfig(
            context=context,
            source_documents=list(self.source_documents),
            interview_answers=fold_legacy_requirements(self.interview_answers, self.requirements),
            mode=self.mode,
            requirements=list(self.requirements),
            **self._common(),
        )


@dataclass
class MinimalConfig(_BaseVariant):
    """Nothing beyond the shared fields (and maybe a bare description)."""
    description: Optional[str] = None

    def to_project_config(self) -> ProjectConfig:
        return ProjectConfig(context=self.description, **self._common())


ConfigVariant = Union[LegacyConfigV1, FlexibleConfigV2, MinimalConfig]


def classify_config(raw: Mapping[str, Any]) -> ConfigVariant:
    """
    Decide which input schema a raw mapping follows.

    Args:
        raw: Decoded JSON/YAML object

    Returns:
        One of LegacyConfigV1, FlexibleConfigV2, MinimalConfig
    """
    common = dict(
        project_name=_string(raw, "projectName") or "",
        tech_stack=_string_list(raw, "techStack"),
        has_frontend=raw.get("hasFrontend") is True,
        team_context=_team_context(raw),
        jira_project_key=_string(raw, "jiraProjectKey"),
        author=_string(raw, "author"),
    )

    description = _string(raw, "description")
    requirements = _string_list(raw, "requirements")

    if description is not None and requirements and not any(key in raw for key in V2_FIELDS):
        return LegacyConfigV1(description=description, requirements=requirements, **common)

    if any(key in raw for key in V2_FIELDS) or requirements:
        raw_mode = raw.get("mode")
        return FlexibleConfigV2(
            context=_string(raw, "context"),
            source_documents=_list(raw, "sourceDocuments"),
            interview_answers=_answers(raw),
            mode=raw_mode if isinstance(raw_mode, str) else None,
            description=description,
            requirements=requirements,
            **common,
        )

    return MinimalConfig(description=description, **common)


def normalize_config(raw: Union[Mapping[str, Any], ProjectConfig]) -> ProjectConfig:
    """
    Normalize any supported input into a ProjectConfig.

    Normalizing an already-normalized config (or its ``to_dict()``)
    yields the same fields.

    Args:
        raw: Raw mapping or an existing ProjectConfig

    Returns:
        Canonical ProjectConfig

    Raises:
        TypeError: If the input is neither a mapping nor a ProjectConfig
    """
    if isinstance(raw, ProjectConfig):
        raw = raw.to_dict()

    if not isinstance(raw, Mapping):
        raise TypeError(f"Project configuration must be an object, got {type(raw).__name__}")

    variant = classify_config(raw)
    logger.debug(f"Classified project config as {type(variant).__name__}")
    return variant.to_project_config()


def validate_config(config: ProjectConfig) -> List[str]:
    """
    Validate a normalized configuration.

    Returns:
        Human-readable error messages (empty when valid)
    """
    errors: List[str] = []

    if not isinstance(config.project_name, str) or not config.project_name.strip():
        errors.append("Missing required field: projectName")

    has_context = bool(config.context and config.context.strip())
    has_source_docs = bool(config.source_documents)
    has_answers = bool(config.answered_questions)

    if not (has_context or has_source_docs or has_answers):
        errors.append(
            "Configuration needs context. Provide at least one of: "
            "context, sourceDocuments, or interviewAnswers"
        )

    if config.mode and config.mode not in GenerationMode.values():
        errors.append(
            f"Invalid mode: {config.mode}. Valid modes: {', '.join(GenerationMode.values())}"
        )

    for doc_path in config.source_documents:
        if not isinstance(doc_path, str):
            errors.append(f"Invalid sourceDocument path: {doc_path!r}")

    if config.team_context is not None:
        team = config.team_context
        for name, value in (
            ("velocity", team.velocity),
            ("sprintDuration", team.sprint_duration),
            ("teamSize", team.team_size),
        ):
            if value <= 0:
                errors.append(f"teamContext.{name} must be a positive integer, got {value}")

    return errors


def parse_project_config(text: str) -> Dict[str, Any]:
    """
    Parse raw JSON text (file contents or stdin) into a mapping.

    Raises:
        ValueError: If the text is not a JSON object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON configuration: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Project configuration must be a JSON object")

    return data


def load_project_config(path: str | Path) -> Dict[str, Any]:
    """
    Read a project configuration file (JSON, or YAML by extension).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file doesn't contain an object
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")

    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Project configuration must be a mapping: {path}")
        return data

    return parse_project_config(text)
