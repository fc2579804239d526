"""
Project configuration models.

ProjectConfig is the canonical, normalized description of the project a
pipeline run documents. It is produced by the normalizer from loosely
typed JSON input (see normalizer.py) and never read from the environment.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_VELOCITY = 20
DEFAULT_SPRINT_DURATION = 2
DEFAULT_TEAM_SIZE = 4
DEFAULT_AUTHOR = "Document Architect"

MVP_SCOPE_KEY = "mvpScope"


class GenerationMode(Enum):
    """Which documents a run generates."""
    PRD = "PRD"
    TDR = "TDR"
    FRONTEND_TDR = "FRONTEND_TDR"
    STORIES = "STORIES"
    ALL = "ALL"

    @classmethod
    def values(cls) -> List[str]:
        return [mode.value for mode in cls]


# Known interview questions, grouped by the document they mostly feed.
PRD_QUESTIONS = ["problem", "targetUser", "successMetrics", "mvpScope", "businessContext"]
TDR_QUESTIONS = ["architecture", "security", "scale", "deployment", "integrations"]
FRONTEND_QUESTIONS = [
    "renderingStrategy",
    "stateManagement",
    "bundleStrategy",
    "performanceTargets",
    "accessibility",
]
STORY_QUESTIONS = ["sprintPlanning", "definitionOfDone", "technicalConstraints"]

KNOWN_QUESTIONS = PRD_QUESTIONS + TDR_QUESTIONS + FRONTEND_QUESTIONS + STORY_QUESTIONS


@dataclass
class TeamContext:
    """Team parameters used for story sizing and sprint planning."""
    velocity: int = DEFAULT_VELOCITY            # story points per sprint
    sprint_duration: int = DEFAULT_SPRINT_DURATION  # weeks
    team_size: int = DEFAULT_TEAM_SIZE          # engineers

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TeamContext':
        """
        Build from camelCase or snake_case keys.

        Missing or non-integer values fall back to the defaults.
        """
        def pick(*keys: str, default: int) -> int:
            for key in keys:
                value = data.get(key)
                if isinstance(value, int) and not isinstance(value, bool):
                    return value
            return default

        return cls(
            velocity=pick("velocity", default=DEFAULT_VELOCITY),
            sprint_duration=pick("sprintDuration", "sprint_duration", default=DEFAULT_SPRINT_DURATION),
            team_size=pick("teamSize", "team_size", default=DEFAULT_TEAM_SIZE),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "velocity": self.velocity,
            "sprintDuration": self.sprint_duration,
            "teamSize": self.team_size,
        }

    def summary(self) -> str:
        """One-line, pipe-joined summary used in prompt context."""
        return " | ".join([
            f"Velocity: {self.velocity} points/sprint",
            f"Sprint: {self.sprint_duration} weeks",
            f"Team Size: {self.team_size} engineers",
        ])


@dataclass
class ProjectConfig:
    """
    Canonical project description.

    A config is usable only when at least one of context, source
    documents or interview answers carries content; validate_config()
    checks that and the other invariants.
    """
    project_name: str
    context: Optional[str] = None
    source_documents: List[Any] = field(default_factory=list)
    interview_answers: Dict[str, str] = field(default_factory=dict)
    tech_stack: List[str] = field(default_factory=list)
    has_frontend: bool = False
    team_context: Optional[TeamContext] = None
    jira_project_key: Optional[str] = None
    author: Optional[str] = None
    mode: Optional[str] = None

    # Legacy v1 list; normally already folded into interview_answers
    requirements: List[str] = field(default_factory=list)

    @property
    def team(self) -> TeamContext:
        """Team context with defaults applied."""
        return self.team_context or TeamContext()

    @property
    def author_name(self) -> str:
        return self.author or DEFAULT_AUTHOR

    @property
    def generation_mode(self) -> GenerationMode:
        """Resolved mode; ALL when unset. Call only on validated configs."""
        if not self.mode:
            return GenerationMode.ALL
        return GenerationMode(self.mode)

    @property
    def answered_questions(self) -> Dict[str, str]:
        """Interview answers that carry non-blank text."""
        return {
            key: value
            for key, value in self.interview_answers.items()
            if isinstance(value, str) and value.strip()
        }

    def to_dict(self) -> Dict[str, Any]:
        """Render the camelCase pipeline input contract."""
        data: Dict[str, Any] = {"projectName": self.project_name}

        if self.context is not None:
            data["context"] = self.context
        if self.source_documents:
            data["sourceDocuments"] = list(self.source_documents)
        if self.interview_answers:
            data["interviewAnswers"] = dict(self.interview_answers)
        if self.mode is not None:
            data["mode"] = self.mode
        if self.tech_stack:
            data["techStack"] = list(self.tech_stack)
        data["hasFrontend"] = self.has_frontend
        if self.team_context is not None:
            data["teamContext"] = self.team_context.to_dict()
        if self.jira_project_key is not None:
            data["jiraProjectKey"] = self.jira_project_key
        if self.author is not None:
            data["author"] = self.author
        if self.requirements:
            data["requirements"] = list(self.requirements)

        return data
