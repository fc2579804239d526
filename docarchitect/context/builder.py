"""
Context Builder - Renders every project context source into one prompt block.

Sections, in order:
1. Project header
2. User-provided context
3. Reference documents
4. Interview answers (known questions first, then custom ones)
5. Tech stack
6. Legacy requirements (only when mvpScope wasn't answered)
7. Team context
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .documents import extract_key_sections, read_source_documents
from ..core.config import ContextSettings
from ..project.models import KNOWN_QUESTIONS, MVP_SCOPE_KEY, ProjectConfig
from ..utils.logger import get_logger
from ..utils.naming import format_key

logger = get_logger(__name__)


TRUNCATION_MARKER = "\n\n...[context truncated]"


@dataclass
class ContextOptions:
    """Limits for a single context build."""
    max_length: int = 12000
    include_source_docs: bool = True
    max_per_document: int = 4000
    base_path: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: ContextSettings) -> 'ContextOptions':
        return cls(
            max_length=settings.max_length,
            include_source_docs=settings.include_source_docs,
            max_per_document=settings.max_per_document,
            base_path=settings.base_path,
        )


@dataclass
class BuiltContext:
    """Rendered context plus what went into it."""
    rendered_text: str
    included_sections: List[str] = field(default_factory=list)
    source_filenames: List[str] = field(default_factory=list)
    answered_questions: List[str] = field(default_factory=list)
    truncated: bool = False
    document_errors: List[str] = field(default_factory=list)

    @property
    def total_length(self) -> int:
        return len(self.rendered_text)

    @property
    def has_content(self) -> bool:
        """True when anything beyond the project header was included."""
        return len(self.included_sections) > 1


def _render_answers(config: ProjectConfig) -> tuple[str, List[str]]:
    answers = config.answered_questions
    ordered = [key for key in KNOWN_QUESTIONS if key in answers]
    ordered += [key for key in answers if key not in KNOWN_QUESTIONS]

    text = "".join(f"**{format_key(key)}:**\n{answers[key].strip()}\n\n" for key in ordered)
    return text, ordered


def build_prompt_context(
    config: ProjectConfig,
    options: Optional[ContextOptions] = None,
) -> BuiltContext:
    """
    Build the shared prompt context for a project.

    Args:
        config: Normalized project configuration
        options: Context limits (defaults if None)

    Returns:
        BuiltContext whose text never exceeds ``options.max_length``
    """
    options = options or ContextOptions()

    sections: List[str] = []
    source_filenames: List[str] = []
    answered: List[str] = []
    document_errors: List[str] = []

    text = f"## Project: {config.project_name}\n\n"
    sections.append("Project Header")

    if config.context and config.context.strip():
        text += f"## User-Provided Context\n\n{config.context.strip()}\n\n"
        sections.append("User Context")

    if options.include_source_docs and config.source_documents:
        paths = [p for p in config.source_documents if isinstance(p, str)]
        batch = read_source_documents(paths, options.base_path)
        document_errors = [f"{doc.path}: {doc.error}" for doc in batch.errors]

        if batch.documents:
            text += "## Reference Documents\n"
            for doc in batch.documents:
                source_filenames.append(doc.filename)
                content = doc.content
                if len(content) > options.max_per_document:
                    content = extract_key_sections(content, options.max_per_document)
                text += f"\n### Source: {doc.filename}\n\n{content.strip()}\n"
            text += "\n"
            sections.append("Reference Documents")

    answers_text, answered = _render_answers(config)
    if answered:
        text += f"## Interview Answers\n\n{answers_text}"
        sections.append("Interview Answers")

    if config.tech_stack:
        text += f"## Tech Stack\n\n{', '.join(config.tech_stack)}\n\n"
        sections.append("Tech Stack")

    if config.requirements and MVP_SCOPE_KEY not in answered:
        bullets = "\n".join(f"- {r}" for r in config.requirements)
        text += f"## Requirements\n\n{bullets}\n\n"
        sections.append("Requirements")

    if config.team_context is not None:
        text += f"## Team Context\n\n{config.team_context.summary()}\n\n"
        sections.append("Team Context")

    text = text.strip()
    truncated = False
    if len(text) > options.max_length:
        if options.max_length <= len(TRUNCATION_MARKER):
            text = text[:max(options.max_length, 0)]
        else:
            text = text[:options.max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER
        truncated = True
        logger.info(f"Prompt context truncated to {options.max_length} characters")

    return BuiltContext(
        rendered_text=text,
        included_sections=sections,
        source_filenames=source_filenames,
        answered_questions=answered,
        truncated=truncated,
        document_errors=document_errors,
    )


def build_interactive_context(
    config: ProjectConfig,
    options: Optional[ContextOptions] = None,
) -> str:
    """
    Build the preface for an interactive session.

    Returns an empty string when the config holds nothing beyond a name.
    """
    built = build_prompt_context(config, options)
    if not built.has_content:
        return ""

    return (
        "## Pre-loaded Context\n\n"
        f"{built.rendered_text}\n\n"
        "---\n\n"
        "**Note:** I've provided context above. Please review it and:\n"
        "1. Skip questions that are already answered\n"
        "2. Ask only for missing or unclear information\n"
        "3. Proceed to document generation when you have enough context"
    )
