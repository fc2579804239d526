"""
Pipeline Steps - One step per generated artifact.

A step builds its prompt from the shared context and earlier documents,
makes a single call to the generation service and writes the result to
disk before returning. Service failures raise GenerationError and are not
retried or caught here.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .writer import DocumentWriter
from ..context import prompts
from ..context.documents import extract_key_sections
from ..core.config import ContextSettings, OutputSettings
from ..core.exceptions import GenerationError
from ..core.state import DocumentKind, GeneratedDocument, PipelineState
from ..export.jira import generate_jira_csv
from ..llm.base import BaseLLMClient, LLMMessage
from ..utils.logger import get_logger, LogContext
from ..utils.naming import document_filename, jira_export_filename

logger = get_logger(__name__)


JIRA_EXPORT = "jira"


class BaseStep(ABC):
    """
    Base class for document generation steps.

    Subclasses provide the document kind, system prompt and user prompt;
    this class handles the call, the failure check and persistence.
    """

    kind: DocumentKind
    system_prompt: str = prompts.ARCHITECT_SYSTEM_PROMPT
    subdir: Optional[str] = None

    def __init__(
        self,
        llm_client: BaseLLMClient,
        writer: DocumentWriter,
        context_settings: Optional[ContextSettings] = None,
    ):
        self.llm_client = llm_client
        self.writer = writer
        self.context_settings = context_settings or ContextSettings()

    @property
    def name(self) -> str:
        return self.kind.label

    def should_run(self, state: PipelineState) -> bool:
        """Whether the step generates anything for this state."""
        return True

    @abstractmethod
    def build_prompt(self, state: PipelineState) -> str:
        """Build the user prompt for this step."""
        pass

    def filename(self, state: PipelineState) -> str:
        return document_filename(state.config.project_name, self.kind.suffix, state.run_date)

    def run(self, state: PipelineState) -> PipelineState:
        """
        Run the step.

        Returns:
            New state with this step's document (or None when skipped)

        Raises:
            GenerationError: If the service fails or returns no content
        """
        if not self.should_run(state):
            logger.info(f"Skipping {self.name}")
            return state.with_document(self.kind, None)

        with LogContext(logger, f"Generating {self.name}", project=state.config.project_name):
            prompt = self.build_prompt(state)
            response = self.llm_client.chat(
                [LLMMessage(role="user", content=prompt)],
                system_prompt=self.system_prompt,
            )

            if not response.success:
                raise GenerationError(self.name, response.error_message or "unknown error", response.model_id)
            if response.is_empty:
                raise GenerationError(self.name, "empty response", response.model_id)

            path = self.writer.save(response.content, self.filename(state), self.subdir)

        document = GeneratedDocument(
            kind=self.kind,
            content=response.content,
            path=path,
            generated_at=datetime.now(),
        )
        return state.with_usage(response).with_document(self.kind, document)


class PRDStep(BaseStep):
    """Product Requirements Document."""

    kind = DocumentKind.PRD

    def build_prompt(self, state: PipelineState) -> str:
        return prompts.build_prd_prompt(state.config, state.context, state.run_date)


class TDRStep(BaseStep):
    """Technical Design Review, informed by the PRD."""

    kind = DocumentKind.TDR

    def build_prompt(self, state: PipelineState) -> str:
        return prompts.build_tdr_prompt(
            state.config,
            state.context,
            state.content(DocumentKind.PRD),
            state.run_date,
            prd_excerpt=self.context_settings.tdr_prd_excerpt,
        )


class FrontendTDRStep(BaseStep):
    """
    Frontend Technical Design Review; a no-op unless the project has a
    frontend. ``always_run`` forces generation when the run was started in
    frontend-tdr mode.
    """

    kind = DocumentKind.FRONTEND_TDR
    system_prompt = prompts.FRONTEND_ARCHITECT_SYSTEM_PROMPT

    def __init__(self, *args, always_run: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self.always_run = always_run

    def should_run(self, state: PipelineState) -> bool:
        return self.always_run or state.config.has_frontend

    def build_prompt(self, state: PipelineState) -> str:
        return prompts.build_frontend_tdr_prompt(
            state.config,
            state.context,
            state.content(DocumentKind.PRD),
            state.content(DocumentKind.TDR),
            state.run_date,
            excerpt=self.context_settings.frontend_excerpt,
        )


class StoriesStep(BaseStep):
    """Epics and user stories, from condensed PRD/TDR/Frontend TDR excerpts."""

    kind = DocumentKind.STORIES
    system_prompt = prompts.STORY_BUILDER_SYSTEM_PROMPT

    def __init__(self, *args, output_settings: Optional[OutputSettings] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.subdir = (output_settings or OutputSettings()).stories_subdir

    def document_context(self, state: PipelineState) -> str:
        """Condensed excerpts of the earlier documents, joined into one block."""
        settings = self.context_settings
        parts = []

        prd = state.content(DocumentKind.PRD)
        if prd:
            parts.append(f"## PRD Summary\n{extract_key_sections(prd, settings.stories_prd_excerpt)}")

        tdr = state.content(DocumentKind.TDR)
        if tdr:
            parts.append(f"## TDR Summary\n{extract_key_sections(tdr, settings.stories_tdr_excerpt)}")

        frontend = state.content(DocumentKind.FRONTEND_TDR)
        if frontend:
            parts.append(
                f"## Frontend TDR Summary\n{extract_key_sections(frontend, settings.stories_frontend_excerpt)}"
            )

        return "\n\n".join(parts)

    def build_prompt(self, state: PipelineState) -> str:
        return prompts.build_stories_prompt(state.config, state.context, self.document_context(state))


class JiraExportStep:
    """Writes the Jira CSV; a no-op (None export) without a project key."""

    def __init__(self, writer: DocumentWriter, output_settings: Optional[OutputSettings] = None):
        self.writer = writer
        self.output_settings = output_settings or OutputSettings()

    def run(self, state: PipelineState) -> PipelineState:
        key = state.config.jira_project_key
        stories = state.document(DocumentKind.STORIES)

        if not key or stories is None:
            return state.with_export(JIRA_EXPORT, None)

        csv_text = generate_jira_csv(stories.content, key, state.config.project_name)
        path = self.writer.save(
            csv_text,
            jira_export_filename(key, state.run_date),
            self.output_settings.exports_subdir,
        )
        return state.with_export(JIRA_EXPORT, path)
