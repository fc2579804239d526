"""
Document Pipeline - Orchestrates a full generation run.

Flow:
1. Normalize and validate the project configuration
2. Build the shared prompt context once
3. Run the selected steps in fixed order:
   PRD -> TDR -> Frontend TDR -> Stories -> Jira export
4. Extract story metrics and plan sprints from the stories text

Steps run strictly one after another. A GenerationError from any step
aborts the run; documents already written stay on disk.
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .steps import (
    BaseStep,
    FrontendTDRStep,
    JIRA_EXPORT,
    JiraExportStep,
    PRDStep,
    StoriesStep,
    TDRStep,
)
from .writer import DocumentWriter
from ..context.builder import ContextOptions, build_prompt_context
from ..core.config import AppConfig
from ..core.exceptions import ConfigurationError
from ..core.state import DocumentKind, PipelineState, PipelineStats
from ..llm import BaseLLMClient, client_from_settings
from ..project.models import GenerationMode, ProjectConfig
from ..project.normalizer import normalize_config, validate_config
from ..stories.extraction import metrics_from_breakdown, parse_story_breakdown
from ..stories.models import SprintPlan, StoryBreakdown, StoryMetrics
from ..stories.planner import plan_sprints
from ..utils.logger import get_logger, log_json, LogContext

logger = get_logger(__name__)


ProgressCallback = Callable[[str], None]

MODE_STAGES = {
    GenerationMode.ALL: [DocumentKind.PRD, DocumentKind.TDR, DocumentKind.FRONTEND_TDR, DocumentKind.STORIES],
    GenerationMode.PRD: [DocumentKind.PRD],
    GenerationMode.TDR: [DocumentKind.TDR],
    GenerationMode.FRONTEND_TDR: [DocumentKind.FRONTEND_TDR],
    GenerationMode.STORIES: [DocumentKind.STORIES],
}


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""
    success: bool
    documents: Dict[DocumentKind, Optional[Path]] = field(default_factory=dict)
    exports: Dict[str, Optional[Path]] = field(default_factory=dict)
    metrics: Optional[StoryMetrics] = None
    breakdown: Optional[StoryBreakdown] = None
    sprint_plan: Optional[SprintPlan] = None
    message: str = ""
    stats: PipelineStats = field(default_factory=PipelineStats)
    warnings: List[str] = field(default_factory=list)

    @property
    def estimated_sprints(self) -> Optional[int]:
        if self.metrics is None or self.sprint_plan is None:
            return None
        return self.metrics.estimated_sprints(self.sprint_plan.velocity)

    def to_dict(self) -> Dict[str, Any]:
        """Render the pipeline output contract."""
        def as_str(path: Optional[Path]) -> Optional[str]:
            return str(path) if path is not None else None

        summary = None
        if self.metrics is not None:
            summary = self.metrics.to_dict()
            summary["sprints"] = self.sprint_plan.sprint_count if self.sprint_plan else 0

        return {
            "success": self.success,
            "documents": {kind.result_key: as_str(self.documents.get(kind)) for kind in DocumentKind},
            "exports": {JIRA_EXPORT: as_str(self.exports.get(JIRA_EXPORT))},
            "summary": summary,
            "sprintPlan": self.sprint_plan.to_list() if self.sprint_plan else [],
            "message": self.message,
        }


class DocumentPipeline:
    """
    Runs the document generation steps for one project.

    Example:
        pipeline = DocumentPipeline(MockLLMClient(), AppConfig())
        result = pipeline.run({"projectName": "Demo", "context": "build X"})
    """

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient] = None,
        settings: Optional[AppConfig] = None,
        run_date: Optional[date] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Args:
            llm_client: Generation client (built from settings if None)
            settings: Application settings
            run_date: Date stamped into filenames and prompts (default: today)
            progress: Optional callback receiving one line per stage
        """
        self.settings = settings or AppConfig()
        self.llm_client = llm_client or client_from_settings(self.settings.llm)
        self.run_date = run_date
        self.progress = progress
        self.writer = DocumentWriter(self.settings.output.docs_dir)

    def _report(self, message: str) -> None:
        logger.info(message)
        if self.progress:
            self.progress(message)

    def _steps(self, mode: GenerationMode) -> List[BaseStep]:
        context_settings = self.settings.context
        steps = {
            DocumentKind.PRD: PRDStep(self.llm_client, self.writer, context_settings),
            DocumentKind.TDR: TDRStep(self.llm_client, self.writer, context_settings),
            DocumentKind.FRONTEND_TDR: FrontendTDRStep(
                self.llm_client,
                self.writer,
                context_settings,
                always_run=mode == GenerationMode.FRONTEND_TDR,
            ),
            DocumentKind.STORIES: StoriesStep(
                self.llm_client,
                self.writer,
                context_settings,
                output_settings=self.settings.output,
            ),
        }
        return [steps[kind] for kind in MODE_STAGES[mode]]

    def prepare(self, raw_config: Union[Mapping[str, Any], ProjectConfig]) -> ProjectConfig:
        """
        Normalize and validate a configuration.

        Raises:
            ConfigurationError: With every validation message
        """
        config = normalize_config(raw_config)
        errors = validate_config(config)
        if errors:
            raise ConfigurationError(errors)
        return config

    def run(self, raw_config: Union[Mapping[str, Any], ProjectConfig]) -> PipelineResult:
        """
        Run the pipeline.

        Raises:
            ConfigurationError: Before any step runs, if the config is invalid
            GenerationError: If a step's generation call fails
        """
        config = self.prepare(raw_config)
        mode = config.generation_mode
        run_date = self.run_date or date.today()

        with LogContext(logger, "Document pipeline", project=config.project_name, mode=mode.value):
            built = build_prompt_context(config, ContextOptions.from_settings(self.settings.context))
            state = PipelineState(config=config, run_date=run_date, context=built)
            for error in built.document_errors:
                state = state.with_warning(f"Source document skipped: {error}")

            steps = self._steps(mode)
            total = len(steps) + (1 if DocumentKind.STORIES in MODE_STAGES[mode] else 0)

            for number, step in enumerate(steps, start=1):
                if step.should_run(state):
                    self._report(f"Step {number}/{total}: Generating {step.name}...")
                else:
                    self._report(f"Step {number}/{total}: Skipping {step.name}")
                state = step.run(state)

            if DocumentKind.STORIES in MODE_STAGES[mode]:
                if config.jira_project_key:
                    self._report(f"Step {total}/{total}: Exporting Jira CSV...")
                else:
                    self._report(f"Step {total}/{total}: Skipping Jira export (no jiraProjectKey provided)")
                state = JiraExportStep(self.writer, self.settings.output).run(state)

            result = self._summarize(state)

        return result

    def _summarize(self, state: PipelineState) -> PipelineResult:
        """Metrics, sprint plan and the human-readable message."""
        metrics = None
        breakdown = None
        sprint_plan = None

        stories = state.document(DocumentKind.STORIES)
        if stories is not None:
            breakdown = parse_story_breakdown(stories.content)
            metrics = metrics_from_breakdown(breakdown, stories.content)
            sprint_plan = plan_sprints(
                breakdown.stories,
                breakdown.epics,
                velocity=state.config.team.velocity,
                strategy=self.settings.planning.dependency_ordering,
            )

        result = PipelineResult(
            success=True,
            documents={kind: (doc.path if doc else None) for kind, doc in state.documents.items()},
            exports=dict(state.exports),
            metrics=metrics,
            breakdown=breakdown,
            sprint_plan=sprint_plan,
            stats=state.stats,
            warnings=list(state.warnings),
        )
        result.message = build_summary_message(result, state.config.team.velocity)
        log_json(logger, "Pipeline result", result.to_dict())
        return result


def build_summary_message(result: PipelineResult, velocity: int) -> str:
    """Human-readable run summary: generated files, then story metrics."""
    lines = ["Documents Generated:"]
    for kind in DocumentKind:
        path = result.documents.get(kind)
        if path is not None:
            lines.append(f"  {kind.label}: {path}")
    jira = result.exports.get(JIRA_EXPORT)
    if jira is not None:
        lines.append(f"  Jira CSV: {jira}")

    if result.metrics is not None:
        lines.extend([
            "",
            "Summary:",
            f"  - Epics: {result.metrics.epics_count}",
            f"  - User Stories: {result.metrics.stories_count}",
            f"  - Total Story Points: {result.metrics.total_points}",
            f"  - Estimated Sprints: {result.metrics.estimated_sprints(velocity)}",
        ])

    return "\n".join(lines)


def run_pipeline(
    raw_config: Union[Mapping[str, Any], ProjectConfig],
    settings: Optional[AppConfig] = None,
    llm_client: Optional[BaseLLMClient] = None,
    run_date: Optional[date] = None,
) -> PipelineResult:
    """Convenience wrapper: build a DocumentPipeline and run it once."""
    pipeline = DocumentPipeline(llm_client=llm_client, settings=settings, run_date=run_date)
    return pipeline.run(raw_config)
