"""
Pipeline State - Immutable state threaded through the generation steps.

Each step receives a PipelineState and returns a new one; nothing is
mutated in place, so a step can never alter a document an earlier step
produced.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from ..project.models import ProjectConfig

if TYPE_CHECKING:
    from ..context.builder import BuiltContext
    from ..llm.base import LLMResponse


class DocumentKind(Enum):
    """Generated document kinds, in pipeline order."""
    PRD = "prd"
    TDR = "tdr"
    FRONTEND_TDR = "frontend-tdr"
    STORIES = "stories"

    @property
    def suffix(self) -> str:
        """Filename suffix, e.g. ``frontend-tdr``."""
        return self.value

    @property
    def label(self) -> str:
        return {
            DocumentKind.PRD: "PRD",
            DocumentKind.TDR: "TDR",
            DocumentKind.FRONTEND_TDR: "Frontend TDR",
            DocumentKind.STORIES: "Stories",
        }[self]

    @property
    def result_key(self) -> str:
        """Key used in the pipeline result's ``documents`` object."""
        return {
            DocumentKind.PRD: "prd",
            DocumentKind.TDR: "tdr",
            DocumentKind.FRONTEND_TDR: "frontendTdr",
            DocumentKind.STORIES: "stories",
        }[self]


@dataclass(frozen=True)
class GeneratedDocument:
    """A document produced and persisted by one step."""
    kind: DocumentKind
    content: str
    path: Path
    generated_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class PipelineStats:
    """Generation service usage for a run."""
    llm_calls: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0

    def add(self, response: 'LLMResponse') -> 'PipelineStats':
        return PipelineStats(
            llm_calls=self.llm_calls + 1,
            total_input_tokens=self.total_input_tokens + (response.input_tokens or 0),
            total_output_tokens=self.total_output_tokens + (response.output_tokens or 0),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "llmCalls": self.llm_calls,
            "inputTokens": self.total_input_tokens,
            "outputTokens": self.total_output_tokens,
        }


@dataclass(frozen=True)
class PipelineState:
    """
    Everything a step may read, plus what earlier steps produced.

    ``documents`` maps each kind that has run to its document, or to None
    when the step ran as a no-op (Frontend TDR without a frontend).
    """
    config: ProjectConfig
    run_date: date
    context: 'BuiltContext'
    documents: Mapping[DocumentKind, Optional[GeneratedDocument]] = field(default_factory=dict)
    exports: Mapping[str, Optional[Path]] = field(default_factory=dict)
    stats: PipelineStats = field(default_factory=PipelineStats)
    warnings: Tuple[str, ...] = ()

    def document(self, kind: DocumentKind) -> Optional[GeneratedDocument]:
        return self.documents.get(kind)

    def content(self, kind: DocumentKind) -> str:
        """Content of a generated document, or an empty string."""
        doc = self.documents.get(kind)
        return doc.content if doc else ""

    def with_document(self, kind: DocumentKind, document: Optional[GeneratedDocument]) -> 'PipelineState':
        documents: Dict[DocumentKind, Optional[GeneratedDocument]] = dict(self.documents)
        documents[kind] = document
        return replace(self, documents=documents)

    def with_export(self, name: str, path: Optional[Path]) -> 'PipelineState':
        exports = dict(self.exports)
        exports[name] = path
        return replace(self, exports=exports)

    def with_usage(self, response: 'LLMResponse') -> 'PipelineState':
        return replace(self, stats=self.stats.add(response))

    def with_warning(self, message: str) -> 'PipelineState':
        return replace(self, warnings=self.warnings + (message,))
