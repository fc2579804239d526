"""
Pipeline module - Step-by-step document generation.
"""

from .writer import DocumentWriter
from .steps import (
    BaseStep,
    PRDStep,
    TDRStep,
    FrontendTDRStep,
    StoriesStep,
    JiraExportStep,
    JIRA_EXPORT,
)
from .orchestrator import (
    DocumentPipeline,
    PipelineResult,
    build_summary_message,
    run_pipeline,
)

__all__ = [
    # Persistence
    'DocumentWriter',
    # Steps
    'BaseStep',
    'PRDStep',
    'TDRStep',
    'FrontendTDRStep',
    'StoriesStep',
    'JiraExportStep',
    'JIRA_EXPORT',
    # Orchestration
    'DocumentPipeline',
    'PipelineResult',
    'build_summary_message',
    'run_pipeline',
]
