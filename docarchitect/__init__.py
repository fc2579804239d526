"""
Document Architect - Generate PRD, TDR, frontend TDR and user stories from a project config.

Main modules:
- project: Normalize and validate project configurations
- context: Source documents, prompt context and prompt templates
- llm: Generation service clients
- pipeline: Step-by-step generation and orchestration
- stories: Story metrics, parsing and sprint planning
- export: Jira CSV export
- cli: Command-line interface
"""

__version__ = "1.0.0"

from .pipeline import DocumentPipeline, PipelineResult, run_pipeline

__all__ = [
    'DocumentPipeline',
    'PipelineResult',
    'run_pipeline',
    '__version__',
]
