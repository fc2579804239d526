"""
Context module - Source documents, prompt context and prompt templates.
"""

from .documents import (
    SourceDocument,
    SourceDocumentBatch,
    read_document,
    read_source_documents,
    extract_key_sections,
    is_supported_document_type,
    find_documents,
)
from .builder import (
    ContextOptions,
    BuiltContext,
    build_prompt_context,
    build_interactive_context,
)
from .prompts import (
    ARCHITECT_SYSTEM_PROMPT,
    FRONTEND_ARCHITECT_SYSTEM_PROMPT,
    STORY_BUILDER_SYSTEM_PROMPT,
    DEFINITION_OF_DONE,
    filter_frontend_tech,
    build_prd_prompt,
    build_tdr_prompt,
    build_frontend_tdr_prompt,
    build_stories_prompt,
)

__all__ = [
    # Documents
    'SourceDocument',
    'SourceDocumentBatch',
    'read_document',
    'read_source_documents',
    'extract_key_sections',
    'is_supported_document_type',
    'find_documents',
    # Builder
    'ContextOptions',
    'BuiltContext',
    'build_prompt_context',
    'build_interactive_context',
    # Prompts
    'ARCHITECT_SYSTEM_PROMPT',
    'FRONTEND_ARCHITECT_SYSTEM_PROMPT',
    'STORY_BUILDER_SYSTEM_PROMPT',
    'DEFINITION_OF_DONE',
    'filter_frontend_tech',
    'build_prd_prompt',
    'build_tdr_prompt',
    'build_frontend_tdr_prompt',
    'build_stories_prompt',
]
