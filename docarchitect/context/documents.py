"""
Document Reader - Loads existing Markdown/text documents as generation context.

Read failures never raise: each failure is recorded on the returned
SourceDocument so one bad path cannot abort a pipeline run.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..utils.logger import get_logger

logger = get_logger(__name__)


LARGE_FILE_BYTES = 500 * 1024
SUPPORTED_EXTENSIONS = ('.md', '.markdown', '.txt', '.text')
TRUNCATED_MARKER = "\n\n...[truncated]"

# Ordered by priority. Each section runs from its heading to the next
# level-1/level-2 heading or the end of the text.
_SECTION_END = r"(?=^#{1,2}\s|\Z)"
PRIORITY_SECTIONS = [
    re.compile(r"^#\s+.*$", re.MULTILINE),
    re.compile(r"^##\s+(Executive Summary|Overview|Summary)[\s\S]*?" + _SECTION_END, re.MULTILINE | re.IGNORECASE),
    re.compile(r"^##\s+(Problem|Problem Statement)[\s\S]*?" + _SECTION_END, re.MULTILINE | re.IGNORECASE),
    re.compile(r"^##\s+(Goals|Objectives|Success Metrics)[\s\S]*?" + _SECTION_END, re.MULTILINE | re.IGNORECASE),
    re.compile(r"^##\s+(Requirements|Features)[\s\S]*?" + _SECTION_END, re.MULTILINE | re.IGNORECASE),
    re.compile(r"^##\s+(Architecture|System Design)[\s\S]*?" + _SECTION_END, re.MULTILINE | re.IGNORECASE),
    re.compile(r"^##\s+(Tech Stack|Technology)[\s\S]*?" + _SECTION_END, re.MULTILINE | re.IGNORECASE),
]


@dataclass
class SourceDocument:
    """Result of reading a single document."""
    path: str
    filename: str
    content: str = ""
    size: int = 0
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failed(cls, path: str, filename: str, error: str) -> 'SourceDocument':
        return cls(path=path, filename=filename, success=False, error=error)


@dataclass
class SourceDocumentBatch:
    """Result of reading several documents."""
    documents: List[SourceDocument] = field(default_factory=list)
    errors: List[SourceDocument] = field(default_factory=list)
    combined_content: str = ""

    @property
    def total_characters(self) -> int:
        return len(self.combined_content)


def _resolve(path: str, base_path: Optional[Path]) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return (Path(base_path) if base_path else Path.cwd()) / candidate


def read_document(path: str, base_path: Optional[Path] = None) -> SourceDocument:
    """
    Read a single document.

    Args:
        path: File path, absolute or relative to base_path
        base_path: Base directory for relative paths (default: cwd)

    Returns:
        SourceDocument; ``success`` is False and ``error`` set on failure
    """
    resolved = _resolve(path, base_path)
    filename = resolved.name

    if not resolved.exists():
        return SourceDocument.failed(path, filename, f"File not found: {resolved}")

    if not resolved.is_file():
        return SourceDocument.failed(path, filename, f"Not a file: {resolved}")

    try:
        size = resolved.stat().st_size
        if size > LARGE_FILE_BYTES:
            logger.warning(f"Large file ({round(size / 1024)}KB): {filename}")

        content = resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return SourceDocument.failed(path, filename, str(e))

    return SourceDocument(path=path, filename=filename, content=content, size=size)


def read_source_documents(
    paths: Sequence[str],
    base_path: Optional[Path] = None,
) -> SourceDocumentBatch:
    """
    Read several documents and combine the successful ones.

    Each document in the combined text is introduced by a
    ``---`` rule and a ``## Source: <filename>`` heading.
    """
    batch = SourceDocumentBatch()

    for path in paths:
        result = read_document(path, base_path)
        if result.success:
            batch.documents.append(result)
        else:
            batch.errors.append(result)

    parts = [
        f"---\n## Source: {doc.filename}\n\n{doc.content.strip()}"
        for doc in batch.documents
    ]
    batch.combined_content = "\n\n".join(parts)

    if batch.errors:
        logger.warning(f"Failed to read {len(batch.errors)} document(s):")
        for err in batch.errors:
            logger.warning(f"  - {err.path}: {err.error}")

    return batch


def extract_key_sections(content: str, max_length: int = 4000) -> str:
    """
    Condense a Markdown document to its most important sections.

    Content within ``max_length`` is returned unchanged. Otherwise the
    title and the priority sections are collected in order, skipping any
    section that would push the result over the limit. When no priority
    section matches, the text is cut and marked ``...[truncated]``.
    The result never exceeds ``max_length``.
    """
    if len(content) <= max_length:
        return content

    sections: List[str] = []
    current_length = 0

    for pattern in PRIORITY_SECTIONS:
        match = pattern.search(content)
        if not match:
            continue

        section = match.group(0).strip()
        separator = 2 if sections else 0
        if current_length + separator + len(section) <= max_length:
            sections.append(section)
            current_length += separator + len(section)

    if not sections:
        if max_length <= len(TRUNCATED_MARKER):
            return content[:max(max_length, 0)]
        return content[:max_length - len(TRUNCATED_MARKER)] + TRUNCATED_MARKER

    return "\n\n".join(sections)


def is_supported_document_type(path: str | Path) -> bool:
    """Check if a path has a supported document extension."""
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def find_documents(directory: str | Path, recursive: bool = False) -> List[Path]:
    """
    Find supported documents in a directory.

    Returns an empty list when the directory doesn't exist.
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        return []

    results: List[Path] = []
    for entry in sorted(root.iterdir()):
        if entry.is_file() and is_supported_document_type(entry):
            results.append(entry)
        elif entry.is_dir() and recursive:
            results.extend(find_documents(entry, recursive=True))

    return results
