"""
Naming helpers for generated files and human-readable labels.
"""

import re
from datetime import date
from typing import Optional


_UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9_-]')


def sanitize_filename(name: str) -> str:
    """
    Make a project name safe to use in a filename.

    Every character outside ``[A-Za-z0-9_-]`` is replaced by a hyphen,
    one for one, and the result is lowercased.

    Example:
        sanitize_filename("My App! 2.0")  # "my-app--2-0"
    """
    return _UNSAFE_FILENAME_CHARS.sub('-', name).lower()


def get_timestamp(day: Optional[date] = None) -> str:
    """Return the ISO date (YYYY-MM-DD) used in generated filenames."""
    return (day or date.today()).isoformat()


def document_filename(project_name: str, suffix: str, day: Optional[date] = None, extension: str = "md") -> str:
    """
    Build a generated document filename.

    Args:
        project_name: Raw project name (sanitized here)
        suffix: Document suffix (e.g. "prd", "frontend-tdr")
        day: Generation date (default: today)
        extension: File extension without the dot

    Returns:
        Filename like ``demo-prd-2026-01-12.md``
    """
    return f"{sanitize_filename(project_name)}-{suffix}-{get_timestamp(day)}.{extension}"


def jira_export_filename(project_key: str, day: Optional[date] = None) -> str:
    """Filename for the issue-tracker CSV export, keyed by the lowercased project key."""
    return f"{project_key.lower()}-stories-jira-{get_timestamp(day)}.csv"


def format_key(key: str) -> str:
    """
    Convert a camelCase or snake_case key to a Title Case label.

    Examples:
        format_key("successMetrics")  # "Success Metrics"
        format_key("target_user")     # "Target User"
    """
    if not key:
        return ""

    text = re.sub(r'([A-Z])', r' \1', key)
    text = text.replace('_', ' ')
    text = re.sub(r'\b\w', lambda m: m.group(0).upper(), text)
    return re.sub(r' {2,}', ' ', text).strip()
