"""
Jira CSV export.

Turns a generated stories document into a CSV that Jira's bulk importer
accepts: one row per ``### US-n: Title`` heading.
"""

import re
from typing import List

from ..utils.logger import get_logger

logger = get_logger(__name__)


CSV_HEADERS = ["Issue Type", "Summary", "Description", "Priority", "Story Points", "Labels"]
LABEL = "auto-generated"

DEFAULT_PRIORITY = "P1"
DEFAULT_POINTS = "5"

JIRA_PRIORITIES = {
    "P0": "Highest",
    "P1": "High",
}
FALLBACK_JIRA_PRIORITY = "Medium"

STORY_PATTERN = re.compile(r"###\s+(US-\d+):\s*(.+?)(?=\n)")


def to_jira_priority(priority: str) -> str:
    """Map P0/P1/P2 to Jira priority names (anything else is Medium)."""
    return JIRA_PRIORITIES.get(priority.upper(), FALLBACK_JIRA_PRIORITY)


def escape_csv_cell(value: str) -> str:
    """Quote a cell, doubling embedded quotes."""
    return '"' + str(value).replace('"', '""') + '"'


def _anchored_search(content: str, story_id: str, pattern: str):
    # Searches from the story id onward across the whole document, so a
    # story without its own value picks up the next story's.
    return re.search(rf"{re.escape(story_id)}[\s\S]*?{pattern}", content, re.IGNORECASE)


def generate_jira_csv(stories_markdown: str, project_key: str, project_name: str) -> str:
    """
    Build the Jira CSV for a stories document.

    Args:
        stories_markdown: Generated stories Markdown
        project_key: Jira project key, used as a summary prefix
        project_name: Project name for the description

    Returns:
        CSV text (header plus at least one row)
    """
    rows: List[List[str]] = []

    # Stories text may not end with a newline; the title pattern needs one.
    content = stories_markdown if stories_markdown.endswith("\n") else stories_markdown + "\n"

    for match in STORY_PATTERN.finditer(content):
        story_id = match.group(1)
        title = match.group(2).strip()

        priority_match = _anchored_search(content, story_id, r"Priority:\**\s*(P[012])")
        priority = priority_match.group(1).upper() if priority_match else DEFAULT_PRIORITY

        points_match = _anchored_search(content, story_id, r"Story Points:\**\s*(\d+)")
        points = points_match.group(1) if points_match else DEFAULT_POINTS

        rows.append([
            "Story",
            f"[{project_key}] {title}",
            f"Generated from {project_name} documentation",
            to_jira_priority(priority),
            points,
            LABEL,
        ])

    if not rows:
        logger.warning("No stories found for Jira export, writing a placeholder row")
        rows.append([
            "Story",
            f"[{project_key}] Initial Setup",
            f"Review generated documentation for {project_name}",
            "High",
            "3",
            LABEL,
        ])

    lines = [",".join(CSV_HEADERS)]
    lines.extend(",".join(escape_csv_cell(cell) for cell in row) for row in rows)
    return "\n".join(lines)
