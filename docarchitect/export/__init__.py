"""
Export module - Issue-tracker exports of generated stories.
"""

from .jira import (
    CSV_HEADERS,
    generate_jira_csv,
    to_jira_priority,
    escape_csv_cell,
)

__all__ = [
    'CSV_HEADERS',
    'generate_jira_csv',
    'to_jira_priority',
    'escape_csv_cell',
]
