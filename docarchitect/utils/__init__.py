"""
Utilities module - Logging and naming helpers.
"""

from .naming import (
    sanitize_filename,
    get_timestamp,
    document_filename,
    jira_export_filename,
    format_key,
)
from .logger import (
    setup_logging,
    get_logger,
    LogContext,
    log_json,
)

__all__ = [
    # Naming
    'sanitize_filename',
    'get_timestamp',
    'document_filename',
    'jira_export_filename',
    'format_key',
    # Logging
    'setup_logging',
    'get_logger',
    'LogContext',
    'log_json',
]
