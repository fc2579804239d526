"""
Core module - Settings, pipeline state and error types.
"""

from .config import (
    LLMSettings,
    ContextSettings,
    OutputSettings,
    PlanningSettings,
    LoggingConfig,
    AppConfig,
    LLMProvider,
    DependencyOrdering,
    get_default_config,
    load_config,
)
from .exceptions import (
    DocArchitectError,
    ConfigurationError,
    GenerationError,
)
from .state import (
    DocumentKind,
    GeneratedDocument,
    PipelineStats,
    PipelineState,
)

__all__ = [
    # Config classes
    'LLMSettings',
    'ContextSettings',
    'OutputSettings',
    'PlanningSettings',
    'LoggingConfig',
    'AppConfig',
    # Config enums
    'LLMProvider',
    'DependencyOrdering',
    # Config functions
    'get_default_config',
    'load_config',
    # Errors
    'DocArchitectError',
    'ConfigurationError',
    'GenerationError',
    # State
    'DocumentKind',
    'GeneratedDocument',
    'PipelineStats',
    'PipelineState',
]
