"""
Project module - Project configuration models and normalization.
"""

from .models import (
    GenerationMode,
    TeamContext,
    ProjectConfig,
    KNOWN_QUESTIONS,
)
from .normalizer import (
    LegacyConfigV1,
    FlexibleConfigV2,
    MinimalConfig,
    classify_config,
    fold_legacy_requirements,
    normalize_config,
    validate_config,
    parse_project_config,
    load_project_config,
)

__all__ = [
    'GenerationMode',
    'TeamContext',
    'ProjectConfig',
    'KNOWN_QUESTIONS',
    'LegacyConfigV1',
    'FlexibleConfigV2',
    'MinimalConfig',
    'classify_config',
    'fold_legacy_requirements',
    'normalize_config',
    'validate_config',
    'parse_project_config',
    'load_project_config',
]
