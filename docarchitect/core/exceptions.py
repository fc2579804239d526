"""
Exception types raised by the pipeline.
"""

from typing import List, Optional


class DocArchitectError(Exception):
    """Base class for all Document Architect errors."""


class ConfigurationError(DocArchitectError, ValueError):
    """
    Raised when a project configuration fails validation.

    Carries every validation message, not just the first one.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Configuration errors:\n  - " + "\n  - ".join(self.errors))


class GenerationError(DocArchitectError, RuntimeError):
    """Raised when the generation service fails or returns nothing usable."""

    def __init__(self, stage: str, message: str, model_id: Optional[str] = None):
        self.stage = stage
        self.message = message
        self.model_id = model_id
        super().__init__(f"{stage} generation failed: {message}")
