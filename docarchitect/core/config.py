"""
Application settings for Document Architect.

Dataclasses for every tunable with sensible defaults, YAML loading and
saving. Environment variables are read only here, while settings are built;
the rest of the package receives settings objects explicitly.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any

import yaml


class LLMProvider(Enum):
    """Supported generation service providers."""
    BEDROCK = "bedrock"
    OLLAMA = "ollama"      # Any OpenAI-compatible /chat/completions endpoint
    MOCK = "mock"          # For testing


class DependencyOrdering(Enum):
    """How the sprint planner orders dependent stories."""
    PAIRWISE = "pairwise"          # Direct dependency pairs only
    TOPOLOGICAL = "topological"    # Full transitive ordering


@dataclass
class LLMSettings:
    """Configuration for the generation service."""
    provider: LLMProvider = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "bedrock"))
    model: Optional[str] = None
    temperature: float = 0.4
    max_tokens: int = 16000
    timeout: int = 300  # seconds

    # Bedrock
    aws_region: str = field(default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"))

    # OpenAI-compatible endpoints (Ollama local or cloud)
    base_url: str = field(default_factory=lambda: os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"))
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("OLLAMA_API_KEY"))

    # Transport-level retries inside the client, never in the pipeline
    max_retries: int = 2
    retry_delay: float = 1.0

    def __post_init__(self):
        if isinstance(self.provider, str):
            self.provider = LLMProvider(self.provider.lower())
        if self.model is None:
            self.model = self._default_model()

    def _default_model(self) -> str:
        if self.provider == LLMProvider.OLLAMA:
            return os.getenv("OLLAMA_MODEL", "qwen3-coder:480b-cloud")
        if self.provider == LLMProvider.MOCK:
            return "mock-model"
        return os.getenv("BEDROCK_MODEL", "anthropic.claude-sonnet-4-20250514-v1:0")


@dataclass
class ContextSettings:
    """Limits used when composing prompt context."""
    max_length: int = 12000
    include_source_docs: bool = True
    max_per_document: int = 4000
    base_path: Optional[Path] = None

    # Condensed excerpts of earlier documents fed to later stages
    tdr_prd_excerpt: int = 4000
    frontend_excerpt: int = 2000
    stories_prd_excerpt: int = 3000
    stories_tdr_excerpt: int = 3000
    stories_frontend_excerpt: int = 2000

    def __post_init__(self):
        if self.base_path and isinstance(self.base_path, str):
            self.base_path = Path(self.base_path)


@dataclass
class OutputSettings:
    """Where generated artifacts are written."""
    docs_dir: Path = Path("docs")
    stories_subdir: str = "stories"
    exports_subdir: str = "exports"

    def __post_init__(self):
        if isinstance(self.docs_dir, str):
            self.docs_dir = Path(self.docs_dir)


@dataclass
class PlanningSettings:
    """Sprint planning behavior."""
    dependency_ordering: DependencyOrdering = DependencyOrdering.PAIRWISE

    def __post_init__(self):
        if isinstance(self.dependency_ordering, str):
            self.dependency_ordering = DependencyOrdering(self.dependency_ordering)


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "WARNING"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    file: Optional[Path] = None

    def __post_init__(self):
        if self.file and isinstance(self.file, str):
            self.file = Path(self.file)


@dataclass
class AppConfig:
    """
    Root settings object.

    Can be loaded from a YAML file or constructed programmatically.
    """
    llm: LLMSettings = field(default_factory=LLMSettings)
    context: ContextSettings = field(default_factory=ContextSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    planning: PlanningSettings = field(default_factory=PlanningSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> 'AppConfig':
        """
        Load settings from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a YAML mapping
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file must contain a mapping: {path}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        """Create settings from a (possibly partial) dictionary."""
        return cls(
            llm=LLMSettings(**data.get('llm', {})),
            context=ContextSettings(**data.get('context', {})),
            output=OutputSettings(**data.get('output', {})),
            planning=PlanningSettings(**data.get('planning', {})),
            logging=LoggingConfig(**data.get('logging', {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert settings to a dictionary.

        The API key is left out so saved settings never carry secrets.
        """
        return {
            'llm': {
                'provider': self.llm.provider.value,
                'model': self.llm.model,
                'temperature': self.llm.temperature,
                'max_tokens': self.llm.max_tokens,
                'timeout': self.llm.timeout,
                'aws_region': self.llm.aws_region,
                'base_url': self.llm.base_url,
                'max_retries': self.llm.max_retries,
                'retry_delay': self.llm.retry_delay,
            },
            'context': {
                'max_length': self.context.max_length,
                'include_source_docs': self.context.include_source_docs,
                'max_per_document': self.context.max_per_document,
                'base_path': str(self.context.base_path) if self.context.base_path else None,
                'tdr_prd_excerpt': self.context.tdr_prd_excerpt,
                'frontend_excerpt': self.context.frontend_excerpt,
                'stories_prd_excerpt': self.context.stories_prd_excerpt,
                'stories_tdr_excerpt': self.context.stories_tdr_excerpt,
                'stories_frontend_excerpt': self.context.stories_frontend_excerpt,
            },
            'output': {
                'docs_dir': str(self.output.docs_dir),
                'stories_subdir': self.output.stories_subdir,
                'exports_subdir': self.output.exports_subdir,
            },
            'planning': {
                'dependency_ordering': self.planning.dependency_ordering.value,
            },
            'logging': {
                'level': self.logging.level,
                'format': self.logging.format,
                'file': str(self.logging.file) if self.logging.file else None,
            },
        }

    def save_yaml(self, path: Path | str) -> None:
        """Save settings to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


def get_default_config() -> AppConfig:
    """Get the default application settings."""
    return AppConfig()


def load_config(config_path: Optional[Path | str] = None) -> AppConfig:
    """
    Load settings from file or return defaults.

    Looks for settings in this order:
    1. Provided path
    2. ./config/default.yaml
    3. ./config.yaml
    4. ~/.docarchitect/config.yaml
    5. Default values
    """
    if config_path:
        return AppConfig.from_yaml(config_path)

    default_paths = [
        Path("config/default.yaml"),
        Path("config.yaml"),
        Path.home() / ".docarchitect" / "config.yaml",
    ]

    for path in default_paths:
        if path.exists():
            return AppConfig.from_yaml(path)

    return get_default_config()
