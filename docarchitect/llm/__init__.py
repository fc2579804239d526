"""
LLM module - Generation service clients.

Provides a unified interface for:
- AWS Bedrock (Claude)
- OpenAI-compatible endpoints (Ollama local or cloud)
- Mock (for testing)
"""

from .base import (
    BaseLLMClient,
    LLMConfig,
    LLMResponse,
    LLMMessage,
)
from .bedrock_client import BedrockClient
from .openai_compat_client import OpenAICompatibleClient
from .mock_client import MockLLMClient
from ..core.config import LLMSettings, LLMProvider

__all__ = [
    # Base classes
    'BaseLLMClient',
    'LLMConfig',
    'LLMResponse',
    'LLMMessage',
    # Implementations
    'BedrockClient',
    'OpenAICompatibleClient',
    'MockLLMClient',
    # Factories
    'create_client',
    'client_from_settings',
]


def create_client(provider: str = "bedrock", **kwargs) -> BaseLLMClient:
    """
    Factory function to create a client.

    Args:
        provider: Provider name ("bedrock", "ollama", "mock")
        **kwargs: Provider-specific configuration

    Returns:
        Configured client instance

    Raises:
        ValueError: If provider is not supported
    """
    providers = {
        "bedrock": BedrockClient,
        "ollama": OpenAICompatibleClient,
        "mock": MockLLMClient,
    }

    if provider not in providers:
        raise ValueError(f"Unsupported provider: {provider}. Available: {list(providers.keys())}")

    return providers[provider](**kwargs)


def client_from_settings(settings: LLMSettings) -> BaseLLMClient:
    """Build the client described by an LLMSettings block."""
    config = LLMConfig(
        model_id=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay,
    )

    if settings.provider == LLMProvider.BEDROCK:
        return create_client("bedrock", config=config, region=settings.aws_region)
    if settings.provider == LLMProvider.OLLAMA:
        return create_client(
            "ollama",
            config=config,
            base_url=settings.base_url,
            api_key=settings.api_key,
        )
    return create_client("mock", config=config)
