"""
Client for OpenAI-compatible chat completion endpoints.

Targets Ollama (local or cloud) by default, but works against any server
that exposes ``/v1/chat/completions``.
"""

import time
from typing import Optional, List, Dict, Any

import httpx

from .base import BaseLLMClient, LLMConfig, LLMResponse, LLMMessage
from ..utils.logger import get_logger

logger = get_logger(__name__)


RETRYABLE_STATUS = {429, 502, 503, 504}


def normalize_base_url(base_url: str) -> str:
    """Ensure the base URL ends with ``/v1`` and has no trailing slash."""
    base = base_url.rstrip("/")
    return base if base.endswith("/v1") else f"{base}/v1"


class OpenAICompatibleClient(BaseLLMClient):
    """
    Chat completion client over plain HTTP.

    Example:
        client = OpenAICompatibleClient(
            LLMConfig(model_id="qwen3-coder:480b-cloud"),
            base_url="http://localhost:11434",
        )
        response = client.generate("Write a haiku")
    """

    DEFAULT_MODEL = "qwen3-coder:480b-cloud"

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        base_url: str = "http://localhost:11434",
        api_key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            config: LLM configuration
            base_url: Server root, with or without the ``/v1`` suffix
            api_key: Bearer token for hosted endpoints
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(config)

        if not self.config.model_id:
            self.config.model_id = self.DEFAULT_MODEL

        self.base_url = normalize_base_url(base_url)
        self.api_key = api_key
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "ollama"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=float(self.config.timeout), transport=self._transport)

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        return self.chat([LLMMessage(role="user", content=prompt)], system_prompt=system_prompt, **kwargs)

    def chat(
        self,
        messages: List[LLMMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Send a conversation to ``/chat/completions``.

        Transport failures are returned as error responses rather than raised.
        """
        model_id = kwargs.get('model_id', self.config.model_id)

        payload_messages = []
        if system_prompt:
            payload_messages.append({"role": "system", "content": system_prompt})
        payload_messages.extend(msg.to_dict() for msg in messages)

        payload: Dict[str, Any] = {
            "model": model_id,
            "messages": payload_messages,
            "temperature": kwargs.get('temperature', self.config.temperature),
            "max_tokens": kwargs.get('max_tokens', self.config.max_tokens),
        }
        if self.config.stop_sequences:
            payload["stop"] = self.config.stop_sequences

        url = f"{self.base_url}/chat/completions"
        last_error = None

        for attempt in range(self.config.max_retries + 1):
            try:
                logger.debug(f"POST {url} model={model_id} (attempt {attempt + 1})")
                with self._client() as client:
                    r = client.post(url, headers=self._headers(), json=payload)
                    r.raise_for_status()
                    data = r.json()
                return self._parse(data, model_id)

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                last_error = f"HTTP {status} from {url}: {e.response.text[:200]}"
                if status in RETRYABLE_STATUS and attempt < self.config.max_retries:
                    logger.warning(f"Endpoint busy ({status}), retrying in {self.config.retry_delay}s...")
                    time.sleep(self.config.retry_delay * (attempt + 1))
                    continue
                logger.error(last_error)
                break

            except httpx.HTTPError as e:
                last_error = f"Connection error: {type(e).__name__}: {e}"
                logger.error(last_error)
                break

            except ValueError as e:
                last_error = f"Failed to parse response: {e}"
                logger.error(last_error)
                break

        return LLMResponse.error(last_error or "Unknown error", model_id=model_id)

    @staticmethod
    def _parse(data: Dict[str, Any], model_id: str) -> LLMResponse:
        choices = data.get("choices") or []
        if not choices:
            return LLMResponse.error("Empty response from model", model_id=model_id)

        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}

        return LLMResponse(
            content=content,
            success=True,
            input_tokens=usage.get("prompt_tokens"),
            output_tokens=usage.get("completion_tokens"),
            total_tokens=usage.get("total_tokens"),
            model_id=data.get("model", model_id),
            finish_reason=choice.get("finish_reason"),
            raw_response=data,
        )

    def is_available(self) -> bool:
        """Check that the server lists its models."""
        try:
            with self._client() as client:
                r = client.get(f"{self.base_url}/models", headers=self._headers())
                r.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Endpoint availability check failed: {e}")
            return False
