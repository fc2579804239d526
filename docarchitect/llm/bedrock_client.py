"""
AWS Bedrock client implementation.

Provides Claude model access through the Bedrock runtime using the
Anthropic messages request body.
"""

import json
import time
from typing import Optional, List, Dict, Any

from .base import BaseLLMClient, LLMConfig, LLMResponse, LLMMessage
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Lazy import boto3 to avoid import errors if not installed
boto3 = None
Config = None
ClientError = None
BotoCoreError = None


def _import_boto3():
    """Lazy import boto3 and related modules."""
    global boto3, Config, ClientError, BotoCoreError
    if boto3 is None:
        import boto3 as _boto3
        from botocore.config import Config as _Config
        from botocore.exceptions import ClientError as _ClientError, BotoCoreError as _BotoCoreError
        boto3 = _boto3
        Config = _Config
        ClientError = _ClientError
        BotoCoreError = _BotoCoreError


ANTHROPIC_VERSION = "bedrock-2023-05-31"


class BedrockClient(BaseLLMClient):
    """
    AWS Bedrock client for Claude models.

    Credentials are passed in explicitly. When none are given, boto3's
    default credential chain applies (profile, SSO, instance role, or a
    Bedrock bearer token picked up by botocore itself).
    """

    DEFAULT_MODEL = "anthropic.claude-sonnet-4-20250514-v1:0"

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        region: str = "us-east-1",
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
    ):
        """
        Initialize the Bedrock client.

        Args:
            config: LLM configuration
            region: AWS region
            aws_access_key_id: Optional explicit access key
            aws_secret_access_key: Optional explicit secret key
            aws_session_token: Optional session token
        """
        super().__init__(config)

        if not self.config.model_id:
            self.config.model_id = self.DEFAULT_MODEL

        self.region = region
        self._credentials = {
            "aws_access_key_id": aws_access_key_id,
            "aws_secret_access_key": aws_secret_access_key,
            "aws_session_token": aws_session_token,
        }
        self._client = None

    @property
    def provider_name(self) -> str:
        return "bedrock"

    @property
    def client(self):
        """Lazy-load Bedrock runtime client."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        """Create a Bedrock Runtime client."""
        _import_boto3()

        boto_config = Config(
            connect_timeout=30,
            read_timeout=self.config.timeout,
            retries={'max_attempts': self.config.max_retries}
        )

        credentials = {k: v for k, v in self._credentials.items() if v}
        if credentials:
            logger.debug("Using explicit credentials")
        else:
            logger.debug("Using default AWS credential chain")

        return boto3.client(
            "bedrock-runtime",
            region_name=self.region,
            config=boto_config,
            **credentials,
        )

    def _build_body(
        self,
        messages: List[Dict[str, str]],
        system_prompt: Optional[str],
        **kwargs
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": kwargs.get('max_tokens', self.config.max_tokens),
            "temperature": kwargs.get('temperature', self.config.temperature),
            "messages": messages,
        }
        if system_prompt:
            body["system"] = system_prompt
        if self.config.stop_sequences:
            body["stop_sequences"] = self.config.stop_sequences
        return body

    def _invoke(self, request_body: Dict[str, Any], model_id: str) -> LLMResponse:
        """Invoke the model, retrying only on throttling."""
        last_error = None
        for attempt in range(self.config.max_retries + 1):
            try:
                logger.debug(f"Invoking model {model_id} (attempt {attempt + 1})")

                response = self.client.invoke_model(
                    modelId=model_id,
                    contentType="application/json",
                    accept="application/json",
                    body=json.dumps(request_body)
                )

                response_body = json.loads(response["body"].read())

                usage = response_body.get("usage", {})
                input_tokens = usage.get("input_tokens")
                output_tokens = usage.get("output_tokens")

                if not response_body.get("content"):
                    return LLMResponse.error("Empty response from model", model_id=model_id)

                content = "".join(
                    block.get("text", "")
                    for block in response_body["content"]
                    if block.get("type", "text") == "text"
                )

                return LLMResponse(
                    content=content,
                    success=True,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    total_tokens=(input_tokens or 0) + (output_tokens or 0) if input_tokens or output_tokens else None,
                    model_id=model_id,
                    finish_reason=response_body.get("stop_reason"),
                    raw_response=response_body,
                )

            except ClientError as e:
                error_code = e.response.get('Error', {}).get('Code', 'Unknown')
                error_message = e.response.get('Error', {}).get('Message', str(e))
                last_error = f"AWS error ({error_code}): {error_message}"

                if error_code == 'ThrottlingException' and attempt < self.config.max_retries:
                    logger.warning(f"Rate limited, retrying in {self.config.retry_delay}s...")
                    time.sleep(self.config.retry_delay * (attempt + 1))
                    continue

                logger.error(last_error)
                break

            except BotoCoreError as e:
                last_error = f"AWS connection error: {e}"
                logger.error(last_error)
                break

            except json.JSONDecodeError as e:
                last_error = f"Failed to parse response: {e}"
                logger.error(last_error)
                break

        return LLMResponse.error(last_error or "Unknown error", model_id=model_id)

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a response from Claude via Bedrock.

        Args:
            prompt: The user prompt
            system_prompt: Optional system instructions
            **kwargs: Additional options (temperature, max_tokens, model_id)

        Returns:
            LLMResponse with generated content or error
        """
        _import_boto3()
        model_id = kwargs.pop('model_id', self.config.model_id)
        body = self._build_body([{"role": "user", "content": prompt}], system_prompt, **kwargs)
        return self._invoke(body, model_id)

    def chat(
        self,
        messages: List[LLMMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """Native multi-turn chat; system messages are merged into the system prompt."""
        _import_boto3()
        model_id = kwargs.pop('model_id', self.config.model_id)

        system_parts = [system_prompt] if system_prompt else []
        turns = []
        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                turns.append(msg.to_dict())

        body = self._build_body(turns, "\n\n".join(system_parts) or None, **kwargs)
        return self._invoke(body, model_id)

    def is_available(self) -> bool:
        """Check that the runtime answers a one-token request."""
        try:
            _import_boto3()
            self.client.invoke_model(
                modelId=self.config.model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps({
                    "anthropic_version": ANTHROPIC_VERSION,
                    "max_tokens": 1,
                    "messages": [{"role": "user", "content": "test"}]
                })
            )
            return True
        except Exception as e:
            logger.warning(f"Bedrock availability check failed: {e}")
            return False
