"""Unit tests for generation service clients."""

import io
import json

import httpx
import pytest
from botocore.exceptions import ClientError

from docarchitect.core.config import LLMSettings
from docarchitect.llm import (
    BedrockClient,
    OpenAICompatibleClient,
    MockLLMClient,
    LLMConfig,
    LLMMessage,
    LLMResponse,
    create_client,
    client_from_settings,
)
from docarchitect.llm.openai_compat_client import normalize_base_url


class TestLLMResponse:
    """Tests for LLMResponse."""

    def test_error_response(self):
        response = LLMResponse.error("boom", model_id="m")
        assert response.success is False
        assert response.error_message == "boom"
        assert response.content == ""

    def test_is_empty(self):
        assert LLMResponse(content="   \n").is_empty
        assert not LLMResponse(content="text").is_empty


class TestMockLLMClient:
    """Tests for MockLLMClient."""

    @pytest.fixture
    def client(self):
        return MockLLMClient(default_response="default")

    def test_default_response(self, client):
        assert client.generate("hi").content == "default"

    def test_response_sequence_cycles(self, client):
        client.set_responses(["a", "b"])
        assert [client.generate("x").content for _ in range(3)] == ["a", "b", "a"]

    def test_response_function(self, client):
        client.set_response_function(lambda prompt: prompt.upper())
        assert client.generate("abc").content == "ABC"

    def test_routes_by_marker(self, client):
        client.route("# Stories", "stories text")
        client.set_responses(["sequenced"])
        assert client.generate("Write it\n# Stories").content == "stories text"
        assert client.generate("Write the PRD").content == "sequenced"

    def test_error_after(self, client):
        client.set_error_after(1)
        assert client.generate("1").success
        assert not client.generate("2").success

    def test_empty_after(self, client):
        client.set_empty_after(1)
        client.generate("1")
        response = client.generate("2")
        assert response.success and response.is_empty

    def test_tracks_calls(self, client):
        client.generate("prompt", system_prompt="system")
        assert client.call_count == 1
        assert client.last_call["system_prompt"] == "system"

    def test_chat_flattens_messages(self, client):
        client.chat([
            LLMMessage(role="user", content="hello"),
            LLMMessage(role="assistant", content="hi"),
            LLMMessage(role="user", content="more"),
        ])
        prompt = client.last_call["prompt"]
        assert prompt.startswith("User: hello")
        assert prompt.endswith("Assistant:")

    def test_reset(self, client):
        client.generate("x")
        client.reset()
        assert client.call_count == 0


class TestOpenAICompatibleClient:
    """Tests for the OpenAI-compatible HTTP client."""

    @staticmethod
    def _client(handler, **config):
        return OpenAICompatibleClient(
            LLMConfig(model_id="test-model", retry_delay=0, **config),
            base_url="http://ollama.test:11434",
            api_key="token",
            transport=httpx.MockTransport(handler),
        )

    def test_normalize_base_url(self):
        assert normalize_base_url("http://host:11434/") == "http://host:11434/v1"
        assert normalize_base_url("https://ollama.com/v1") == "https://ollama.com/v1"

    def test_chat_success(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "model": "test-model",
                "choices": [{"message": {"content": "# PRD"}, "finish_reason": "stop"}],
                "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
            })

        response = self._client(handler).generate("Write it", system_prompt="You are an architect")

        assert response.success
        assert response.content == "# PRD"
        assert response.input_tokens == 12
        assert seen["url"] == "http://ollama.test:11434/v1/chat/completions"
        assert seen["auth"] == "Bearer token"
        assert seen["body"]["messages"][0] == {"role": "system", "content": "You are an architect"}
        assert seen["body"]["messages"][1] == {"role": "user", "content": "Write it"}

    def test_retries_busy_endpoint(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, text="busy")
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        response = self._client(handler, max_retries=2).generate("x")
        assert response.success
        assert len(calls) == 2

    def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, text="unauthorized")

        response = self._client(handler, max_retries=2).generate("x")
        assert not response.success
        assert "HTTP 401" in response.error_message
        assert len(calls) == 1

    def test_no_choices_is_error(self):
        response = self._client(lambda request: httpx.Response(200, json={"choices": []})).generate("x")
        assert not response.success

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        response = self._client(handler).generate("x")
        assert not response.success
        assert response.error_message.startswith("Connection error")

    def test_is_available(self):
        client = self._client(lambda request: httpx.Response(200, json={"data": []}))
        assert client.is_available()


class FakeBedrockRuntime:
    """Stands in for the boto3 bedrock-runtime client."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def invoke_model(self, **kwargs):
        self.requests.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return {"body": io.BytesIO(json.dumps(outcome).encode("utf-8"))}


def _throttled():
    return ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow down"}}, "InvokeModel")


class TestBedrockClient:
    """Tests for BedrockClient with a fake runtime."""

    @pytest.fixture
    def ok_body(self):
        return {
            "content": [{"type": "text", "text": "# TDR"}],
            "usage": {"input_tokens": 100, "output_tokens": 20},
            "stop_reason": "end_turn",
        }

    @staticmethod
    def _client(runtime):
        client = BedrockClient(LLMConfig(model_id="claude-test", retry_delay=0, max_retries=2))
        client._client = runtime
        return client

    def test_generate(self, ok_body):
        runtime = FakeBedrockRuntime([ok_body])
        response = self._client(runtime).generate("Design it", system_prompt="architect")

        assert response.success
        assert response.content == "# TDR"
        assert response.total_tokens == 120

        body = json.loads(runtime.requests[0]["body"])
        assert body["system"] == "architect"
        assert body["messages"] == [{"role": "user", "content": "Design it"}]
        assert runtime.requests[0]["modelId"] == "claude-test"

    def test_chat_merges_system_messages(self, ok_body):
        runtime = FakeBedrockRuntime([ok_body])
        self._client(runtime).chat(
            [LLMMessage(role="system", content="extra"), LLMMessage(role="user", content="hi")],
            system_prompt="base",
        )
        body = json.loads(runtime.requests[0]["body"])
        assert body["system"] == "base\n\nextra"
        assert body["messages"] == [{"role": "user", "content": "hi"}]

    def test_retries_throttling(self, ok_body):
        runtime = FakeBedrockRuntime([_throttled(), ok_body])
        response = self._client(runtime).generate("x")
        assert response.success
        assert len(runtime.requests) == 2

    def test_gives_up_after_retries(self):
        runtime = FakeBedrockRuntime([_throttled(), _throttled(), _throttled()])
        response = self._client(runtime).generate("x")
        assert not response.success
        assert "ThrottlingException" in response.error_message

    def test_empty_content_is_error(self):
        runtime = FakeBedrockRuntime([{"content": []}])
        assert not self._client(runtime).generate("x").success

    def test_default_model(self):
        assert BedrockClient().model_id == BedrockClient.DEFAULT_MODEL


class TestClientFactory:
    """Tests for create_client and client_from_settings."""

    def test_create_mock(self):
        assert isinstance(create_client("mock"), MockLLMClient)

    def test_create_unknown(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_client("nope")

    def test_from_settings_ollama(self):
        client = client_from_settings(LLMSettings(
            provider="ollama",
            model="llama3",
            base_url="http://localhost:11434",
            api_key=None,
        ))
        assert isinstance(client, OpenAICompatibleClient)
        assert client.model_id == "llama3"
        assert client.base_url == "http://localhost:11434/v1"

    def test_from_settings_bedrock(self):
        client = client_from_settings(LLMSettings(provider="bedrock", model="claude-x", aws_region="eu-west-1"))
        assert isinstance(client, BedrockClient)
        assert client.region == "eu-west-1"
        assert client.config.max_tokens == 16000

    def test_from_settings_mock(self):
        assert isinstance(client_from_settings(LLMSettings(provider="mock")), MockLLMClient)
