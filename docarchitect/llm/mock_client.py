"""
Mock generation client for testing.

Provides configurable responses without making network calls.
"""

from typing import Optional, List, Dict, Callable, Any, Tuple
import time

from .base import BaseLLMClient, LLMConfig, LLMResponse


class MockLLMClient(BaseLLMClient):
    """
    Mock client for testing.

    Can be configured with:
    - Static responses
    - Response sequences
    - Custom response functions
    - Simulated delays
    - Error and empty-response simulation
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        default_response: str = "This is a mock response.",
        delay: float = 0.0,
    ):
        """
        Args:
            config: LLM configuration
            default_response: Default response when no specific response is set
            delay: Simulated delay in seconds
        """
        super().__init__(config)
        self.default_response = default_response
        self.delay = delay

        self._responses: List[str] = []
        self._response_index = 0
        self._response_function: Optional[Callable[[str], str]] = None
        self._routes: List[Tuple[str, str]] = []
        self._error_after: Optional[int] = None  # Fail after N calls
        self._empty_after: Optional[int] = None  # Return "" after N calls
        self._call_count = 0

        # Call tracking
        self.calls: List[Dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def model_id(self) -> str:
        return self.config.model_id or "mock-model"

    def set_responses(self, responses: List[str]) -> None:
        """
        Set a sequence of responses to return.

        Responses are returned in order, then cycle back to the beginning.
        """
        self._responses = responses
        self._response_index = 0

    def set_response_function(self, func: Callable[[str], str]) -> None:
        """Set a function that maps the prompt to the response."""
        self._response_function = func

    def route(self, marker: str, response: str) -> None:
        """
        Answer prompts containing ``marker`` with ``response``.

        Routes are checked in the order they were added and win over the
        sequence and default responses.
        """
        self._routes.append((marker, response))

    def set_error_after(self, n: int) -> None:
        """Return an error response after N successful calls."""
        self._error_after = n

    def set_empty_after(self, n: int) -> None:
        """Return an empty (but successful) response after N calls."""
        self._empty_after = n

    def reset(self) -> None:
        """Reset call tracking and response index."""
        self._response_index = 0
        self._call_count = 0
        self.calls.clear()

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a mock response."""
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "kwargs": kwargs,
        })

        if self.delay > 0:
            time.sleep(self.delay)

        self._call_count += 1

        if self._error_after is not None and self._call_count > self._error_after:
            return LLMResponse.error("Simulated error after N calls", model_id=self.model_id)

        routed = self._routed(prompt)
        if self._empty_after is not None and self._call_count > self._empty_after:
            content = ""
        elif self._response_function:
            content = self._response_function(prompt)
        elif routed is not None:
            content = routed
        elif self._responses:
            content = self._responses[self._response_index % len(self._responses)]
            self._response_index += 1
        else:
            content = self.default_response

        # Rough token estimate
        input_tokens = len(prompt.split()) * 1.3
        output_tokens = len(content.split()) * 1.3

        return LLMResponse(
            content=content,
            success=True,
            input_tokens=int(input_tokens),
            output_tokens=int(output_tokens),
            total_tokens=int(input_tokens + output_tokens),
            model_id=self.model_id,
            finish_reason="end_turn",
        )

    def _routed(self, prompt: str) -> Optional[str]:
        for marker, response in self._routes:
            if marker in prompt:
                return response
        return None

    def is_available(self) -> bool:
        """Mock is always available."""
        return True

    @property
    def last_call(self) -> Optional[Dict[str, Any]]:
        """Get the most recent call."""
        return self.calls[-1] if self.calls else None

    @property
    def call_count(self) -> int:
        """Get total number of calls."""
        return len(self.calls)
