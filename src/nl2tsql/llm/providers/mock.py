"""Mock LLM provider for testing.

Returns predefined responses without making API calls.
"""
from ..base import LLMProvider, LLMUsage, LLMError, LLMTimeoutError, ChatMessage


class MockProvider(LLMProvider):
    """Mock LLM provider for testing.

    Example:
        >>> provider = MockProvider(responses=["SELECT 1", "One row."])
        >>> provider.complete([{"role": "user", "content": "q"}])[0]
        'SELECT 1'
        >>> provider.complete([{"role": "user", "content": "q"}])[0]
        'One row.'
    """

    def __init__(
        self,
        response_text: str = "",
        responses: list[str] | None = None,
        should_fail: bool = False,
        should_timeout: bool = False,
        input_tokens: int = 100,
        output_tokens: int = 50
    ):
        """Initialize mock provider.

        Args:
            response_text: Text returned by every call
            responses: Texts returned in order, one per call; once used up,
                       response_text is returned
            should_fail: If True, raise LLMError
            should_timeout: If True, raise LLMTimeoutError
            input_tokens: Mock input token count
            output_tokens: Mock output token count
        """
        self._response_text = response_text
        self._responses = list(responses or [])
        self._should_fail = should_fail
        self._should_timeout = should_timeout
        self._input_tokens = input_tokens
        self._output_tokens = output_tokens
        self.calls: list[list[ChatMessage]] = []

    def complete(
        self,
        messages: list[ChatMessage],
        max_tokens: int = 400,
        temperature: float = 0.0,
        timeout: float = 60.0
    ) -> tuple[str, LLMUsage]:
        self.calls.append(list(messages))

        if self._should_timeout:
            raise LLMTimeoutError(
                f"Mock LLM request exceeded timeout of {timeout}s",
                timeout_seconds=timeout
            )
        if self._should_fail:
            raise LLMError("Mock provider configured to fail")

        text = self._responses.pop(0) if self._responses else self._response_text

        usage = LLMUsage(
            input_tokens=self._input_tokens,
            output_tokens=self._output_tokens,
            total_tokens=self._input_tokens + self._output_tokens,
            estimated_cost_usd=0.001  # Mock cost
        )
        return text, usage

    @property
    def model_name(self) -> str:
        """Return mock model identifier."""
        return "mock-llm-v1"
