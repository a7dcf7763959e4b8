"""Tests for LLM timeout protection.

This test suite validates that:
1. LLM calls can time out gracefully
2. Timeout errors are properly classified
3. The generator propagates timeouts and the assistant answers safely
4. The narrator swallows timeouts and the answer falls back
"""
import pytest

from nl2tsql.assistant import QueryAssistant, FAILED_TEXT
from nl2tsql.errors import ErrorCategory
from nl2tsql.llm.base import LLMTimeoutError
from nl2tsql.llm.providers import MockProvider
from nl2tsql.narrator import Narrator
from nl2tsql.sql_generator import SqlGenerator


class TestLLMTimeout:
    """Test timeout protection for LLM calls."""

    def test_mock_provider_raises_timeout_error(self):
        provider = MockProvider(should_timeout=True)

        with pytest.raises(LLMTimeoutError) as exc_info:
            provider.complete([{"role": "user", "content": "q"}], timeout=5.0)

        # Verify error message includes timeout value
        assert "5.0s" in str(exc_info.value)
        assert "timeout" in str(exc_info.value).lower()

    def test_timeout_error_is_classified(self):
        error = LLMTimeoutError("LLM request timed out", timeout_seconds=30.0)
        assert error.category == ErrorCategory.TIMEOUT
        assert error.retryable is True
        assert error.details["timeout_seconds"] == 30.0
        assert error.to_dict()["category"] == "timeout"

    def test_generator_passes_timeout_to_provider(self):
        provider = MockProvider(should_timeout=True)
        generator = SqlGenerator(provider, timeout=12.5)

        with pytest.raises(LLMTimeoutError) as exc_info:
            generator.generate("How many orders?", {"dbo.Orders": ["Id"]})

        assert "12.5s" in str(exc_info.value)
        assert generator.last_usage is None

    def test_narrator_returns_empty_text_on_timeout(self):
        narrator = Narrator(MockProvider(should_timeout=True), timeout=3.0)
        assert narrator.narrate("Summarize") == ""
        assert narrator.last_usage is None

    def test_assistant_answers_safely_on_generation_timeout(self, executor, memory):
        assistant = QueryAssistant(MockProvider(should_timeout=True), executor=executor, memory=memory)

        result = assistant.answer("u1", "How many orders?")

        assert result.outcome == "failed"
        assert result.answer == FAILED_TEXT
        assert result.sql is None
