"""Tests for the LLM provider abstraction layer.

Validates:
- MockProvider returns canned text with usage
- OpenRouterProvider maps HTTP results and failures
- AzureOpenAIProvider refuses to start without configuration
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from nl2tsql.llm.base import LLMProvider, LLMUsage, LLMError, EmptyCompletionError, LLMTimeoutError
from nl2tsql.llm.providers import MockProvider, OpenRouterProvider, AzureOpenAIProvider
from nl2tsql.errors import ErrorCategory, StructuredError


MESSAGES = [{"role": "user", "content": "How many orders?"}]


def test_llm_provider_is_abstract():
    with pytest.raises(TypeError):
        LLMProvider()


class TestMockProvider:

    def test_returns_response_text(self):
        provider = MockProvider(response_text="SELECT COUNT(*) FROM dbo.Orders")
        text, usage = provider.complete(MESSAGES)
        assert text == "SELECT COUNT(*) FROM dbo.Orders"
        assert isinstance(usage, LLMUsage)
        assert usage.input_tokens == 100
        assert usage.output_tokens == 50
        assert usage.total_tokens == 150
        assert usage.estimated_cost_usd == 0.001

    def test_responses_are_used_in_order(self):
        provider = MockProvider(response_text="fallback", responses=["first", "second"])
        assert provider.complete(MESSAGES)[0] == "first"
        assert provider.complete(MESSAGES)[0] == "second"
        assert provider.complete(MESSAGES)[0] == "fallback"

    def test_records_calls(self):
        provider = MockProvider()
        provider.complete(MESSAGES)
        assert provider.calls == [MESSAGES]

    def test_should_fail(self):
        with pytest.raises(LLMError):
            MockProvider(should_fail=True).complete(MESSAGES)

    def test_model_name(self):
        assert MockProvider().model_name == "mock-llm-v1"


class TestOpenRouterProvider:

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        with pytest.raises(LLMError):
            OpenRouterProvider()

    def test_model_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_MODEL", "anthropic/claude-3-haiku")
        provider = OpenRouterProvider(api_key="test-key")
        assert provider.model_name == "anthropic/claude-3-haiku"

    def test_successful_completion(self):
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {
            "choices": [{"message": {"content": "SELECT 1"}}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15, "total_cost": 0.0002},
        }
        provider = OpenRouterProvider(model="openai/gpt-4o-mini", api_key="test-key")

        with patch("nl2tsql.llm.providers.openrouter.requests.post", return_value=response) as post:
            text, usage = provider.complete(MESSAGES, max_tokens=400, timeout=12.0)

        assert text == "SELECT 1"
        assert usage == LLMUsage(input_tokens=12, output_tokens=3, total_tokens=15, estimated_cost_usd=0.0002)
        payload = post.call_args.kwargs["json"]
        assert payload["messages"] == MESSAGES
        assert payload["max_tokens"] == 400
        assert payload["temperature"] == 0.0
        assert post.call_args.kwargs["timeout"] == 12.0
        assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer test-key"

    def test_null_content_becomes_empty_text(self):
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {"choices": [{"message": {"content": None}}]}
        provider = OpenRouterProvider(api_key="test-key")

        with patch("nl2tsql.llm.providers.openrouter.requests.post", return_value=response):
            text, usage = provider.complete(MESSAGES)

        assert text == ""
        assert usage.total_tokens == 0

    def test_http_error_status(self):
        response = MagicMock()
        response.status_code = 401
        response.text = "unauthorized"
        provider = OpenRouterProvider(api_key="bad-key")

        with patch("nl2tsql.llm.providers.openrouter.requests.post", return_value=response):
            with pytest.raises(LLMError) as exc_info:
                provider.complete(MESSAGES)

        assert exc_info.value.details["status_code"] == 401
        assert exc_info.value.category == ErrorCategory.PLANNING

    def test_no_choices(self):
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {"choices": []}
        provider = OpenRouterProvider(api_key="test-key")

        with patch("nl2tsql.llm.providers.openrouter.requests.post", return_value=response):
            with pytest.raises(EmptyCompletionError):
                provider.complete(MESSAGES)

    def test_connection_error(self):
        provider = OpenRouterProvider(api_key="test-key")
        with patch(
            "nl2tsql.llm.providers.openrouter.requests.post",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ):
            with pytest.raises(LLMError):
                provider.complete(MESSAGES)

    def test_timeout(self):
        provider = OpenRouterProvider(api_key="test-key")
        with patch(
            "nl2tsql.llm.providers.openrouter.requests.post",
            side_effect=requests.exceptions.Timeout("slow"),
        ):
            with pytest.raises(LLMTimeoutError) as exc_info:
                provider.complete(MESSAGES, timeout=7.0)

        assert "7.0s" in str(exc_info.value)
        assert exc_info.value.details["timeout_seconds"] == 7.0


class TestAzureOpenAIProvider:

    @pytest.fixture(autouse=True)
    def clear_env(self, monkeypatch):
        for name in ("AZURE_OPENAI_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_DEPLOYMENT"):
            monkeypatch.delenv(name, raising=False)

    def test_missing_configuration(self):
        with pytest.raises(LLMError) as exc_info:
            AzureOpenAIProvider()

        assert set(exc_info.value.details["missing"]) == {
            "AZURE_OPENAI_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_DEPLOYMENT"
        }

    def test_partial_configuration(self, monkeypatch):
        monkeypatch.setenv("AZURE_OPENAI_KEY", "k")
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://example.openai.azure.com")
        with pytest.raises(LLMError) as exc_info:
            AzureOpenAIProvider()
        assert exc_info.value.details["missing"] == ["AZURE_OPENAI_DEPLOYMENT"]

    def test_quotes_are_stripped_from_env(self, monkeypatch):
        monkeypatch.setenv("AZURE_OPENAI_KEY", '"secret"')
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "'https://example.openai.azure.com'")
        monkeypatch.setenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o")

        with patch("nl2tsql.llm.providers.azure_openai.openai.AzureOpenAI") as client_cls:
            provider = AzureOpenAIProvider()

        kwargs = client_cls.call_args.kwargs
        assert kwargs["api_key"] == "secret"
        assert kwargs["azure_endpoint"] == "https://example.openai.azure.com"
        assert provider.model_name == "gpt-4o"

    def test_completion_and_cost(self):
        with patch("nl2tsql.llm.providers.azure_openai.openai.AzureOpenAI") as client_cls:
            provider = AzureOpenAIProvider(endpoint="https://e", deployment="gpt-4o", api_key="k")

        message = MagicMock()
        message.content = "SELECT 1"
        choice = MagicMock()
        choice.message = message
        response = MagicMock()
        response.choices = [choice]
        response.usage.prompt_tokens = 1_000_000
        response.usage.completion_tokens = 0
        response.usage.total_tokens = 1_000_000
        client_cls.return_value.chat.completions.create.return_value = response

        text, usage = provider.complete(MESSAGES, max_tokens=250, timeout=5.0)

        assert text == "SELECT 1"
        assert usage.estimated_cost_usd == pytest.approx(2.50)
        create_kwargs = client_cls.return_value.chat.completions.create.call_args.kwargs
        assert create_kwargs["model"] == "gpt-4o"
        assert create_kwargs["max_tokens"] == 250
        assert create_kwargs["timeout"] == 5.0

    def test_no_choices(self):
        with patch("nl2tsql.llm.providers.azure_openai.openai.AzureOpenAI") as client_cls:
            provider = AzureOpenAIProvider(endpoint="https://e", deployment="gpt-4o", api_key="k")

        client_cls.return_value.chat.completions.create.return_value = MagicMock(choices=[])

        with pytest.raises(EmptyCompletionError):
            provider.complete(MESSAGES)

    def test_errors_are_structured(self):
        assert issubclass(LLMError, StructuredError)
        assert issubclass(LLMTimeoutError, StructuredError)
