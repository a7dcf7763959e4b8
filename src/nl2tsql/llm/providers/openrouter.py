"""OpenRouter LLM provider.

OpenRouter exposes many hosted models behind one OpenAI-compatible
chat-completions endpoint. Useful for running the assistant without an
Azure OpenAI deployment.
"""
import os

import requests

from ..base import LLMProvider, LLMUsage, LLMError, EmptyCompletionError, LLMTimeoutError, ChatMessage


class OpenRouterProvider(LLMProvider):
    """OpenRouter API provider.

    Requires OPENROUTER_API_KEY environment variable or explicit API key.

    Example:
        >>> provider = OpenRouterProvider(model="openai/gpt-4o-mini")
        >>> text, usage = provider.complete(
        ...     [{"role": "user", "content": "What is 2+2?"}]
        ... )
    """

    API_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"

    def __init__(self, model: str | None = None, api_key: str | None = None):
        """Initialize OpenRouter provider.

        Args:
            model: Model to use (default: from OPENROUTER_MODEL env var or openai/gpt-4o-mini)
            api_key: API key (default: from OPENROUTER_API_KEY env var)

        Raises:
            LLMError: If API key is not provided
        """
        self._api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not self._api_key:
            raise LLMError("OPENROUTER_API_KEY environment variable not set or api_key not provided")

        self._model = model or os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")

    def complete(
        self,
        messages: list[ChatMessage],
        max_tokens: int = 400,
        temperature: float = 0.0,
        timeout: float = 60.0
    ) -> tuple[str, LLMUsage]:
        payload = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "X-Title": "nl2tsql",
        }

        try:
            response = requests.post(
                self.API_ENDPOINT,
                json=payload,
                headers=headers,
                timeout=timeout
            )
        except requests.exceptions.Timeout as e:
            raise LLMTimeoutError(
                f"OpenRouter request exceeded timeout of {timeout}s: {e}",
                timeout_seconds=timeout
            )
        except requests.exceptions.RequestException as e:
            raise LLMError(f"OpenRouter API request failed: {e}")

        if response.status_code != 200:
            raise LLMError(
                f"OpenRouter API returned status {response.status_code}: {response.text}",
                details={"status_code": response.status_code}
            )

        try:
            response_data = response.json()
        except ValueError as e:
            raise LLMError(f"OpenRouter returned invalid JSON: {e}")

        choices = response_data.get("choices") or []
        if not choices:
            raise EmptyCompletionError("Empty response from OpenRouter")

        text = (choices[0].get("message") or {}).get("content") or ""
        return text, self._calculate_usage(response_data.get("usage") or {})

    def _calculate_usage(self, usage_obj: dict) -> LLMUsage:
        """OpenRouter reports cost in USD alongside the token counts."""
        input_tokens = usage_obj.get("prompt_tokens", 0)
        output_tokens = usage_obj.get("completion_tokens", 0)
        total_tokens = usage_obj.get("total_tokens", input_tokens + output_tokens)

        return LLMUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total_tokens,
            estimated_cost_usd=float(usage_obj.get("total_cost", 0.0))
        )

    @property
    def model_name(self) -> str:
        """Return the OpenRouter model being used."""
        return self._model
