"""Azure OpenAI LLM provider.

Calls a chat-completions deployment on Azure OpenAI through the ``openai``
package's AzureOpenAI client.
"""
import os

import openai

from ..base import LLMProvider, LLMUsage, LLMError, EmptyCompletionError, LLMTimeoutError, ChatMessage


DEFAULT_API_VERSION = "2024-08-01-preview"


def _env(name: str) -> str:
    # .env files often carry quotes around secrets
    return (os.getenv(name) or "").replace('"', "").replace("'", "")


class AzureOpenAIProvider(LLMProvider):
    """Azure OpenAI chat-completions provider.

    Requires AZURE_OPENAI_KEY, AZURE_OPENAI_ENDPOINT and
    AZURE_OPENAI_DEPLOYMENT (or explicit arguments).

    Pricing (GPT-4o class deployments):
    - $2.50/MTok input, $10.00/MTok output

    Example:
        >>> provider = AzureOpenAIProvider(
        ...     endpoint="https://my-resource.openai.azure.com",
        ...     deployment="gpt-4o",
        ...     api_key="..."
        ... )
        >>> text, usage = provider.complete(
        ...     [{"role": "user", "content": "What is 2+2?"}]
        ... )
    """

    INPUT_COST_PER_MTOK = 2.50
    OUTPUT_COST_PER_MTOK = 10.00

    def __init__(
        self,
        endpoint: str | None = None,
        deployment: str | None = None,
        api_key: str | None = None,
        api_version: str | None = None
    ):
        """Initialize Azure OpenAI provider.

        Raises:
            LLMError: If key, endpoint or deployment is missing
        """
        self._api_key = api_key or _env("AZURE_OPENAI_KEY")
        self._endpoint = endpoint or _env("AZURE_OPENAI_ENDPOINT")
        self._deployment = deployment or _env("AZURE_OPENAI_DEPLOYMENT")
        self._api_version = api_version or os.getenv("AZURE_OPENAI_API_VERSION", DEFAULT_API_VERSION)

        missing = [
            name for name, value in (
                ("AZURE_OPENAI_KEY", self._api_key),
                ("AZURE_OPENAI_ENDPOINT", self._endpoint),
                ("AZURE_OPENAI_DEPLOYMENT", self._deployment),
            ) if not value
        ]
        if missing:
            raise LLMError(
                f"Azure OpenAI is not configured: {', '.join(missing)} not set",
                details={"missing": missing}
            )

        self._client = openai.AzureOpenAI(
            api_key=self._api_key,
            azure_endpoint=self._endpoint,
            api_version=self._api_version,
        )

    def complete(
        self,
        messages: list[ChatMessage],
        max_tokens: int = 400,
        temperature: float = 0.0,
        timeout: float = 60.0
    ) -> tuple[str, LLMUsage]:
        try:
            response = self._client.chat.completions.create(
                model=self._deployment,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            )
        except openai.APITimeoutError as e:
            raise LLMTimeoutError(
                f"Azure OpenAI request exceeded timeout of {timeout}s: {e}",
                timeout_seconds=timeout
            )
        except openai.OpenAIError as e:
            raise LLMError(f"Azure OpenAI API error: {e}")

        if not response.choices:
            raise EmptyCompletionError("Empty response from Azure OpenAI")

        text = response.choices[0].message.content or ""
        return text, self._calculate_usage(response.usage)

    def _calculate_usage(self, usage_obj) -> LLMUsage:
        if usage_obj is None:
            return LLMUsage(input_tokens=0, output_tokens=0, total_tokens=0, estimated_cost_usd=0.0)

        input_tokens = usage_obj.prompt_tokens
        output_tokens = usage_obj.completion_tokens

        estimated_cost = (
            (input_tokens / 1_000_000) * self.INPUT_COST_PER_MTOK +
            (output_tokens / 1_000_000) * self.OUTPUT_COST_PER_MTOK
        )

        return LLMUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=usage_obj.total_tokens,
            estimated_cost_usd=estimated_cost
        )

    @property
    def model_name(self) -> str:
        """Return the Azure deployment being used."""
        return self._deployment
