"""Base classes for LLM provider abstraction.

This module defines the interface for chat-completion providers used to
generate T-SQL and result narratives. All providers implement LLMProvider.

Providers return raw text. Nothing a provider returns is trusted: SQL text
goes through extract -> normalize -> validate before it can run.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..errors import PlannerError, TimeoutError as StructuredTimeoutError


ChatMessage = Dict[str, str]  # {"role": "system"|"user"|"assistant", "content": "..."}


@dataclass(frozen=True)
class LLMUsage:
    """Token usage and cost tracking for LLM calls.

    Attributes:
        input_tokens: Number of tokens in the prompt
        output_tokens: Number of tokens in the response
        total_tokens: Total tokens used (input + output)
        estimated_cost_usd: Estimated cost in USD
    """
    input_tokens: int
    output_tokens: int
    total_tokens: int
    estimated_cost_usd: float


class LLMError(PlannerError):
    """Base exception for LLM provider failures (auth, HTTP, quota)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, retryable=True, details=details or {})


class EmptyCompletionError(LLMError):
    """Raised when the provider answers without any usable content."""
    pass


class LLMTimeoutError(StructuredTimeoutError):
    """Raised when an LLM request exceeds its timeout."""

    def __init__(self, message: str, timeout_seconds: Optional[float] = None):
        """Initialize LLM timeout error.

        Args:
            message: Human-readable error message
            timeout_seconds: The timeout that was exceeded
        """
        details = {}
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message=message,
            retryable=True,
            details=details
        )


class LLMProvider(ABC):
    """Abstract base class for chat-completion providers.

    Key Requirements:
    - Must return the assistant message text (possibly empty)
    - Must track token usage and cost
    - Must raise LLMTimeoutError on timeouts and LLMError on other failures
    - Must not log raw prompts or responses
    """

    @abstractmethod
    def complete(
        self,
        messages: list[ChatMessage],
        max_tokens: int = 400,
        temperature: float = 0.0,
        timeout: float = 60.0
    ) -> tuple[str, LLMUsage]:
        """Run a chat completion.

        Args:
            messages: Chat messages, oldest first
            max_tokens: Reply token cap
            temperature: Sampling temperature (0.0 for deterministic SQL)
            timeout: Maximum time to wait for the response in seconds

        Returns:
            Tuple of (response_text, usage_stats)

        Raises:
            LLMTimeoutError: If the request exceeds timeout
            LLMError: For other provider failures

        Example:
            >>> provider = MockProvider(response_text="SELECT 1")
            >>> text, usage = provider.complete(
            ...     [{"role": "user", "content": "How many users?"}]
            ... )
            >>> text
            'SELECT 1'
        """
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model or deployment identifier being used."""
        pass
