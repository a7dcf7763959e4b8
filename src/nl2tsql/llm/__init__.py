"""LLM abstraction layer for chat completions."""
from .base import LLMProvider, LLMUsage, LLMError, LLMTimeoutError, EmptyCompletionError

__all__ = ["LLMProvider", "LLMUsage", "LLMError", "LLMTimeoutError", "EmptyCompletionError"]
