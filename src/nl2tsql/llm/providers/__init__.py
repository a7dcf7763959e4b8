"""LLM provider implementations."""
from .mock import MockProvider
from .azure_openai import AzureOpenAIProvider
from .openrouter import OpenRouterProvider

__all__ = ["MockProvider", "AzureOpenAIProvider", "OpenRouterProvider"]
