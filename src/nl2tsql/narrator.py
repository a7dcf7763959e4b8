"""Narrative generation for result summaries.

The narrator turns a fact sheet (row count, numeric ranges) into a short
answer. It never raises: a failed or empty completion returns "" and the
presentation layer falls back to a generic acknowledgement.
"""
import logging
from typing import Optional

from .config import settings
from .errors import StructuredError
from .llm.base import LLMProvider, LLMUsage

logger = logging.getLogger("nl2tsql")


class Narrator:
    """LLM-backed NarrativeService."""

    def __init__(
        self,
        llm_provider: LLMProvider,
        max_tokens: int = settings.narrative_max_tokens,
        timeout: float = settings.llm_timeout_seconds
    ):
        self._llm = llm_provider
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._last_usage: Optional[LLMUsage] = None

    def narrate(self, prompt: str) -> str:
        """Return prose for the prompt, or "" if the model gave nothing usable."""
        self._last_usage = None
        try:
            text, usage = self._llm.complete(
                [{"role": "system", "content": prompt}],
                max_tokens=self._max_tokens,
                temperature=0.0,
                timeout=self._timeout
            )
        except StructuredError as e:
            logger.warning("Narrative generation failed: %s", e.message)
            return ""

        self._last_usage = usage
        return (text or "").strip()

    @property
    def last_usage(self) -> Optional[LLMUsage]:
        return self._last_usage
