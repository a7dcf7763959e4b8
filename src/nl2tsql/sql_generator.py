"""SQL Generator - natural language to T-SQL using an LLM.

The LLM proposes SQL; it never decides what runs. The raw text returned
here goes through extract -> normalize -> validate before execution.

Architecture:
    Question + recent history + schema catalog
         ↓
    LLM Provider (complete)
         ↓
    Raw model text (untrusted)
"""
import logging
from typing import Optional

from .config import settings
from .llm.base import LLMProvider, LLMUsage, ChatMessage
from .schemas_sql import SchemaCatalog

logger = logging.getLogger("nl2tsql")


def describe_schema(catalog: SchemaCatalog) -> str:
    """Render the catalog as one ``schema.table: col, col`` line per table."""
    return "".join(f"{table}: {', '.join(columns)}\n" for table, columns in catalog.items())


class SqlGenerator:
    """Ask an LLM for a read-only Azure SQL query.

    Example:
        >>> from nl2tsql.llm.providers import MockProvider
        >>> generator = SqlGenerator(MockProvider(response_text="SELECT COUNT(*) FROM dbo.Orders"))
        >>> generator.generate("How many orders?", {"dbo.Orders": ["Id", "Total"]})
        'SELECT COUNT(*) FROM dbo.Orders'
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        max_tokens: int = settings.sql_max_tokens,
        timeout: float = settings.llm_timeout_seconds
    ):
        self._llm = llm_provider
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._last_usage: Optional[LLMUsage] = None

    def generate(
        self,
        question: str,
        catalog: SchemaCatalog,
        history: Optional[list[ChatMessage]] = None
    ) -> str:
        """Generate raw SQL text for a question.

        Args:
            question: The user's question
            catalog: Tables and columns the model may use
            history: Earlier messages of this conversation, oldest first

        Returns:
            The model's raw response text (may be empty)

        Raises:
            LLMTimeoutError: If the model call times out
            LLMError: For other provider failures
        """
        messages = self.build_messages(question, catalog, history)
        text, usage = self._llm.complete(
            messages,
            max_tokens=self._max_tokens,
            temperature=0.0,
            timeout=self._timeout
        )
        self._last_usage = usage
        logger.info("SQL generated by %s (%d tokens)", self._llm.model_name, usage.total_tokens)
        return text

    def build_messages(
        self,
        question: str,
        catalog: SchemaCatalog,
        history: Optional[list[ChatMessage]] = None
    ) -> list[ChatMessage]:
        """System prompt, then prior turns, then the question."""
        messages: list[ChatMessage] = [{"role": "system", "content": self._build_system_prompt(catalog)}]
        for message in history or []:
            messages.append({"role": message["role"], "content": message["content"]})
        messages.append({"role": "user", "content": question})
        return messages

    def _build_system_prompt(self, catalog: SchemaCatalog) -> str:
        return f"""You convert user questions into **Azure SQL (Microsoft SQL Server T-SQL)**.
Use ONLY these tables/columns exactly as listed:
{describe_schema(catalog)}
RULES:
- Return ONLY a single read-only query (SELECT or CTE + SELECT). No DDL/DML.
- Do NOT use "USE <db>" or touch other databases.
- Do NOT invent tables/columns not in the schema.
- Prefer T-SQL idioms: TOP n or OFFSET/FETCH (NOT LIMIT).
- If user says "list" or "show", do not summarize; return the rows the user asked for.
- If user asks "how many/total/count", return a COUNT query.
- Never add filters (e.g., dates) unless explicitly requested.
"""

    @property
    def model_name(self) -> str:
        """Return the name of the underlying LLM model."""
        return self._llm.model_name

    @property
    def last_usage(self) -> Optional[LLMUsage]:
        """Token usage from the last generate() call, or None."""
        return self._last_usage
