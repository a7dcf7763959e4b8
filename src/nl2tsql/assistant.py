"""Question answering over Azure SQL.

One turn:
  1. Read recent history, record the question
  2. Read the schema catalog
  3. Ask the LLM for SQL
  4. extract -> normalize -> validate (refuse on failure)
  5. Execute the AcceptedStatement
  6. Decide presentation and render the answer
  7. Record the answer

Every terminal outcome produces exactly one user-facing line. Nothing here
retries; a refused statement is never corrected or re-validated.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .config import settings
from .conversation import ConversationStore
from .errors import ExtractionEmptyError, StructuredError, ValidationRejectedError
from .executor import SqlExecutor
from .extractor import extract, has_statement_keyword
from .llm.base import LLMProvider
from .narrator import Narrator
from .normalizer import normalize
from .presentation import ErrorReport, NoResults, decide_presentation, render
from .schemas import Outcome
from .sql_generator import SqlGenerator
from .validator import AcceptedStatement, validate

logger = logging.getLogger("nl2tsql")

EXTRACTION_EMPTY_TEXT = ExtractionEmptyError.user_message
REJECTED_TEXT = ValidationRejectedError.user_message
FAILED_TEXT = StructuredError.user_message


def prepare_statement(raw_text: str | None) -> AcceptedStatement:
    """Turn raw model output into a statement that may be executed.

    Raises:
        ExtractionEmptyError: No SELECT/WITH in the output
        ValidationRejectedError: The normalized statement failed the gate
    """
    extracted = extract(raw_text)
    if not extracted or not has_statement_keyword(extracted):
        raise ExtractionEmptyError(details={"residual": extracted[:200]})

    normalized = normalize(extracted)
    verdict = validate(normalized)
    if not verdict.accepted:
        raise ValidationRejectedError(verdict.reason or "Statement rejected", details={"sql": normalized})
    return verdict.statement


@dataclass
class AnswerResult:
    answer: str
    outcome: Outcome
    sql: Optional[str] = None
    row_count: Optional[int] = None
    elapsed_ms: float = 0.0
    tokens_input: int = 0
    tokens_output: int = 0
    cost_usd: float = 0.0


class QueryAssistant:
    def __init__(
        self,
        llm_provider: LLMProvider,
        executor: Optional[SqlExecutor] = None,
        memory: Optional[ConversationStore] = None,
        history_messages: int = settings.history_prompt_messages
    ) -> None:
        """Wire the assistant.

        Args:
            llm_provider: Provider used for both SQL generation and narration
            executor: Database executor (default: Azure SQL from env vars)
            memory: Conversation store (default: in-memory or REDIS_URL)
            history_messages: Prior messages sent along with each question
        """
        self._llm = llm_provider
        self._executor = executor or SqlExecutor()
        self._memory = memory or ConversationStore()
        self._history_messages = history_messages

    def answer(self, user_id: str, question: str) -> AnswerResult:
        start = time.perf_counter()
        question = (question or "").strip()

        history = self._memory.history(user_id, limit=self._history_messages)
        self._memory.append(user_id, "user", question)

        # Fresh per turn: last_usage is per-call state
        generator = SqlGenerator(self._llm)
        narrator = Narrator(self._llm)

        result = self._answer(question, history, generator, narrator)
        result.elapsed_ms = (time.perf_counter() - start) * 1000
        _add_usage(result, generator, narrator)

        self._memory.append(user_id, "assistant", result.answer)
        return result

    def _answer(
        self,
        question: str,
        history: list[dict],
        generator: SqlGenerator,
        narrator: Narrator
    ) -> AnswerResult:
        try:
            catalog = self._executor.fetch_schema()
            raw_text = generator.generate(question, catalog, history)
            statement = prepare_statement(raw_text)
        except ExtractionEmptyError as e:
            logger.warning("No SQL statement in model output: %s", e.details.get("residual"))
            return AnswerResult(answer=EXTRACTION_EMPTY_TEXT, outcome="extraction_empty")
        except ValidationRejectedError as e:
            return AnswerResult(
                answer=REJECTED_TEXT,
                outcome="rejected",
                sql=e.details.get("sql")
            )
        except StructuredError as e:
            logger.error("Failed to prepare SQL: %s", e.to_dict())
            return AnswerResult(answer=e.user_message, outcome="failed")
        except Exception:
            logger.exception("Failed to prepare SQL")
            return AnswerResult(answer=FAILED_TEXT, outcome="failed")

        logger.info("SQL to run: %s", statement.sql)
        rows = self._executor.run(statement)

        decision = decide_presentation(question, statement.sql, rows)
        text = render(decision, narrator)

        if isinstance(decision, ErrorReport):
            return AnswerResult(answer=text, outcome="execution_error", sql=statement.sql)
        if isinstance(decision, NoResults):
            return AnswerResult(answer=text, outcome="no_results", sql=statement.sql, row_count=0)
        return AnswerResult(answer=text, outcome="answered", sql=statement.sql, row_count=len(rows))


def _add_usage(result: AnswerResult, generator: SqlGenerator, narrator: Narrator) -> None:
    for usage in (generator.last_usage, narrator.last_usage):
        if usage is not None:
            result.tokens_input += usage.input_tokens
            result.tokens_output += usage.output_tokens
            result.cost_usd += usage.estimated_cost_usd
