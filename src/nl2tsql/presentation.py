"""Result presentation policy.

Decides how a result set reaches the user:

    execution error       -> ErrorReport
    no rows               -> NoResults
    list-style question   -> Enumerate (one column) or Tabulate
      or SELECT DISTINCT     (more than 50 rows: first 50 plus the total)
    anything else         -> Narrate (row count + numeric min/max facts,
                             turned into prose by the narrator)

``decide_presentation`` is pure. ``render`` turns a decision into text and
is the only place the narrator collaborator is called.
"""
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol, Union

from .schemas_sql import ResultSet, SqlErrorSchema

# Fixed policy: up to 50 rows are listed in full, more are truncated to 50
PREVIEW_LIMIT = 50

WANTS_LIST_PATTERN = re.compile(
    r"\b(list|show|display|give me all|enumerate)\b", re.IGNORECASE
)
DISTINCT_PATTERN = re.compile(r"\bselect\s+distinct\b", re.IGNORECASE)

NO_RESULTS_TEXT = "No results found."
NARRATIVE_FALLBACK_TEXT = "Here are the results."


@dataclass(frozen=True)
class ErrorReport:
    message: str


@dataclass(frozen=True)
class NoResults:
    pass


@dataclass(frozen=True)
class Enumerate:
    """Values of a single-column result, listed one per line."""
    column: str
    values: tuple
    distinct: bool = False


@dataclass(frozen=True)
class Tabulate:
    """Rows listed as text.

    Attributes:
        columns: Column names taken from the first row
        rows: Rows to show (at most PREVIEW_LIMIT when truncated)
        total_rows: Row count of the full result
        truncated_at: PREVIEW_LIMIT when rows were cut, else None
    """
    columns: tuple
    rows: tuple
    total_rows: int
    truncated_at: int | None = None


@dataclass(frozen=True)
class ColumnRange:
    column: str
    minimum: float
    maximum: float


@dataclass(frozen=True)
class NarrativeFacts:
    """The only numbers the narrator is allowed to talk about."""
    row_count: int
    column_ranges: tuple = field(default_factory=tuple)

    def to_text(self) -> str:
        lines = [f"The query returned {self.row_count} rows."]
        for rng in self.column_ranges:
            lines.append(
                f'Column "{rng.column}" ranges from '
                f"{_format_value(rng.minimum)} to {_format_value(rng.maximum)}."
            )
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class Narrate:
    question: str
    sql: str
    facts: NarrativeFacts


PresentationDecision = Union[ErrorReport, NoResults, Enumerate, Tabulate, Narrate]


class NarrativeService(Protocol):
    def narrate(self, prompt: str) -> str:
        """Return prose for ``prompt``, or an empty string."""
        ...


def decide_presentation(
    question: str,
    executed_sql: str,
    rows: ResultSet | SqlErrorSchema,
) -> PresentationDecision:
    """Choose the output mode for a finished query.

    Args:
        question: The user's original question
        executed_sql: The statement that was run
        rows: The result set, or the structured error from the executor

    Returns:
        One of ErrorReport, NoResults, Enumerate, Tabulate, Narrate
    """
    if isinstance(rows, SqlErrorSchema):
        return ErrorReport(message=rows.error)
    if not rows:
        return NoResults()

    wants_list = bool(WANTS_LIST_PATTERN.search(question or ""))
    is_distinct = bool(DISTINCT_PATTERN.search(executed_sql or ""))
    columns = tuple(rows[0].keys())

    if wants_list or is_distinct:
        if len(rows) <= PREVIEW_LIMIT:
            if len(columns) == 1:
                column = columns[0]
                return Enumerate(
                    column=column,
                    values=tuple(row.get(column) for row in rows),
                    distinct=is_distinct,
                )
            return Tabulate(columns=columns, rows=tuple(rows), total_rows=len(rows))

        return Tabulate(
            columns=columns,
            rows=tuple(rows[:PREVIEW_LIMIT]),
            total_rows=len(rows),
            truncated_at=PREVIEW_LIMIT,
        )

    return Narrate(
        question=question,
        sql=executed_sql,
        facts=summarize_numeric_columns(rows),
    )


def summarize_numeric_columns(rows: ResultSet) -> NarrativeFacts:
    """Row count plus min/max for every numeric column.

    A column counts as numeric when its value in the first row is a number;
    NULLs and non-numeric values in later rows are skipped.
    """
    ranges = []
    for column, first_value in rows[0].items():
        if not _is_number(first_value):
            continue
        values = [row.get(column) for row in rows if _is_number(row.get(column))]
        if values:
            ranges.append(ColumnRange(column=column, minimum=min(values), maximum=max(values)))
    return NarrativeFacts(row_count=len(rows), column_ranges=tuple(ranges))


def build_narrative_prompt(decision: Narrate) -> str:
    """Build the narrator prompt for a Narrate decision."""
    return f"""A user asked: "{decision.question}"
We executed this T-SQL query:
{decision.sql}

High-level facts:
{decision.facts.to_text()}
Write a brief, clear, human-readable summary. Do not invent numbers that are not in the facts above. If counts exist in the rows, mention them. No SQL or code fences in your answer.
"""


def render(decision: PresentationDecision, narrator: NarrativeService | None = None) -> str:
    """Turn a presentation decision into the text sent to the user."""
    if isinstance(decision, ErrorReport):
        return f"SQL Error: {decision.message}"

    if isinstance(decision, NoResults):
        return NO_RESULTS_TEXT

    if isinstance(decision, Enumerate):
        label = "distinct " if decision.distinct else ""
        values = "\n- ".join(_format_value(v) for v in decision.values)
        return f"Here are the {label}{decision.column} values ({len(decision.values)}):\n- {values}"

    if isinstance(decision, Tabulate):
        if decision.truncated_at is None:
            lines = [
                "- " + ", ".join(f"{col}: {_format_value(row.get(col))}" for col in decision.columns)
                for row in decision.rows
            ]
            return f"Here are the results ({decision.total_rows} rows):\n" + "\n".join(lines)

        header = ", ".join(decision.columns)
        lines = [
            " | ".join(_format_value(row.get(col)) for col in decision.columns)
            for row in decision.rows
        ]
        return (
            f"Found {decision.total_rows} rows. Showing first {decision.truncated_at}:\n"
            f"{header}\n{'-' * len(header)}\n" + "\n".join(lines)
        )

    if isinstance(decision, Narrate):
        text = ""
        if narrator is not None:
            text = (narrator.narrate(build_narrative_prompt(decision)) or "").strip()
        return text or NARRATIVE_FALLBACK_TEXT

    raise TypeError(f"Unknown presentation decision: {type(decision).__name__}")


def _is_number(value: Any) -> bool:
    # bool is an int subclass; BIT columns are not measurements
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _format_value(value: Any) -> str:
    if value is None:
        return "NULL"
    return str(value)
