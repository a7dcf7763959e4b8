"""Read-only gate for LLM-generated T-SQL.

The validator is the only thing standing between model output and the
database. It accepts a statement only when it is unambiguously a single
read-only query, and it is the only code that can construct an
``AcceptedStatement``, the type the executor requires.

Rules (all must hold):
  1. After removing comments, the statement starts with SELECT or WITH
  2. No forbidden keyword appears anywhere in the ORIGINAL text
  3. No statement separator appears before the trailing one

Rule 2 scans the unstripped text while rule 1 scans the stripped text, so
a verb hidden inside a comment still rejects the statement. Do not unify
the two passes.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from .extractor import strip_comments

logger = logging.getLogger("nl2tsql")

FORBIDDEN_KEYWORDS = (
    "update", "delete", "insert", "drop", "alter", "create",
    "merge", "truncate", "exec", "execute",
)
# Permission changes, SELECT ... INTO (creates a table) and server or batch
# control statements are rejected too
EXTRA_FORBIDDEN_KEYWORDS = (
    "grant", "revoke", "deny", "into",
    "updatetext", "writetext", "waitfor", "kill", "dbcc",
    "backup", "restore", "shutdown", "reconfigure",
    "openrowset", "opendatasource", "openquery", "use", "declare",
)

FORBIDDEN_PATTERN = re.compile(
    r"\b(" + "|".join(FORBIDDEN_KEYWORDS + EXTRA_FORBIDDEN_KEYWORDS) + r")\b"
    # Any sp_exec* procedure (sp_executesql, sp_execute, ...)
    r"|\b(sp_exec\w*)",
    re.IGNORECASE,
)

START_PATTERN = re.compile(r"^(select|with)\b")

# Literals and bracket identifiers may legitimately contain ';'
_LITERAL_PATTERN = re.compile(r"'(?:[^']|'')*'|\[[^\]]*\]|\"[^\"]*\"")

_TOKEN_PATTERN = re.compile(r"\(|\)|\w+")
# A SELECT after one of these continues the same query
SET_OPERATORS = ("union", "all", "intersect", "except")

_CONSTRUCTION_KEY = object()


class AcceptedStatement:
    """A statement that passed the read-only gate.

    Only ``validate`` can build one; anything that executes SQL takes this
    type instead of ``str`` so an unvalidated statement has no path to the
    database.
    """

    __slots__ = ("_sql",)

    def __init__(self, sql: str, _key: object = None) -> None:
        if _key is not _CONSTRUCTION_KEY:
            raise TypeError("AcceptedStatement can only be created by validate()")
        self._sql = sql

    @property
    def sql(self) -> str:
        return self._sql

    def __str__(self) -> str:
        return self._sql

    def __repr__(self) -> str:
        return f"AcceptedStatement({self._sql!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AcceptedStatement):
            return self._sql == other._sql
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._sql)


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of the read-only gate.

    Attributes:
        accepted: True only if every rule passed
        reason: Why the statement was rejected (None when accepted)
        statement: The AcceptedStatement to execute (None when rejected)
    """
    accepted: bool
    reason: Optional[str] = None
    statement: Optional[AcceptedStatement] = None

    def to_dict(self) -> dict:
        return {"accepted": self.accepted, "reason": self.reason}


def validate(text: str | None) -> ValidationVerdict:
    """Decide whether ``text`` is a single read-only query.

    Deterministic and side-effect free apart from a WARNING log line on
    rejection.

    Args:
        text: Normalized statement

    Returns:
        ValidationVerdict; ``statement`` is set only when accepted

    Example:
        >>> validate("SELECT name FROM users;").accepted
        True
        >>> validate("SELECT 1; DROP TABLE users;").reason
        "Keyword 'DROP' is not allowed"
    """
    verdict = _check(text or "")
    if not verdict.accepted:
        logger.warning("SQL rejected: %s", verdict.reason)
    return verdict


def _check(text: str) -> ValidationVerdict:
    stripped = strip_comments(text).strip().lower()
    if not stripped:
        return _reject("Statement is empty")

    # Rule 1: start token checked on the comment-stripped text
    if not START_PATTERN.match(stripped):
        return _reject("Only SELECT or WITH statements are allowed")

    # Rule 2: forbidden keywords checked on the ORIGINAL text, comments
    # included. Keep this asymmetry with rule 1.
    match = FORBIDDEN_PATTERN.search(text)
    if match:
        return _reject(f"Keyword '{match.group(0).upper()}' is not allowed")

    # Rule 3: one statement only; a trailing separator is fine
    body = _LITERAL_PATTERN.sub("", stripped)
    body = body.rstrip(" \t\r\n\f\v;")
    if ";" in body:
        return _reject("Multiple statements are not allowed")
    # T-SQL needs no separator between statements: "SELECT 1 SELECT 2"
    if _count_top_level_selects(body) > 1:
        return _reject("Multiple statements are not allowed")

    return ValidationVerdict(
        accepted=True,
        statement=AcceptedStatement(text, _key=_CONSTRUCTION_KEY),
    )


def _reject(reason: str) -> ValidationVerdict:
    return ValidationVerdict(accepted=False, reason=reason)


def _count_top_level_selects(body: str) -> int:
    """Count SELECTs outside parentheses that start a new query."""
    count = 0
    depth = 0
    previous = ""
    for token in _TOKEN_PATTERN.findall(body):
        if token == "(":
            depth += 1
        elif token == ")":
            depth = max(depth - 1, 0)
        elif token == "select" and depth == 0 and previous not in SET_OPERATORS:
            count += 1
        previous = token
    return count
