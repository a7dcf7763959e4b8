"""Rewrite extracted SQL into Azure SQL (T-SQL) surface syntax.

Models trained mostly on PostgreSQL/MySQL examples emit ``LIMIT``,
``ILIKE``, ``true``/``false`` and double-quoted strings even when told to
write T-SQL. The passes below fix those spellings with plain text rewrites.
Order matters: the paging pass must see the statement before the separator
pass appends the final ``;``.

The output of ``normalize`` is a fixed point: running it again changes
nothing.
"""
import re

DOUBLE_EQUALS_PATTERN = re.compile(r"={2,}")

# Quoted segments are matched first and kept, so a LIMIT inside a literal or
# identifier is never touched. "LIMIT true" is read as "LIMIT 1".
LIMIT_PATTERN = re.compile(
    r"""\[[^\]]*\]|`[^`]*`|'(?:[^']|'')*'|"[^"]*"|\blimit\s+(\d+|true\b|false\b)""",
    re.IGNORECASE,
)
ORDER_BY_PATTERN = re.compile(r"\border\s+by\b", re.IGNORECASE)
TRAILING_SEPARATORS_PATTERN = re.compile(r"(?:\s*;)+\s*$")

# A selected column: a whole [bracketed identifier] or a run of non-space,
# non-comma characters
_COLUMN = r"(\[[^\]]+\]|[^\s,]+)"
ORDER_COLUMN_PATTERNS = (
    re.compile(r"\bselect\s+distinct\s+" + _COLUMN, re.IGNORECASE),
    re.compile(r"\bselect\s+top\s+\d+\s+" + _COLUMN, re.IGNORECASE),
    re.compile(r"\bselect\s+" + _COLUMN, re.IGNORECASE),
)
# Valid in ORDER BY, but gives no ordering guarantee
CONSTANT_ORDER = "(SELECT NULL)"

ILIKE_PATTERN = re.compile(r"\bilike\b", re.IGNORECASE)
TRUE_PATTERN = re.compile(r"\btrue\b", re.IGNORECASE)
FALSE_PATTERN = re.compile(r"\bfalse\b", re.IGNORECASE)

# Leftmost match wins, so a quote inside [brackets], `backticks` or an
# existing 'string' is consumed by that alternative and never rewritten.
QUOTED_SEGMENT_PATTERN = re.compile(
    r"""\[[^\]]*\]|`[^`]*`|'(?:[^']|'')*'|"([^"]*)\""""
)


def normalize(text: str | None) -> str:
    """Normalize a statement to T-SQL.

    Passes, in order:
      1. ``==`` (or longer runs) becomes ``=``
      2. ``LIMIT n`` becomes ``ORDER BY ... OFFSET 0 ROWS FETCH NEXT n ROWS ONLY``
      3. ``ILIKE`` becomes ``LIKE`` (default collation is case-insensitive)
      4. ``true``/``false`` become ``1``/``0``
      5. ``"literal"`` becomes ``'literal'``
      6. exactly one trailing ``;``

    Args:
        text: Extracted statement

    Returns:
        The normalized statement, always ending with a single ``;``

    Example:
        >>> normalize("SELECT name FROM users LIMIT 5")
        'SELECT name FROM users ORDER BY name OFFSET 0 ROWS FETCH NEXT 5 ROWS ONLY;'
    """
    fixed = (text or "").strip()

    fixed = DOUBLE_EQUALS_PATTERN.sub("=", fixed)
    fixed = convert_limit(fixed)
    fixed = ILIKE_PATTERN.sub("LIKE", fixed)
    fixed = TRUE_PATTERN.sub("1", fixed)
    fixed = FALSE_PATTERN.sub("0", fixed)
    fixed = convert_double_quoted_literals(fixed)

    fixed = TRAILING_SEPARATORS_PATTERN.sub("", fixed)
    return fixed + ";"


def convert_limit(sql: str) -> str:
    """Translate a ``LIMIT n`` clause into OFFSET/FETCH paging.

    T-SQL only accepts OFFSET/FETCH after an ORDER BY, so one is synthesized
    when the statement has none. Every LIMIT is removed, the first one sets
    the page size.
    """
    row_counts = []

    def _drop_limit(match: re.Match) -> str:
        if match.group(1) is None:
            return match.group(0)
        row_counts.append(_row_count(match.group(1)))
        return ""

    while True:
        found = len(row_counts)
        sql = LIMIT_PATTERN.sub(_drop_limit, sql)
        # Removing "LIMIT 5" from "LIMIT LIMIT 5 5" exposes another one
        if len(row_counts) == found:
            break

    if not row_counts:
        return sql

    sql = TRAILING_SEPARATORS_PATTERN.sub("", sql).strip()
    if not ORDER_BY_PATTERN.search(QUOTED_SEGMENT_PATTERN.sub("''", sql)):
        sql += f" ORDER BY {pick_order_column(sql)}"

    return f"{sql} OFFSET 0 ROWS FETCH NEXT {row_counts[0]} ROWS ONLY"


def _row_count(value: str) -> int:
    lowered = value.lower()
    if lowered == "true":
        return 1
    if lowered == "false":
        return 0
    return int(value)


def pick_order_column(sql: str) -> str:
    """Choose an ORDER BY expression for a statement that lacks one.

    Priority: the column after SELECT DISTINCT, after SELECT TOP n, after a
    bare SELECT. Wildcards and expressions cannot be ordered by name, so
    they fall back to a constant ordering.
    """
    for pattern in ORDER_COLUMN_PATTERNS:
        match = pattern.search(sql)
        if match:
            column = match.group(1)
            if _is_orderable(column):
                return column
            return CONSTANT_ORDER
    return CONSTANT_ORDER


def _is_orderable(column: str) -> bool:
    if column == "*" or column.endswith(".*"):
        return False
    if "(" in column or ")" in column:
        return False
    if "'" in column or '"' in column:
        return False
    if column.upper() in ("DISTINCT", "TOP", "FROM"):
        return False
    return True


def convert_double_quoted_literals(sql: str) -> str:
    """Turn ``"text"`` into ``'text'``, leaving other quoting untouched.

    Single quotes inside the converted literal are doubled so the result
    stays a single literal.
    """
    def _replace(match: re.Match) -> str:
        content = match.group(1)
        if content is None:
            # Bracket/backtick identifier or single-quoted string
            return match.group(0)
        return "'" + content.replace("'", "''") + "'"

    return QUOTED_SEGMENT_PATTERN.sub(_replace, sql)
