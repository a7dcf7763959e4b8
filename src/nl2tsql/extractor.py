"""Statement extraction from raw LLM output.

Models wrap SQL in markdown fences, prefix it with a label such as
"Here is the SQL:", and sprinkle comments through it. The extractor peels all
of that away and returns the text starting at the first SELECT or WITH.

This is a regex heuristic, not a parser. A ``with`` that appears in prose
before the real statement is taken as the start; the validator is the
safety net for whatever comes out of here.
"""
import re

# ``` optionally followed by a language tag: either "sql" or a single word
# ending the fence line. SELECT and WITH are never tags, so "```SELECT 1```"
# and "```SELECT\n  Name ..." keep their first keyword.
FENCE_PATTERN = re.compile(
    r"```(?:sql\b|(?!(?:select|with)\b)[\w+-]+[ \t]*(?=\r?\n|$))?",
    re.IGNORECASE,
)

# The first non-blank line, when it ends with a colon ("Here is the SQL:")
LABEL_LINE_PATTERN = re.compile(r"\A\s*[^\n]*?:[ \t]*(?:\r?\n|\Z)")

BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
LINE_COMMENT_PATTERN = re.compile(r"--[^\n]*")

SELECT_PATTERN = re.compile(r"\bselect\b", re.IGNORECASE)
WITH_PATTERN = re.compile(r"\bwith\b", re.IGNORECASE)


def strip_comments(text: str) -> str:
    """Remove /* block */ and -- line comments."""
    text = BLOCK_COMMENT_PATTERN.sub("", text)
    return LINE_COMMENT_PATTERN.sub("", text)


def extract(raw_text: str | None) -> str:
    """Isolate the first plausible SQL statement from model output.

    Args:
        raw_text: The model's full response, possibly markdown-wrapped

    Returns:
        Text from the first whole-word SELECT/WITH to the end, trimmed.
        When neither keyword is present, the trimmed residual text is
        returned; callers must treat it as unusable.

    Example:
        >>> extract("Here is the SQL:\\n```sql\\nSELECT 1 -- one\\n```")
        'SELECT 1'
    """
    if not raw_text:
        return ""

    # Fences become line breaks so fenced and unfenced text merge cleanly
    text = FENCE_PATTERN.sub("\n", raw_text).strip()
    text = LABEL_LINE_PATTERN.sub("", text, count=1).strip()
    text = strip_comments(text)

    starts = [
        match.start()
        for match in (SELECT_PATTERN.search(text), WITH_PATTERN.search(text))
        if match is not None
    ]
    if not starts:
        return text.strip()

    return text[min(starts):].strip()


def has_statement_keyword(text: str) -> bool:
    """Return True if ``text`` contains a whole-word SELECT or WITH."""
    return bool(SELECT_PATTERN.search(text) or WITH_PATTERN.search(text))
