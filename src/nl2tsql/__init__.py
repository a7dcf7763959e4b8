"""Natural-language questions answered with read-only Azure SQL queries."""
from .extractor import extract
from .normalizer import normalize
from .validator import AcceptedStatement, ValidationVerdict, validate
from .presentation import decide_presentation, render

__all__ = [
    "extract",
    "normalize",
    "validate",
    "AcceptedStatement",
    "ValidationVerdict",
    "decide_presentation",
    "render",
]
