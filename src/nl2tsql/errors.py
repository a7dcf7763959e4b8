"""Structured error taxonomy for nl2tsql.

A question can end badly in a handful of ways: the model produced no
statement, the read-only gate refused it, the database failed, the model
call failed, or the service is misconfigured. Each has a StructuredError
subclass whose class attributes fix its classification:

- ``category``: which stage failed
- ``severity``: how loudly to log it
- ``retryable``: advice for callers; the pipeline itself never retries
- ``user_message``: the single line shown to the user when a turn ends on it

Instances add a message and a details dict; ``to_dict()`` serializes both.

Example:
    >>> try:
    ...     raise ValidationRejectedError("Keyword 'DROP' is not allowed")
    ... except StructuredError as e:
    ...     payload = e.to_dict()
    ...     print(payload["category"])
    validation
"""
from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ErrorCategory(Enum):
    """Error categories for classification."""
    EXTRACTION = "extraction"       # No statement found in model output
    VALIDATION = "validation"       # Read-only gate rejected the statement
    EXECUTION = "execution"         # Database reported an error
    PLANNING = "planning"           # LLM generation errors
    TIMEOUT = "timeout"             # LLM or database call ran out of time
    STORAGE = "storage"             # Conversation store errors
    CONFIGURATION = "configuration"  # Missing or invalid settings
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class StructuredError(Exception):
    """Base class for all structured errors.

    Subclasses set the class-level defaults; any of them can be overridden
    per instance.
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN
    severity: ErrorSeverity = ErrorSeverity.ERROR
    retryable: bool = False
    user_message: str = "Failed to process request. Check server logs."
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        category: Optional[ErrorCategory] = None,
        severity: Optional[ErrorSeverity] = None,
        retryable: Optional[bool] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        if category is not None:
            self.category = category
        if severity is not None:
            self.severity = severity
        if retryable is not None:
            self.retryable = retryable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logs and API payloads.

        Returns:
            {
                "error_type": "ValidationRejectedError",
                "message": "Keyword 'DROP' is not allowed",
                "category": "validation",
                "severity": "error",
                "retryable": false,
                "user_message": "Sorry, I can only run SELECT/CTE queries against Azure SQL.",
                "details": {"sql": "..."},
                "timestamp": "2024-01-01T12:00:00+00:00"
            }
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "user_message": self.user_message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }


class ExtractionEmptyError(StructuredError):
    """No SELECT/WITH keyword could be found in the model output.

    Validation is moot for such text.
    """
    category = ErrorCategory.EXTRACTION
    severity = ErrorSeverity.WARNING
    user_message = "Sorry, I couldn't form a query for that question."
    default_message = "No SELECT or WITH statement found in model output"


class ValidationRejectedError(StructuredError):
    """The read-only gate rejected a statement.

    Never retryable: a rejected statement is not auto-corrected or
    re-validated with relaxed rules.

    Example:
        >>> raise ValidationRejectedError(
        ...     "Keyword 'DROP' is not allowed",
        ...     details={"sql": "SELECT 1; DROP TABLE t;"}
        ... )
    """
    category = ErrorCategory.VALIDATION
    user_message = "Sorry, I can only run SELECT/CTE queries against Azure SQL."
    default_message = "Statement rejected"


class ExecutionError(StructuredError):
    """The database failed while running an accepted statement."""
    category = ErrorCategory.EXECUTION
    retryable = True  # dropped connections, deadlock victims


class PlannerError(StructuredError):
    """The LLM call for SQL or narrative text failed."""
    category = ErrorCategory.PLANNING
    retryable = True


class TimeoutError(StructuredError):
    """An LLM call or database query exceeded its timeout."""
    category = ErrorCategory.TIMEOUT
    severity = ErrorSeverity.WARNING
    retryable = True


class StorageError(StructuredError):
    """Conversation store operation failed."""
    category = ErrorCategory.STORAGE
    severity = ErrorSeverity.INFO
    retryable = True


class ConfigurationError(StructuredError):
    """Required configuration is missing or invalid.

    Example:
        >>> raise ConfigurationError(
        ...     "Missing required environment variable: AZURE_SQL_SERVER",
        ...     details={"variables": ["AZURE_SQL_SERVER"]}
        ... )
    """
    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.CRITICAL
