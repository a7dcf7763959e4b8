"""Execution service: runs validated statements and reads the schema.

Only an AcceptedStatement can be executed. Driver exceptions never cross
this boundary; they come back as SqlErrorSchema values.
"""
import logging
from decimal import Decimal
from typing import Any, Callable, ContextManager

from .db import get_connection
from .errors import ExecutionError, StructuredError
from .schemas_sql import ResultSet, SchemaCatalog, SqlErrorSchema
from .validator import AcceptedStatement

logger = logging.getLogger("nl2tsql")

SCHEMA_QUERY = """
SELECT TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME
FROM INFORMATION_SCHEMA.COLUMNS
ORDER BY TABLE_SCHEMA, TABLE_NAME, ORDINAL_POSITION
"""


class SqlExecutor:
    """Run accepted statements against Azure SQL.

    Args:
        connection_factory: Callable returning a connection context manager.
                            Defaults to ``db.get_connection``; tests pass a
                            fake.
    """

    def __init__(self, connection_factory: Callable[[], ContextManager[Any]] = get_connection) -> None:
        self._connect = connection_factory

    def run(self, statement: AcceptedStatement) -> ResultSet | SqlErrorSchema:
        """Execute a validated statement.

        Returns:
            List of row dicts, or SqlErrorSchema carrying the database message.

        Raises:
            TypeError: If ``statement`` is not an AcceptedStatement
        """
        if not isinstance(statement, AcceptedStatement):
            raise TypeError("SqlExecutor.run() requires an AcceptedStatement from validate()")

        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(statement.sql)
                    if not cur.description:
                        return []
                    columns = [desc[0] for desc in cur.description]
                    return [
                        {col: _serialize(value) for col, value in zip(columns, row)}
                        for row in cur.fetchall()
                    ]
        except Exception as e:
            logger.error("SQL error: %s", e)
            return SqlErrorSchema(error=str(e) or e.__class__.__name__)

    def fetch_schema(self) -> SchemaCatalog:
        """Read table -> column names from INFORMATION_SCHEMA.

        Returns:
            {"schema.table": [column, ...]} in ordinal order

        Raises:
            ExecutionError: If the catalog query fails
            ConfigurationError: If connection settings are missing
        """
        catalog: SchemaCatalog = {}
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_QUERY)
                    for table_schema, table_name, column_name in cur.fetchall():
                        catalog.setdefault(f"{table_schema}.{table_name}", []).append(column_name)
        except StructuredError:
            raise
        except Exception as e:
            raise ExecutionError(
                f"Failed to read schema catalog: {e}",
                details={"source": "INFORMATION_SCHEMA.COLUMNS"}
            ) from e
        return catalog


def _serialize(value: Any) -> Any:
    # Decimal -> float so summaries and JSON encoding work
    if isinstance(value, Decimal):
        return float(value)
    return value
