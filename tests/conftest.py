"""Pytest fixtures and configuration.

Provides shared fakes for the database and conversation store so unit
tests never need Azure SQL, Redis or a live LLM.
"""
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeCursor:
    """DB-API cursor stand-in returning canned results per statement."""

    def __init__(self, db: "FakeDatabase") -> None:
        self._db = db
        self.description = None
        self._rows: list[tuple] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def execute(self, sql: str) -> None:
        self._db.executed.append(sql)
        if self._db.error is not None and "INFORMATION_SCHEMA" not in sql:
            raise self._db.error
        if "INFORMATION_SCHEMA" in sql:
            self.description = [("TABLE_SCHEMA",), ("TABLE_NAME",), ("COLUMN_NAME",)]
            self._rows = list(self._db.schema_rows)
        else:
            self.description = [(col,) for col in self._db.columns] if self._db.columns else None
            self._rows = list(self._db.rows)

    def fetchall(self) -> list[tuple]:
        return self._rows

    def fetchone(self):
        return self._rows[0] if self._rows else None


class FakeConnection:
    def __init__(self, db: "FakeDatabase") -> None:
        self._db = db

    def cursor(self) -> FakeCursor:
        return FakeCursor(self._db)


class FakeDatabase:
    """Configurable fake behind a connection factory."""

    def __init__(self) -> None:
        self.columns: list[str] = []
        self.rows: list[tuple] = []
        self.schema_rows: list[tuple] = [
            ("dbo", "Customers", "Id"),
            ("dbo", "Customers", "Name"),
            ("dbo", "Customers", "City"),
            ("dbo", "Orders", "Id"),
            ("dbo", "Orders", "CustomerId"),
            ("dbo", "Orders", "Total"),
        ]
        self.error: Exception | None = None
        self.executed: list[str] = []

    def set_result(self, columns: list[str], rows: list[tuple]) -> None:
        self.columns = columns
        self.rows = rows

    @contextmanager
    def connect(self):
        yield FakeConnection(self)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def executor(fake_db: FakeDatabase):
    from nl2tsql.executor import SqlExecutor
    return SqlExecutor(connection_factory=fake_db.connect)


@pytest.fixture
def memory():
    """In-memory conversation store (no Redis)."""
    from nl2tsql.conversation import ConversationStore
    return ConversationStore(max_messages=10, redis_url=None)
