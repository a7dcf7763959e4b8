"""Database connection helper for Azure SQL."""
import os
from contextlib import contextmanager
from typing import Any, Generator

import pymssql

from .errors import ConfigurationError


def _unquote(value: str) -> str:
    # Remove accidental quotes copied into .env files
    return value.replace('"', "").replace("'", "")


class DatabaseConfig:
    """Database configuration from environment variables."""

    def __init__(self) -> None:
        self.server = os.getenv("AZURE_SQL_SERVER", "")
        self.port = int(os.getenv("AZURE_SQL_PORT", "1433"))
        self.name = os.getenv("AZURE_SQL_DATABASE", "")
        self.user = os.getenv("AZURE_SQL_USER", "")
        self.password = _unquote(os.getenv("AZURE_SQL_PASSWORD", ""))
        self.login_timeout = int(os.getenv("AZURE_SQL_LOGIN_TIMEOUT", "30"))
        self.query_timeout = int(os.getenv("AZURE_SQL_QUERY_TIMEOUT", "60"))

    def require(self) -> None:
        """Raise ConfigurationError when a connection setting is missing."""
        missing = [
            name for name, value in (
                ("AZURE_SQL_SERVER", self.server),
                ("AZURE_SQL_DATABASE", self.name),
                ("AZURE_SQL_USER", self.user),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable: {', '.join(missing)}",
                details={"variables": missing}
            )


# Global config instance
_db_config = DatabaseConfig()


@contextmanager
def get_connection(config: DatabaseConfig | None = None) -> Generator[Any, None, None]:
    """Get a database connection as a context manager.

    Usage:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT ...")
    """
    config = config or _db_config
    config.require()
    conn = pymssql.connect(
        server=config.server,
        port=config.port,
        user=config.user,
        password=config.password,
        database=config.name,
        login_timeout=config.login_timeout,
        timeout=config.query_timeout,
    )
    try:
        yield conn
    finally:
        conn.close()


def test_connection() -> bool:
    """Test if database connection works.

    Returns:
        True if connection succeeds, False otherwise.
    """
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
        return True
    except Exception:
        return False
