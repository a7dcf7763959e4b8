#!/usr/bin/env python3
"""
Check the Azure SQL connection and print the schema catalog the assistant
will show the model.
Used before deploying to confirm the AZURE_SQL_* settings.
"""
import sys
from pathlib import Path

# Add src to path so we can import from nl2tsql
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nl2tsql.db import test_connection
from nl2tsql.executor import SqlExecutor
from nl2tsql.sql_generator import describe_schema


def check_database():
    """Connect, then list every table and its columns."""
    if not test_connection():
        print("Error: could not connect to Azure SQL (check AZURE_SQL_* variables)")
        sys.exit(1)
    print("Connected successfully!")

    catalog = SqlExecutor().fetch_schema()
    if not catalog:
        print("Warning: no tables visible to this login")
        return
    print(f"{len(catalog)} tables:")
    print(describe_schema(catalog), end="")


if __name__ == "__main__":
    check_database()
