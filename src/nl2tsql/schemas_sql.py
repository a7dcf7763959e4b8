"""Pydantic schemas for executor output."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Any

# Rows as column -> value mappings; the first row's keys define the columns
ResultSet = list[dict[str, Any]]

SchemaCatalog = dict[str, list[str]]


class SqlErrorSchema(BaseModel):
    """Structured execution error returned by the executor.

    The executor never lets a driver exception cross its boundary; this is
    what the caller gets instead.
    """
    error: str = Field(
        ...,
        description="Error message reported by the database",
        examples=["Invalid column name 'revenu'."]
    )

    model_config = ConfigDict(frozen=True)
