from pydantic import BaseModel, Field
from typing import Literal, Optional

Outcome = Literal[
    "answered",
    "no_results",
    "execution_error",
    "extraction_empty",
    "rejected",
    "failed",
]

class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=4000)
    user_id: Optional[str] = None

class QueryResponse(BaseModel):
    answer: str
    outcome: Outcome
    sql: Optional[str] = None
    row_count: Optional[int] = Field(default=None, ge=0)
    trace_id: str
    cost_usd: float = 0.0
