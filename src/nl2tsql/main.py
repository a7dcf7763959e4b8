import os

from fastapi import FastAPI, Request
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response

from .logging import setup_logging, correlation_id_middleware, logger
from .schemas import QueryRequest, QueryResponse
from .assistant import QueryAssistant
from .errors import ConfigurationError
from .llm.base import LLMProvider
from .llm.providers import AzureOpenAIProvider, OpenRouterProvider

setup_logging()
app = FastAPI(title="nl2tsql", version="0.1.0")
app.middleware("http")(correlation_id_middleware)

REQS = Counter("assistant_requests_total", "Total questions", ["outcome"])
LAT = Histogram("assistant_request_duration_ms", "Request duration in ms")
TOKENS_IN = Counter("assistant_tokens_input_total", "Total input tokens consumed")
TOKENS_OUT = Counter("assistant_tokens_output_total", "Total output tokens generated")
COST = Counter("assistant_cost_usd_total", "Total estimated cost in USD")

ANONYMOUS_USER = "anonymous"

_assistant: QueryAssistant | None = None


def build_llm_provider() -> LLMProvider:
    """Pick a provider from the environment.

    1. AzureOpenAIProvider (if AZURE_OPENAI_KEY is set)
    2. OpenRouterProvider (if OPENROUTER_API_KEY is set)
    """
    if os.getenv("AZURE_OPENAI_KEY"):
        return AzureOpenAIProvider()
    if os.getenv("OPENROUTER_API_KEY"):
        return OpenRouterProvider()
    raise ConfigurationError(
        "No LLM provider configured: set AZURE_OPENAI_KEY or OPENROUTER_API_KEY",
        details={"variables": ["AZURE_OPENAI_KEY", "OPENROUTER_API_KEY"]}
    )


def get_assistant() -> QueryAssistant:
    global _assistant
    if _assistant is None:
        _assistant = QueryAssistant(llm_provider=build_llm_provider())
    return _assistant


def set_assistant(assistant: QueryAssistant | None) -> None:
    """Replace the process-wide assistant (tests, custom wiring)."""
    global _assistant
    _assistant = assistant


@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.post("/query", response_model=QueryResponse)
def query(req: QueryRequest, request: Request):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    user_id = req.user_id or ANONYMOUS_USER

    result = get_assistant().answer(user_id, req.query)
    logger.info(
        "question answered user=%s outcome=%s elapsed_ms=%.1f",
        user_id, result.outcome, result.elapsed_ms
    )

    REQS.labels(outcome=result.outcome).inc()
    LAT.observe(result.elapsed_ms)
    if result.tokens_input > 0:
        TOKENS_IN.inc(result.tokens_input)
    if result.tokens_output > 0:
        TOKENS_OUT.inc(result.tokens_output)
    if result.cost_usd > 0:
        COST.inc(result.cost_usd)

    return QueryResponse(
        answer=result.answer,
        outcome=result.outcome,
        sql=result.sql,
        row_count=result.row_count,
        trace_id=correlation_id,
        cost_usd=result.cost_usd,
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("nl2tsql.main:app", host="127.0.0.1", port=int(os.getenv("PORT", "8080")), reload=True)
