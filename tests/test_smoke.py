"""HTTP smoke tests for the FastAPI service."""
import logging

import pytest
from fastapi.testclient import TestClient

from nl2tsql.assistant import QueryAssistant
from nl2tsql.errors import ConfigurationError
from nl2tsql.logging import CorrelationIdFilter
from nl2tsql.llm.providers import MockProvider, OpenRouterProvider
from nl2tsql.main import app, build_llm_provider, set_assistant


@pytest.fixture
def client(executor, fake_db, memory):
    provider = MockProvider(response_text="SELECT DISTINCT City FROM dbo.Customers")
    fake_db.set_result(["City"], [("Paris",), ("Lyon",)])
    set_assistant(QueryAssistant(provider, executor=executor, memory=memory))
    yield TestClient(app)
    set_assistant(None)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_query_returns_answer(client):
    response = client.post("/query", json={"query": "List all cities", "user_id": "u1"})
    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "answered"
    assert body["answer"] == "Here are the distinct City values (2):\n- Paris\n- Lyon"
    assert body["sql"] == "SELECT DISTINCT City FROM dbo.Customers;"
    assert body["row_count"] == 2
    assert body["cost_usd"] == pytest.approx(0.001)


def test_correlation_id_is_echoed(client):
    response = client.post(
        "/query",
        json={"query": "List all cities"},
        headers={"x-correlation-id": "abc-123"},
    )
    assert response.headers["x-correlation-id"] == "abc-123"
    assert response.json()["trace_id"] == "abc-123"


def test_anonymous_user_gets_memory(client, memory):
    client.post("/query", json={"query": "List all cities"})
    assert memory.history("anonymous")[0] == {"role": "user", "content": "List all cities"}


def test_empty_query_is_rejected(client):
    response = client.post("/query", json={"query": ""})
    assert response.status_code == 422


def test_metrics_count_outcomes(client):
    client.post("/query", json={"query": "List all cities"})
    response = client.get("/metrics")
    assert response.status_code == 200
    assert 'assistant_requests_total{outcome="answered"}' in response.text


def test_no_provider_configured(monkeypatch):
    for name in ("AZURE_OPENAI_KEY", "OPENROUTER_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(ConfigurationError):
        build_llm_provider()


def test_openrouter_selected_without_azure(monkeypatch):
    monkeypatch.delenv("AZURE_OPENAI_KEY", raising=False)
    monkeypatch.setenv("OPENROUTER_API_KEY", "test-key")
    assert isinstance(build_llm_provider(), OpenRouterProvider)


def test_log_records_carry_correlation_id():
    record = logging.LogRecord("nl2tsql", logging.INFO, __file__, 1, "msg", None, None)
    assert CorrelationIdFilter().filter(record) is True
    assert record.correlation_id == "-"
