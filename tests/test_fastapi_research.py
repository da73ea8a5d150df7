"""
Test Suite: FastAPI research contract

Exercises the HTTP surface without search backends or generation providers:
a FakeOrchestrator is injected through dependency overrides, so responses are
deterministic and in-memory.

Covers health, API-key guardrails, request validation, DTO mapping, error
mapping (ResearchError -> 502) and the server-sent-event stream.
"""

import json

import pytest
from fastapi.testclient import TestClient

from fakes import make_source
from models.research import FactCheckResult, ResearchResult
from orchestrator.research_orchestrator import ResearchError, ResearchEvent, ResearchState
from server.app import create_app

HEADERS = {"X-API-Key": "dev-key-1"}


def _result():
    return ResearchResult(
        query_id="abc123def4567890",
        content="The Security Council has fifteen members.",
        sources=[make_source("https://un.org/members", 0.9, 0.95)],
        confidence=0.82,
        processing_time_ms=42,
        fact_checks=[FactCheckResult(claim="15 members", verdict="true", confidence=0.9)],
    )


class FakeOrchestrator:
    def __init__(self, error=None):
        self.error = error
        self.queries = []
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    async def aclose(self):
        self.closed = True

    async def research(self, query, *, on_chunk=None):
        self.queries.append(query)
        if self.error:
            raise self.error
        return _result()

    async def research_stream(self, query):
        self.queries.append(query)
        yield ResearchEvent(type="chunk", text="The Security Council ")
        if self.error:
            raise self.error
        yield ResearchEvent(type="chunk", text="has fifteen members.")
        yield ResearchEvent(type="complete", result=_result())


@pytest.fixture()
def orchestrator():
    return FakeOrchestrator()


@pytest.fixture()
def app(orchestrator, monkeypatch):
    monkeypatch.setenv("API_KEYS", "dev-key-1,dev-key-2")
    app = create_app()

    from server import dependencies as deps

    # Clear singleton cache to avoid cross-test leakage
    deps.reset_orchestrator()

    app.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_research_requires_api_key(client):
    r = client.post("/v1/research", json={"query": "UN members"})
    assert r.status_code == 401

    r = client.post("/v1/research", json={"query": "UN members"}, headers={"X-API-Key": "wrong"})
    assert r.status_code == 401


def test_research_without_configured_keys_is_500(client, monkeypatch):
    monkeypatch.delenv("API_KEYS")
    r = client.post("/v1/research", json={"query": "UN members"}, headers=HEADERS)
    assert r.status_code == 500


@pytest.mark.parametrize(
    "payload",
    [
        {"query": ""},
        {"query": "    "},
        {"query": "UN members", "priority": "urgent"},
        {"context": "no query"},
    ],
)
def test_research_rejects_invalid_requests(client, orchestrator, payload):
    r = client.post("/v1/research", json=payload, headers=HEADERS)
    assert r.status_code == 422
    assert orchestrator.queries == []


def test_research_success_maps_dto(client, orchestrator):
    payload = {
        "query": "UN Security Council members",
        "context": "UNSC crisis committee",
        "source_hints": ["UNHCR.org"],
        "priority": "high",
    }
    r = client.post("/v1/research", json=payload, headers=HEADERS)

    assert r.status_code == 200
    body = r.json()
    assert body["query_id"] == "abc123def4567890"
    assert body["sources"][0]["domain"] == "un.org"
    assert body["fact_checks"][0]["verdict"] == "true"
    assert 0.0 <= body["confidence"] <= 1.0

    query = orchestrator.queries[0]
    assert query.requested_source_hints == frozenset({"unhcr.org"})
    assert query.priority.value == "high"
    assert query.context == "UNSC crisis committee"


def test_research_error_maps_to_502(app):
    from server import dependencies as deps

    failing = FakeOrchestrator(error=ResearchError("boom", query_id="q", state=ResearchState.AGGREGATE))
    app.dependency_overrides[deps.get_orchestrator] = lambda: failing
    r = TestClient(app).post("/v1/research", json={"query": "UN members"}, headers=HEADERS)

    assert r.status_code == 502
    assert r.json()["detail"] == "Research failed"


def _events(text):
    events = []
    for block in text.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


def test_stream_emits_chunks_then_complete(client):
    r = client.post("/v1/research/stream", json={"query": "UN members"}, headers=HEADERS)

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    events = _events(r.text)
    assert [name for name, _ in events] == ["chunk", "chunk", "complete"]
    assert events[0][1]["text"] == "The Security Council "
    assert events[-1][1]["query_id"] == "abc123def4567890"


def test_stream_failure_reported_as_error_event(app):
    from server import dependencies as deps

    failing = FakeOrchestrator(error=ResearchError("boom", query_id="q1"))
    app.dependency_overrides[deps.get_orchestrator] = lambda: failing
    r = TestClient(app).post("/v1/research/stream", json={"query": "UN members"}, headers=HEADERS)

    events = _events(r.text)
    assert [name for name, _ in events] == ["chunk", "error"]
    assert events[-1][1]["query_id"] == "q1"


def test_stream_requires_api_key(client):
    r = client.post("/v1/research/stream", json={"query": "UN members"})
    assert r.status_code == 401


def test_lifespan_starts_and_closes_orchestrator(app, orchestrator):
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
        assert orchestrator.started
    assert orchestrator.closed
