"""Tests for the SSE exploration endpoint."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeClient
from topicwalk.errors import UpstreamError, UpstreamTimeoutError
from topicwalk.pipeline import ExplorationPipeline
from topicwalk.web.server import ExploreRequest, _event_stream, create_app

ORIGIN = "http://localhost:3000"


@pytest.fixture(autouse=True)
def _fresh_sse_exit_event(monkeypatch):
    # sse-starlette keeps a module-level exit event bound to the first loop.
    from sse_starlette.sse import AppStatus

    monkeypatch.setattr(AppStatus, "should_exit_event", None, raising=False)


def _client(fake: FakeClient | None = None) -> TestClient:
    pipeline = ExplorationPipeline(fake or FakeClient())
    return TestClient(create_app(pipeline=pipeline, cors_origins=[ORIGIN]))


def _events(text: str) -> list[dict]:
    return [
        json.loads(line[len("data:"):].strip())
        for line in text.splitlines()
        if line.startswith("data:")
    ]


def test_explore_streams_progress_then_data_then_complete() -> None:
    response = _client().post(
        "/api/explore",
        json={"topic": "Photosynthesis", "parentId": "node-1", "depth": 2, "pathHistory": []},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = _events(response.text)
    types = [e["type"] for e in events]
    assert types[-2:] == ["data", "progress"]
    assert all(t == "progress" for t in types[:-2])

    progress = [e["progress"] for e in events if e["type"] == "progress"]
    assert progress == sorted(progress)
    assert progress[0] == 0 and progress[-1] == 100
    assert events[-1]["message"] == "Exploration complete!"

    data = events[-2]
    assert data["topic"] == "Photosynthesis"
    assert data["parentId"] == "node-1"
    assert data["depth"] == 2
    result = data["result"]
    assert len(result["examples"]) == 2
    assert len(result["explorePaths"]) == 3
    assert result["detailedSummary"]["text"]


def test_path_history_and_context_reach_upstream() -> None:
    fake = FakeClient()
    _client(fake).post(
        "/api/explore",
        json={
            "topic": "Minas Tirith",
            "context": "The white city",
            "pathHistory": [{"title": "Middle-earth", "description": "Tolkien's world"}],
        },
    )
    topic, context, _ = fake.calls[0]
    assert topic == "Minas Tirith"
    assert "Parent focus: The white city" in context
    assert "Middle-earth (Root topic)" in context


@pytest.mark.parametrize("body", [{}, {"topic": ""}, {"topic": "   "}])
def test_missing_topic_is_rejected(body: dict) -> None:
    fake = FakeClient()
    response = _client(fake).post("/api/explore", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Topic is required"}
    assert fake.calls == []


def test_invalid_json_is_rejected() -> None:
    response = _client().post(
        "/api/explore",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_wrongly_typed_body_is_rejected() -> None:
    response = _client().post("/api/explore", json={"topic": "x", "depth": -1})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_upstream_timeout_yields_single_error_event() -> None:
    fake = FakeClient(error=UpstreamTimeoutError(30.0))
    response = _client(fake).post("/api/explore", json={"topic": "Photosynthesis"})

    assert response.status_code == 200
    events = _events(response.text)
    errors = [e for e in events if e["type"] == "error"]
    assert len(errors) == 1
    assert "timed out" in errors[0]["message"]
    assert events[-1]["type"] == "error"
    assert not any(e["type"] == "data" for e in events)


def test_upstream_body_is_not_leaked() -> None:
    fake = FakeClient(error=UpstreamError(500, "secret internal detail"))
    response = _client(fake).post("/api/explore", json={"topic": "Photosynthesis"})
    assert "secret internal detail" not in response.text
    assert _events(response.text)[-1]["type"] == "error"


def test_unexpected_failure_uses_generic_message() -> None:
    fake = FakeClient(error=RuntimeError("stack trace material"))
    response = _client(fake).post("/api/explore", json={"topic": "Photosynthesis"})
    events = _events(response.text)
    assert events[-1] == {"type": "error", "message": "Error occurred during exploration"}
    assert "stack trace material" not in response.text


def test_preflight_returns_no_content() -> None:
    response = _client().options(
        "/api/explore",
        headers={
            "Origin": ORIGIN,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 204
    assert response.headers["access-control-allow-origin"] == ORIGIN
    assert "POST" in response.headers["access-control-allow-methods"]


def test_cors_header_on_stream() -> None:
    response = _client().post(
        "/api/explore", json={"topic": "Photosynthesis"}, headers={"Origin": ORIGIN}
    )
    assert response.headers["access-control-allow-origin"] == ORIGIN


def test_health_reports_cache_size() -> None:
    client = _client()
    assert client.get("/api/health").json() == {"status": "ok", "cacheEntries": 0}
    client.post("/api/explore", json={"topic": "Photosynthesis"})
    assert client.get("/api/health").json()["cacheEntries"] == 1


def test_request_model_accepts_camel_case() -> None:
    req = ExploreRequest.model_validate(
        {"topic": " Rings ", "parentId": "p", "pathHistory": [{"title": "Saturn"}]}
    )
    exploration = req.to_exploration()
    assert exploration.topic == "Rings"
    assert exploration.path_titles == ["Saturn"]


def test_disconnect_cancels_running_exploration() -> None:
    fake = FakeClient(delay=5.0)
    pipeline = ExplorationPipeline(fake)
    req = ExploreRequest(topic="Photosynthesis")

    async def run():
        stream = _event_stream(pipeline, req)
        first = json.loads((await stream.__anext__())["data"])
        (task,) = asyncio.all_tasks() - {asyncio.current_task()}

        # Client goes away while the upstream call is still sleeping.
        await stream.aclose()
        await asyncio.gather(task, return_exceptions=True)
        return first, task

    first, task = asyncio.run(run())

    assert first == {"type": "progress", "message": "Initiating exploration...", "progress": 0}
    assert task.cancelled()
    assert len(fake.calls) == 1
    assert len(pipeline.cache) == 0
