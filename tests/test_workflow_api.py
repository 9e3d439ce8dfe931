"""Workflow API integration tests (LLM replaced by a scripted fake)."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from hierflow.api.container import Container, reset_container, set_container
from hierflow.domain.ports.config import AppConfig
from hierflow.main import app


def scripted_llm(outputs, fail_on=None):
    llm = MagicMock()
    llm.is_available = AsyncMock(return_value=True)
    calls = iter(range(1000))

    async def stream_gen(*args, **kwargs):
        index = next(calls)
        if index == fail_on:
            raise RuntimeError("model crashed")
        yield outputs[index] if index < len(outputs) else "ok"

    llm.generate_stream = stream_gen
    return llm


@pytest.fixture
def container():
    c = Container(config=AppConfig())
    c.llm = scripted_llm(["## Plan: 1. Do it", "## Enhancements: Looks good", "## Code: done"])
    set_container(c)
    yield c
    reset_container()


@pytest.fixture
async def client(container):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_reports_llm(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "hierflow"
    assert data["llm_provider"] == "ollama"
    assert data["llm_available"] is True


@pytest.mark.asyncio
async def test_workflow_runs_to_completion(client):
    resp = await client.post(
        "/workflow",
        json={"messages": [{"role": "user", "content": "Build a todo app"}], "run_id": "api-1"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["run_id"] == "api-1"
    assert data["agents"] == ["Planning Agent", "Enhance Agent", "Building Agent"]
    assert data["cancelled"] is False
    assert "## Code: done" in data["content"]


@pytest.mark.asyncio
async def test_workflow_rejects_empty_history(client):
    resp = await client.post("/workflow", json={"messages": []})

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_workflow_rejects_unknown_variant(client):
    resp = await client.post(
        "/workflow",
        json={"messages": [{"role": "user", "content": "x"}], "variant": "five_phase"},
    )

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_workflow_conflict_on_active_run(client, container):
    container.run_registry.start("busy")

    resp = await client.post(
        "/workflow",
        json={"messages": [{"role": "user", "content": "x"}], "run_id": "busy"},
    )

    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_workflow_failure_is_500(client, container):
    container.llm = scripted_llm(["## Plan: partial work"], fail_on=1)

    resp = await client.post("/workflow", json={"messages": [{"role": "user", "content": "x"}]})

    assert resp.status_code == 500
    data = resp.json()
    assert data["detail"] == "Workflow execution failed"
    assert "## Plan: partial work" in data["content"]
    assert "Enhance Agent" in data["content"]
    assert "Building Agent" not in data["content"]


@pytest.mark.asyncio
async def test_cancel_unknown_run_is_404(client):
    resp = await client.post("/workflow/missing/cancel")

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cancel_active_run(client, container):
    signal = container.run_registry.start("live")

    resp = await client.post("/workflow/live/cancel")

    assert resp.status_code == 200
    assert resp.json() == {"run_id": "live", "cancelled": True}
    assert signal.is_cancelled
