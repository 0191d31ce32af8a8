"""Tests for Health endpoint."""

import logging
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from aidtrack import main


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "env" in data
    assert "version" in data


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req-abc"})
    assert response.headers["X-Request-ID"] == "req-abc"

    response = await client.get("/health")
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_failed_request_is_still_logged(monkeypatch, caplog):
    def unreachable():
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(main, "engine", SimpleNamespace(connect=unreachable))
    transport = ASGITransport(app=main.app, raise_app_exceptions=False)

    with caplog.at_level(logging.INFO, logger="aidtrack.main"):
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/health", headers={"X-Request-ID": "req-fail"})

    assert response.status_code == 500
    failed = [r for r in caplog.records if r.getMessage() == "request failed"]
    assert len(failed) == 1
    assert failed[0].levelno == logging.ERROR
    assert failed[0].status_code == 500
    assert failed[0].request_id == "req-fail"
    assert failed[0].route == "/health"
