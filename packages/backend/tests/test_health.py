"""Health endpoint tests."""

import pytest

from userhub.api import health


@pytest.mark.asyncio
async def test_health_returns_ok(client, monkeypatch):
    """Health endpoint should return server status and version."""

    async def ok():
        return None

    monkeypatch.setattr(health, "ping_database", ok)

    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["cache"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_degraded_without_database(client, monkeypatch):
    async def down():
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(health, "ping_database", down)

    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["database"].startswith("error:")
