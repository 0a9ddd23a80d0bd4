"""
Health, readiness, and middleware tests.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from app import main
from app.core.middleware import REQUEST_ID_HEADER, SECURITY_HEADERS
from app.main import app


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_ready_check(client: AsyncClient):
    """Ready endpoint should return status ready."""
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_api_root_lists_account_endpoints(client: AsyncClient):
    response = await client.get("/api/v1/")
    assert response.status_code == 200
    data = response.json()
    assert data["api"] == "v1"
    assert "/users/sync" in data["endpoints"]
    assert "/organizations" in data["endpoints"]


@pytest.mark.asyncio
async def test_security_headers_present(client: AsyncClient):
    response = await client.get("/health")
    for header, value in SECURITY_HEADERS.items():
        assert response.headers[header] == value


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/health", headers={REQUEST_ID_HEADER: "req-123"})
    assert response.headers[REQUEST_ID_HEADER] == "req-123"


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient):
    response = await client.get("/health")
    assert len(response.headers[REQUEST_ID_HEADER]) == 32


class TestLifespan:
    def test_startup_and_shutdown_hooks(self, monkeypatch):
        events = []

        class RecordingResolver:
            async def close(self):
                events.append("identity.closed")

        async def fake_init_db():
            events.append("db.initialised")

        monkeypatch.setattr(main, "init_db", fake_init_db)
        monkeypatch.setattr(main, "get_identity_resolver", lambda: RecordingResolver())
        monkeypatch.setattr(main.settings, "debug", True)

        with TestClient(main.create_app()) as client:
            assert client.get("/health").status_code == 200
            assert events == ["db.initialised"]

        assert events == ["db.initialised", "identity.closed"]

    def test_no_schema_creation_outside_debug(self, monkeypatch):
        events = []

        async def fake_init_db():
            events.append("db.initialised")

        monkeypatch.setattr(main, "init_db", fake_init_db)
        monkeypatch.setattr(main.settings, "debug", False)

        with TestClient(main.create_app()):
            pass

        assert events == []
