from fastapi.testclient import TestClient

from quizproctor.api.routes import health as health_routes
from quizproctor.main import app


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


def test_health_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_database", _ok_check)

    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {"database": {"status": "ok"}},
    }


def test_live_ok() -> None:
    client = TestClient(app)
    response = client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "live"}


def test_health_returns_503_when_database_failed(monkeypatch) -> None:
    async def _failed_database() -> dict[str, str]:
        return {"status": "failed", "error": "connection refused"}

    monkeypatch.setattr(health_routes, "_check_database", _failed_database)

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["checks"]["database"]["error"] == "connection refused"
