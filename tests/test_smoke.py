"""
Simple smoke tests to verify basic functionality.
"""

from datetime import datetime


def test_health_probe(client):
    """The liveness probe needs no secret and reports a parseable timestamp."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "running"
    assert data["service"] == "Test Token Sender"
    assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None


def test_health_probe_ignores_bad_secret(client):
    response = client.get("/", headers={"x-api-secret": "wrong"})
    assert response.status_code == 200


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["environment"] == "test"
    assert data["api_secret_configured"] is True
    assert data["api_secret_is_default"] is False


def test_openapi_available(client):
    """Test that OpenAPI documentation is available."""
    response = client.get("/docs")
    assert response.status_code == 200
    schema = client.get("/openapi.json").json()
    assert "/send-tokens" in schema["paths"]


def test_default_secret_is_flagged():
    from core.settings import DEFAULT_API_SECRET, Settings

    assert Settings(API_SECRET=DEFAULT_API_SECRET).api_secret_is_default is True
    assert Settings(API_SECRET="rotated").api_secret_is_default is False


def test_settings_from_environment(monkeypatch):
    from core.settings import Settings

    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("API_SECRET", "from-env")
    settings = Settings()

    assert settings.PORT == 8080
    assert settings.API_SECRET == "from-env"


def test_settings_defaults(monkeypatch):
    from core.settings import Settings

    monkeypatch.delenv("PORT", raising=False)
    settings = Settings()

    assert settings.PORT == 3000
    assert settings.CONFIRMATION_TIMEOUT_SECONDS == 120


def test_request_id_is_echoed(client):
    response = client.get("/", headers={"x-request-id": "req-123"})
    assert response.headers["x-request-id"] == "req-123"

    generated = client.get("/").headers["x-request-id"]
    assert len(generated) == 32
