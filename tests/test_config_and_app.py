from nephrowatch import config


def test_settings_defaults_and_cache():
    settings = config.get_settings()
    second = config.get_settings()

    assert settings is second
    assert settings.app_name == "NephroWatch API"
    assert settings.api_prefix == "/api"
    assert settings.default_doctor_name == "Dr. Kouakou"
    assert settings.seed_default_thresholds_on_startup is True


def test_main_app_metadata():
    from nephrowatch.main import app

    assert app.title == config.settings.app_name
    assert app.version == config.settings.app_version
    assert app.docs_url == "/docs"
    paths = {getattr(route, "path", None) for route in app.routes}
    assert {
        "/health",
        "/api/patients/",
        "/api/consultations/",
        "/api/alerts/{alert_id}/read",
        "/api/thresholds/resolve",
        "/api/stats/",
    } <= paths


def test_health_endpoints(client):
    health = client.get("/health")
    root = client.get("/")

    assert health.status_code == 200
    assert health.json() == {"status": "healthy", "service": "nephrowatch-api"}
    assert root.json()["health"] == "/health"


def test_request_id_and_security_headers(client):
    response = client.get("/health", headers={"X-Request-Id": "req-123"})

    assert response.headers["X-Request-Id"] == "req-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_error_envelope_carries_request_id(client):
    response = client.get("/api/patients/404", headers={"X-Request-Id": "req-404"})

    assert response.status_code == 404
    assert response.json() == {
        "error": {
            "message": "Patient not found",
            "status_code": 404,
            "type": "http_error",
            "request_id": "req-404",
        }
    }


def test_api_key_is_enforced_when_configured(client, monkeypatch):
    from nephrowatch.api import deps

    monkeypatch.setattr(deps.settings, "api_key", "secret")

    assert client.get("/api/patients/").status_code == 401
    assert client.get("/api/patients/", headers={"X-API-Key": "secret"}).status_code == 200
    # Health stays public.
    assert client.get("/health").status_code == 200


def test_unhandled_errors_use_server_error_envelope(client, patient_repository, monkeypatch):
    async def _boom(**_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(patient_repository, "list_patients", _boom)

    response = client.get("/api/patients/")

    assert response.status_code == 500
    assert response.json()["error"]["type"] == "server_error"


def test_lifespan_initializes_and_closes_database(monkeypatch):
    from fastapi.testclient import TestClient

    from nephrowatch import main

    calls = []

    async def _init_db():
        calls.append("init")

    async def _close_db():
        calls.append("close")

    monkeypatch.setattr(main, "init_db", _init_db)
    monkeypatch.setattr(main, "close_db", _close_db)

    with TestClient(main.app) as client:
        assert client.get("/health").status_code == 200

    assert calls == ["init", "close"]
