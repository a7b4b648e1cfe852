from starlette.applications import Starlette
from starlette.testclient import TestClient

from bitbucket_mcp import server
from bitbucket_mcp.http_clients import build_http_client
from bitbucket_mcp.http_routes import healthz
from bitbucket_mcp.platform_config import resolve_config
from bitbucket_mcp.translator import OperationTranslator


def _configured(monkeypatch):
    config = resolve_config(
        {
            "base_url": "https://bitbucket.org",
            "username": "alice",
            "token": "tok",
            "default_context": "acme",
        }
    )
    monkeypatch.setattr(server, "_translator", OperationTranslator(config, build_http_client(config)))


def _unconfigured(monkeypatch):
    monkeypatch.setattr(server, "_translator", None)
    for var in ("BITBUCKET_URL", "BITBUCKET_USERNAME", "BITBUCKET_TOKEN", "BITBUCKET_PASSWORD", "BITBUCKET_PLATFORM"):
        monkeypatch.delenv(var, raising=False)


def test_healthz_payload_reports_platform(monkeypatch):
    _configured(monkeypatch)

    payload, status_code = healthz._build_health_payload()

    assert status_code == 200
    assert payload["status"] == "ok"
    assert payload["server"] == "bitbucket-mcp"
    assert payload["bitbucket"] == {
        "configured": True,
        "platform_type": "cloud",
        "api_base_url": "https://api.bitbucket.org/2.0",
        "auth_method": "basic",
        "default_context": "acme",
    }
    assert "bitbucket" in payload["metrics"]
    assert "tok" not in str(payload["bitbucket"])


def test_healthz_payload_reports_configuration_error(monkeypatch):
    _unconfigured(monkeypatch)

    payload, status_code = healthz._build_health_payload()

    assert status_code == 500
    assert payload["status"] == "error"
    assert payload["bitbucket"]["configured"] is False
    assert payload["bitbucket"]["error"]["category"] == "configuration"


def test_healthz_route(monkeypatch):
    _configured(monkeypatch)
    app = Starlette()
    healthz.register_healthz_route(app)

    response = TestClient(app).get("/healthz")

    assert response.status_code == 200
    assert response.json()["bitbucket"]["platform_type"] == "cloud"
