import httpx
import pytest

from bitbucket_mcp.diagnostics import validate_environment

SERVER_ENV = {
    "BITBUCKET_URL": "https://git.example.com",
    "BITBUCKET_TOKEN": "s3cret",
    "BITBUCKET_DEFAULT_PROJECT": "PROJ",
}


def _levels(result):
    return {check["name"]: check["level"] for check in result["checks"]}


@pytest.mark.asyncio
async def test_offline_validation_never_echoes_secrets():
    result = await validate_environment(probe=False, environ=SERVER_ENV)

    assert result["status"] == "ok"
    env_check = next(c for c in result["checks"] if c["name"] == "environment")
    assert env_check["details"]["BITBUCKET_TOKEN"] == "<set>"
    assert "s3cret" not in repr(result)
    assert result["config"]["platform_type"] == "server"


@pytest.mark.asyncio
async def test_invalid_configuration_is_reported():
    result = await validate_environment(probe=False, environ={"BITBUCKET_URL": "https://bitbucket.org"})

    assert result["status"] == "error"
    assert _levels(result)["configuration"] == "error"
    assert "config" not in result


@pytest.mark.asyncio
async def test_missing_default_context_is_a_warning():
    env = {"BITBUCKET_URL": "https://git.example.com", "BITBUCKET_TOKEN": "tok"}

    result = await validate_environment(probe=False, environ=env)

    assert result["status"] == "warning"
    assert _levels(result)["default_context"] == "warning"


@pytest.mark.asyncio
async def test_probe_lists_projects_then_default_project_repositories():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path.endswith("/projects"):
            return httpx.Response(200, json={"values": [{"key": "PROJ"}, {"key": "OPS"}]})
        return httpx.Response(200, json={"values": [{"slug": "web"}]})

    result = await validate_environment(environ=SERVER_ENV, transport=httpx.MockTransport(handler))

    assert paths == [
        "/rest/api/1.0/projects",
        "/rest/api/1.0/projects/PROJ/repos",
    ]
    assert result["status"] == "ok"
    checks = {c["name"]: c for c in result["checks"]}
    assert checks["api_connection"]["details"]["sample"] == ["PROJ", "OPS"]
    assert checks["default_context"]["details"]["sample"] == ["web"]


@pytest.mark.asyncio
async def test_probe_reports_classified_auth_failure():
    def handler(request):
        return httpx.Response(401, json={"errors": [{"message": "Authentication failed"}]})

    result = await validate_environment(environ=SERVER_ENV, transport=httpx.MockTransport(handler))

    assert result["status"] == "error"
    check = next(c for c in result["checks"] if c["name"] == "api_connection")
    assert check["level"] == "error"
    assert "personal access token" in check["message"]
    assert check["details"]["status_code"] == 401


@pytest.mark.asyncio
async def test_html_login_page_is_reported_as_connection_error():
    def handler(request):
        return httpx.Response(
            200,
            headers={"Content-Type": "text/html; charset=utf-8"},
            content=b"<html><body>Sign in to continue</body></html>",
        )

    result = await validate_environment(environ=SERVER_ENV, transport=httpx.MockTransport(handler))

    assert result["status"] == "error"
    check = next(c for c in result["checks"] if c["name"] == "api_connection")
    assert check["level"] == "error"
    assert "SSO" in check["message"]
    assert check["details"]["content_type"] == "text/html; charset=utf-8"
    assert check["details"]["body_preview"].startswith("<html>")


@pytest.mark.asyncio
async def test_default_project_key_is_quoted_as_one_segment():
    raw_paths = []

    def handler(request):
        raw_paths.append(request.url.raw_path)
        return httpx.Response(200, json={"values": []})

    env = dict(SERVER_ENV, BITBUCKET_DEFAULT_PROJECT="A/B")
    result = await validate_environment(environ=env, transport=httpx.MockTransport(handler))

    assert result["status"] == "ok"
    assert raw_paths[1].split(b"?")[0] == b"/rest/api/1.0/projects/A%2FB/repos"
