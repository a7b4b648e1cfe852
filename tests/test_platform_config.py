import logging

import pytest

from bitbucket_mcp.exceptions import ConfigurationError
from bitbucket_mcp.platform_config import (
    BasicCredentials,
    PlatformType,
    TokenCredentials,
    load_settings_from_env,
    resolve_config,
)


def test_cloud_url_resolves_to_cloud_with_basic_credentials():
    config = resolve_config(
        {
            "base_url": "https://bitbucket.org",
            "username": "alice",
            "token": "tok",
            "default_context": "acme",
        }
    )

    assert config.platform_type is PlatformType.CLOUD
    assert config.is_cloud
    assert config.context_key == "workspace"
    assert config.api_base_url == "https://api.bitbucket.org/2.0"
    assert config.credentials == BasicCredentials(username="alice", password="tok")
    assert config.auth_method == "basic"
    assert config.default_context == "acme"


def test_server_url_with_token_uses_bearer():
    config = resolve_config({"base_url": "https://git.example.com/", "token": "tok"})

    assert config.platform_type is PlatformType.SERVER
    assert config.context_key == "project"
    assert config.api_base_url == "https://git.example.com/rest/api/1.0"
    assert config.credentials == TokenCredentials(token="tok")
    assert config.auth_method == "bearer"


def test_server_username_password_uses_basic():
    config = resolve_config(
        {"base_url": "https://git.example.com", "username": "bob", "password": "pw"}
    )

    assert config.credentials == BasicCredentials(username="bob", password="pw")
    assert config.auth_method == "basic"
    assert config.has_password is True


@pytest.mark.parametrize("refinement", ["datacenter", "Data-Center", "dc"])
def test_datacenter_refinement(refinement):
    config = resolve_config(
        {"base_url": "https://git.example.com", "token": "tok", "platform": refinement}
    )

    assert config.platform_type is PlatformType.DATACENTER
    assert config.platform_type.label == "Data Center"
    assert config.api_base_url == "https://git.example.com/rest/api/1.0"


def test_refinement_is_ignored_for_cloud_urls():
    config = resolve_config(
        {
            "base_url": "https://bitbucket.org",
            "username": "alice",
            "token": "tok",
            "platform": "datacenter",
        }
    )
    assert config.platform_type is PlatformType.CLOUD


def test_unknown_refinement_is_rejected():
    with pytest.raises(ConfigurationError, match="BITBUCKET_PLATFORM"):
        resolve_config({"base_url": "https://git.example.com", "token": "tok", "platform": "mainframe"})


@pytest.mark.parametrize("url", [None, "", "   ", "not a url", "ftp://git.example.com"])
def test_missing_or_invalid_url(url):
    with pytest.raises(ConfigurationError, match="BITBUCKET_URL"):
        resolve_config({"base_url": url, "token": "tok"})


def test_cloud_requires_username():
    with pytest.raises(ConfigurationError, match="BITBUCKET_USERNAME"):
        resolve_config({"base_url": "https://bitbucket.org", "token": "tok"})


def test_cloud_requires_a_secret():
    with pytest.raises(ConfigurationError, match="BITBUCKET_TOKEN"):
        resolve_config({"base_url": "https://bitbucket.org", "username": "alice"})


def test_cloud_token_wins_over_password_with_warning(caplog):
    caplog.set_level(logging.WARNING, logger="bitbucket_mcp")

    config = resolve_config(
        {
            "base_url": "https://bitbucket.org",
            "username": "alice",
            "token": "tok",
            "password": "pw",
            "default_context": "acme",
        }
    )

    assert config.credentials == BasicCredentials(username="alice", password="tok")
    assert any("token takes precedence" in rec.getMessage() for rec in caplog.records)


def test_server_requires_token_or_username_and_password():
    with pytest.raises(ConfigurationError, match="Bitbucket Server requires"):
        resolve_config({"base_url": "https://git.example.com", "username": "bob"})


def test_missing_default_context_logs_warning(caplog):
    caplog.set_level(logging.WARNING, logger="bitbucket_mcp")

    config = resolve_config({"base_url": "https://git.example.com", "token": "tok"})

    assert config.default_context is None
    assert any("BITBUCKET_DEFAULT_PROJECT" in rec.getMessage() for rec in caplog.records)


def test_resolver_is_deterministic():
    raw = {"base_url": "https://git.example.com", "token": "tok", "default_context": "PROJ"}
    assert resolve_config(raw) == resolve_config(dict(raw))


def test_describe_never_contains_secrets():
    config = resolve_config(
        {"base_url": "https://git.example.com", "username": "bob", "password": "hunter2"}
    )
    described = config.describe()

    assert "hunter2" not in repr(described)
    assert described["has_password"] is True
    assert described["has_token"] is False


def test_load_settings_from_env_reads_bitbucket_variables():
    settings = load_settings_from_env(
        {
            "BITBUCKET_URL": "https://bitbucket.org",
            "BITBUCKET_USERNAME": "alice",
            "BITBUCKET_TOKEN": "tok",
            "BITBUCKET_DEFAULT_PROJECT": "acme",
        }
    )

    assert settings["base_url"] == "https://bitbucket.org"
    assert settings["default_context"] == "acme"
    assert settings["password"] is None
    assert settings["platform"] is None
