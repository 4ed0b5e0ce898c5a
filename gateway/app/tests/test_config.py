import pytest
from pydantic import ValidationError

from gateway.app.config import Settings, validate_configuration


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_derived_urls_strip_trailing_slash():
    settings = make_settings(BASE_URL="https://example.com:8443/", AUTH_BASE_URL="https://auth.example.com/")

    assert settings.base_url == "https://example.com:8443"
    assert settings.callback_url == "https://example.com:8443/api/auth/callback"
    assert settings.profile_url == "https://example.com:8443/profile"
    assert settings.auth_base_url == "https://auth.example.com"
    assert settings.port == 8443


def test_port_defaults_to_3000_without_explicit_port():
    assert make_settings(BASE_URL="https://example.com").port == 3000


def test_invalid_base_url_rejected():
    with pytest.raises(ValidationError):
        make_settings(BASE_URL="localhost:3000")


def test_log_level_normalized():
    assert make_settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    with pytest.raises(ValidationError):
        make_settings(LOG_LEVEL="chatty")


def test_session_secret_falls_back_to_auth_secret():
    assert make_settings(AUTH_SECRET="auth-secret").session_secret == "auth-secret"
    assert make_settings(AUTH_SECRET="auth-secret", SESSION_SECRET="cookie").session_secret == "cookie"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("AUTH_ORGANIZATION_ID", "org-from-env")
    monkeypatch.setenv("AUTH_SECRET", "secret-from-env")
    monkeypatch.setenv("BASE_URL", "http://localhost:4000")

    settings = make_settings()

    assert settings.AUTH_ORGANIZATION_ID == "org-from-env"
    assert settings.port == 4000


def test_validate_configuration_reports_missing_credentials(monkeypatch):
    monkeypatch.delenv("AUTH_ORGANIZATION_ID", raising=False)
    monkeypatch.delenv("AUTH_SECRET", raising=False)
    monkeypatch.delenv("SESSION_SECRET", raising=False)

    status = validate_configuration(make_settings())

    assert status["valid"] is False
    assert "AUTH_ORGANIZATION_ID is not set" in status["errors"]
    assert "AUTH_SECRET is not set" in status["errors"]
    assert status["variables"]["AUTH_SECRET"] is False


def test_validate_configuration_ok():
    status = validate_configuration(make_settings(AUTH_ORGANIZATION_ID="org", AUTH_SECRET="secret"))

    assert status["valid"] is True
    assert status["errors"] == []
