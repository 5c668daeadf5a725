"""
Tests for configuration validation
"""
import pytest
from pydantic import ValidationError
from hrapprovals.core.config import Settings


def _settings(**overrides):
    values = {"DATABASE_URL": "postgresql://test", "JWT_SECRET_KEY": "test-key"}
    values.update(overrides)
    return Settings(**values)


def test_prod_settings_rejects_wildcard_origins():
    settings = _settings(JWT_SECRET_KEY="a" * 32, APP_ENV="prod", ALLOWED_ORIGINS="*")
    with pytest.raises(ValueError, match="ALLOWED_ORIGINS"):
        settings.validate_production()


def test_prod_settings_rejects_short_jwt_secret():
    settings = _settings(JWT_SECRET_KEY="short", APP_ENV="prod", ALLOWED_ORIGINS="https://example.com")
    with pytest.raises(ValueError, match="JWT_SECRET_KEY"):
        settings.validate_production()


def test_local_settings_allows_wildcard_origins():
    settings = _settings(APP_ENV="local", ALLOWED_ORIGINS="*")
    settings.validate_production()
    assert settings.get_allowed_origins_list() == ["*"]


def test_get_allowed_origins_list():
    settings = _settings(ALLOWED_ORIGINS="https://example.com, https://app.example.com")
    assert settings.get_allowed_origins_list() == ["https://example.com", "https://app.example.com"]


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError, match="TZ"):
        _settings(TZ="Mars/Olympus_Mons")


def test_invalid_app_env_is_rejected():
    with pytest.raises(ValidationError):
        _settings(APP_ENV="production")


def test_detector_defaults():
    settings = _settings()
    assert settings.ABSENCE_GRACE_HOURS == 3
    assert settings.LATENESS_ALERT_MINUTES == 30
    assert settings.OVERTIME_GRACE_MINUTES == 15
    assert settings.MAX_HIERARCHY_DEPTH == 10
