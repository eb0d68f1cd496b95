from __future__ import annotations

import pytest

from config import settings
from config.settings import DEFAULT_STRATEGIES_PATH


def test_defaults(monkeypatch):
    for name in ("CHECK_INTERVAL_SECONDS", "REQUEST_TIMEOUT", "API_PORT", "SMTP_USE_TLS"):
        monkeypatch.delenv(name, raising=False)
    settings.reload()

    assert settings.CHECK_INTERVAL_SECONDS == 60
    assert settings.REQUEST_TIMEOUT == 30
    assert settings.API_PORT == 8080
    assert settings.SMTP_USE_TLS is True
    assert settings.STRATEGIES_PATH == DEFAULT_STRATEGIES_PATH
    assert DEFAULT_STRATEGIES_PATH.exists()
    assert "Mozilla/5.0" in settings.HEADERS["User-Agent"]


def test_scan_interval_is_configurable(monkeypatch):
    monkeypatch.setenv("CHECK_INTERVAL_SECONDS", "300")
    settings.reload()

    assert settings.CHECK_INTERVAL_SECONDS == 300


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CHECK_INTERVAL_SECONDS", "soon"),
        ("CHECK_INTERVAL_SECONDS", "0"),
        ("REQUEST_TIMEOUT", "-1"),
        ("SMTP_PORT", "70000"),
        ("API_PORT", "http"),
        ("SHUTDOWN_GRACE_SECONDS", "-3"),
    ],
)
def test_invalid_values_name_the_variable(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=name):
        settings.reload()


def test_sender_falls_back_to_username(monkeypatch):
    monkeypatch.delenv("SMTP_SENDER")
    settings.reload()

    assert settings.SMTP_SENDER == "alerts@test.local"
    settings.validate()


def test_validate_requires_sender(monkeypatch):
    monkeypatch.delenv("SMTP_SENDER")
    monkeypatch.delenv("SMTP_USERNAME")
    settings.reload()

    with pytest.raises(ValueError, match="SMTP_SENDER"):
        settings.validate()


def test_validate_requires_password_with_username(monkeypatch):
    monkeypatch.setenv("SMTP_PASSWORD", "")
    settings.reload()

    with pytest.raises(ValueError, match="SMTP_PASSWORD"):
        settings.validate()
