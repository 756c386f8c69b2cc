from __future__ import annotations

import pytest

from app.core.config import load_settings


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORT", "LOG_LEVEL", "K8S_API_TIMEOUT_SECONDS", "COLLECTOR_ENABLED"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.port == 8000
    assert settings.log_level == "info"
    assert settings.k8s_api_timeout_seconds == 10
    assert settings.collector_enabled is True


def test_load_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("K8S_API_TIMEOUT_SECONDS", "3")
    monkeypatch.setenv("COLLECTOR_ENABLED", "off")

    settings = load_settings()

    assert settings.port == 9100
    assert settings.k8s_api_timeout_seconds == 3
    assert settings.collector_enabled is False


def test_load_settings_ignores_invalid_integers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("K8S_API_TIMEOUT_SECONDS", "soon")

    assert load_settings().k8s_api_timeout_seconds == 10


def test_load_settings_rejects_invalid_boolean(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COLLECTOR_ENABLED", "maybe")

    with pytest.raises(ValueError, match="COLLECTOR_ENABLED"):
        load_settings()
