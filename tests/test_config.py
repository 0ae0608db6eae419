from __future__ import annotations

import pytest
from pydantic import ValidationError

from resource_kit.config import ResourceKitSettings, get_settings


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("RESOURCE_KIT_BATCH_WINDOW_SECONDS", raising=False)
    get_settings.cache_clear()

    settings = get_settings()
    assert settings.batch_window_seconds == pytest.approx(0.016)
    assert settings.default_max_batch_size is None
    assert settings.log_level == "INFO"
    assert settings.json_logs is True
    get_settings.cache_clear()


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("RESOURCE_KIT_BATCH_WINDOW_SECONDS", "0.05")
    monkeypatch.setenv("RESOURCE_KIT_DEFAULT_MAX_BATCH_SIZE", "25")
    monkeypatch.setenv("RESOURCE_KIT_LOG_LEVEL", " debug ")
    get_settings.cache_clear()

    settings = get_settings()
    assert settings.batch_window_seconds == pytest.approx(0.05)
    assert settings.default_max_batch_size == 25
    assert settings.log_level == "DEBUG"
    get_settings.cache_clear()


@pytest.mark.parametrize("window", [0, -1])
def test_non_positive_window_rejected(window: float) -> None:
    with pytest.raises(ValidationError):
        ResourceKitSettings(batch_window_seconds=window)


def test_invalid_batch_size_rejected() -> None:
    with pytest.raises(ValidationError):
        ResourceKitSettings(default_max_batch_size=0)


def test_unknown_log_level_rejected() -> None:
    with pytest.raises(ValidationError):
        ResourceKitSettings(log_level="chatty")
