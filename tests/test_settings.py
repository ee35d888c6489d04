from __future__ import annotations

import pytest

from subtrack.config.settings import Settings, load_settings
from subtrack.exceptions import ConfigurationError


def test_defaults() -> None:
    settings = Settings()
    assert settings.to_public_dict() == {
        "store_path": ".subtrack/store.json",
        "session_key": "subtitle",
        "sample_path": None,
        "history_limit": 1000,
        "max_text_length": 200,
        "log_level": "INFO",
    }


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SUBTRACK_HISTORY_LIMIT", "25")
    monkeypatch.setenv("SUBTRACK_SESSION_KEY", "draft")
    settings = load_settings()
    assert settings.history_limit == 25
    assert settings.session_key == "draft"


def test_explicit_overrides_skip_none(monkeypatch) -> None:
    monkeypatch.setenv("SUBTRACK_STORE_PATH", "/from/env.json")
    assert load_settings(store_path=None).store_path == "/from/env.json"
    assert load_settings(store_path="cli.json").store_path == "cli.json"


@pytest.mark.parametrize(
    ("name", "value"),
    [("SUBTRACK_HISTORY_LIMIT", "0"), ("SUBTRACK_MAX_TEXT_LENGTH", "many")],
)
def test_invalid_values_raise_configuration_error(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()
    assert "Invalid settings" in excinfo.value.message
