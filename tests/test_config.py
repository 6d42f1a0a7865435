"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from logwrap.utils.config import LogwrapSettings, resolve_settings
from logwrap.utils.errors import ConfigurationError
from logwrap.utils.logging import LogFormat, LogLevel


def _clear_env(monkeypatch):
    for key in [
        "LOGWRAP_LOG_LEVEL",
        "LOGWRAP_LOG_FORMAT",
        "LOGWRAP_LOG_FILE",
        "LOGWRAP_DEFAULT_LEVEL",
        "LOGWRAP_DISCOVER_ENTRY_POINTS",
    ]:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch):
    _clear_env(monkeypatch)

    assert resolve_settings() == LogwrapSettings(
        log_level=LogLevel.INFO,
        log_format=LogFormat.CONSOLE,
        log_file=None,
        default_level=LogLevel.DEBUG,
        discover_entry_points=True,
    )


def test_environment_overrides(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.setenv("LOGWRAP_LOG_LEVEL", "warn")
    monkeypatch.setenv("LOGWRAP_LOG_FORMAT", "JSON")
    monkeypatch.setenv("LOGWRAP_LOG_FILE", str(tmp_path / "calls.log"))
    monkeypatch.setenv("LOGWRAP_DEFAULT_LEVEL", "trace")
    monkeypatch.setenv("LOGWRAP_DISCOVER_ENTRY_POINTS", "no")

    settings = resolve_settings()

    assert settings.log_level is LogLevel.WARNING
    assert settings.log_format is LogFormat.JSON
    assert settings.log_file == Path(tmp_path / "calls.log")
    assert settings.default_level is LogLevel.TRACE
    assert settings.discover_entry_points is False


@pytest.mark.parametrize(
    "variable,value",
    [
        ("LOGWRAP_LOG_LEVEL", "chatty"),
        ("LOGWRAP_LOG_FORMAT", "xml"),
        ("LOGWRAP_DEFAULT_LEVEL", "loud"),
        ("LOGWRAP_DISCOVER_ENTRY_POINTS", "maybe"),
    ],
)
def test_invalid_values_are_configuration_errors(monkeypatch, variable, value):
    _clear_env(monkeypatch)
    monkeypatch.setenv(variable, value)

    with pytest.raises(ConfigurationError) as exc_info:
        resolve_settings()

    assert exc_info.value.error_code == "CFG001"
