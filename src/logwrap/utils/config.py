"""
Environment-driven settings for logwrap.

All knobs are read from ``LOGWRAP_*`` variables so a process can switch the
output format or the default call-site level without code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from logwrap.utils.errors import ConfigurationError
from logwrap.utils.logging import LogFormat, LogLevel

LOG_LEVEL_ENV_VAR = "LOGWRAP_LOG_LEVEL"
LOG_FORMAT_ENV_VAR = "LOGWRAP_LOG_FORMAT"
LOG_FILE_ENV_VAR = "LOGWRAP_LOG_FILE"
DEFAULT_LEVEL_ENV_VAR = "LOGWRAP_DEFAULT_LEVEL"
DISCOVER_ENV_VAR = "LOGWRAP_DISCOVER_ENTRY_POINTS"

DEFAULT_LOG_LEVEL = LogLevel.INFO
DEFAULT_LOG_FORMAT = LogFormat.CONSOLE
DEFAULT_CALL_LEVEL = LogLevel.DEBUG

TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class LogwrapSettings:
    """Resolved logwrap configuration."""

    log_level: LogLevel = DEFAULT_LOG_LEVEL
    log_format: LogFormat = DEFAULT_LOG_FORMAT
    log_file: Optional[Path] = None
    default_level: LogLevel = DEFAULT_CALL_LEVEL
    discover_entry_points: bool = True


def _parse_flag(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in TRUTHY:
        return True
    if value in FALSY:
        return False
    raise ConfigurationError(
        f"Invalid boolean value {raw!r} for {env_var}",
        config_key=env_var,
        help_text=f"Use one of {sorted(TRUTHY | FALSY)}",
    )


def resolve_settings() -> LogwrapSettings:
    """Resolve logwrap settings from the environment."""
    log_level = LogLevel.parse(os.getenv(LOG_LEVEL_ENV_VAR) or DEFAULT_LOG_LEVEL)
    log_format = LogFormat.parse(os.getenv(LOG_FORMAT_ENV_VAR) or DEFAULT_LOG_FORMAT)
    default_level = LogLevel.parse(os.getenv(DEFAULT_LEVEL_ENV_VAR) or DEFAULT_CALL_LEVEL)

    raw_file = (os.getenv(LOG_FILE_ENV_VAR) or "").strip()
    log_file = Path(raw_file).expanduser() if raw_file else None

    return LogwrapSettings(
        log_level=log_level,
        log_format=log_format,
        log_file=log_file,
        default_level=default_level,
        discover_entry_points=_parse_flag(DISCOVER_ENV_VAR, True),
    )
