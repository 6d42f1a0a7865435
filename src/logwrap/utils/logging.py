"""
Structured logging framework for logwrap.

This module provides the log levels used by intercepted call sites, the
structlog/stdlib configuration that renders the diagnostic context into every
record, and component loggers for logwrap's own diagnostics.
"""

import logging
import logging.config
import sys
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import structlog

from logwrap.utils.errors import ConfigurationError

TRACE_LEVEL = 5  # Below DEBUG (10)
OFF_LEVEL = logging.CRITICAL + 10

logging.addLevelName(TRACE_LEVEL, "TRACE")


class LogLevel(str, Enum):
    """Log levels with string values, usable as call-site levels."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    OFF = "OFF"

    @classmethod
    def parse(cls, value: Union[str, int, "LogLevel"]) -> "LogLevel":
        """
        Resolve a level from its name, a stdlib numeric level, or a LogLevel.

        Raises:
            ConfigurationError: If the value names no known level
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            for level in cls:
                if level.numeric == value:
                    return level
            raise ConfigurationError(f"Unknown numeric log level: {value}", config_key="level")

        name = str(value).strip().upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls(name)
        except ValueError:
            raise ConfigurationError(
                f"Unknown log level: {value!r}",
                config_key="level",
                help_text=f"Use one of {', '.join(level.value for level in cls)}",
            ) from None

    @property
    def numeric(self) -> int:
        """Stdlib numeric value for this level."""
        if self is LogLevel.TRACE:
            return TRACE_LEVEL
        if self is LogLevel.OFF:
            return OFF_LEVEL
        return getattr(logging, self.value)

    def is_enabled(self, logger: logging.Logger) -> bool:
        """Check whether a record at this level would be handled by ``logger``."""
        if self is LogLevel.OFF:
            return False
        return logger.isEnabledFor(self.numeric)

    def log(
        self,
        logger: logging.Logger,
        message: str,
        *args: Any,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        """Write a %-style message at this level. OFF writes nothing."""
        if self is LogLevel.OFF:
            return
        logger.log(self.numeric, message, *args, exc_info=exc_info)


class LogFormat(str, Enum):
    """Log output formats."""

    CONSOLE = "console"
    JSON = "json"
    KEYVALUE = "keyvalue"

    @classmethod
    def parse(cls, value: Union[str, "LogFormat"]) -> "LogFormat":
        if isinstance(value, LogFormat):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown log format: {value!r}",
                config_key="format",
                help_text=f"Use one of {', '.join(fmt.value for fmt in cls)}",
            ) from None


class ContextKeys:
    """Standard context keys for structured logging."""

    COMPONENT = "component"
    OPERATION = "operation"
    CONVERTER = "converter"
    TARGET_TYPE = "target_type"
    ERROR_TYPE = "error_type"


class SettingsProtocol(Protocol):
    """Protocol for settings objects that can configure logging."""

    log_level: str
    log_format: str
    log_file: Optional[Path]


class StructuredLogger:
    """
    Structured logger for logwrap's own components.

    Records go through structlog, so the bound diagnostic context is merged
    into every event. Before ``LoggerFactory.configure_logging`` (or any other
    ``structlog.configure``) runs, events are rendered as key=value text and
    handed to the stdlib logger of the same name.
    """

    def __init__(
        self,
        component: str,
        *,
        logger_name: Optional[str] = None,
        base_context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize structured logger for component.

        Args:
            component: Component name (e.g., "registry", "interceptor")
            logger_name: Optional logger name (defaults to logwrap.<component>)
            base_context: Base context added to all log messages
        """
        self.component = component
        self.logger_name = logger_name or f"logwrap.{component}"
        self.base_context = dict(base_context or {})
        self.base_context[ContextKeys.COMPONENT] = component

        self._logger = structlog.get_logger(self.logger_name)
        self._stdlib_logger = structlog.wrap_logger(
            logging.getLogger(self.logger_name),
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.KeyValueRenderer(key_order=["event"]),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    def _target(self) -> Any:
        # Until structlog is configured, render key=value onto the stdlib logger
        if structlog.is_configured():
            return self._logger
        return self._stdlib_logger

    def _log_with_context(
        self,
        level: str,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        # Skip context building when the stdlib logger would drop the record anyway
        if logging.getLogger(self.logger_name).getEffectiveLevel() > getattr(logging, level):
            return

        context = self.base_context.copy()
        if extra_context:
            context.update(extra_context)

        if exception is not None:
            context.update(
                {
                    ContextKeys.ERROR_TYPE: type(exception).__name__,
                    "error_message": str(exception),
                }
            )

        context.setdefault("timestamp", datetime.now(timezone.utc).isoformat())

        log_method = getattr(self._target(), level.lower())
        log_method(message, **context)

    def debug(self, message: str, *, extra_context: Optional[Dict[str, Any]] = None) -> None:
        """Log debug message."""
        self._log_with_context("DEBUG", message, extra_context=extra_context)

    def info(self, message: str, *, extra_context: Optional[Dict[str, Any]] = None) -> None:
        """Log info message."""
        self._log_with_context("INFO", message, extra_context=extra_context)

    def warning(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Log warning message."""
        self._log_with_context(
            "WARNING", message, extra_context=extra_context, exception=exception
        )

    def error(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Log error message."""
        self._log_with_context(
            "ERROR", message, extra_context=extra_context, exception=exception
        )

    def with_context(self, **context: Any) -> "ContextualLogger":
        """Create contextual logger with additional context."""
        return ContextualLogger(self, context)


class ContextualLogger:
    """Logger wrapper that adds context to all log messages."""

    def __init__(self, base_logger: StructuredLogger, context: Dict[str, Any]):
        self.base_logger = base_logger
        self.context = context

    def _merged(self, extra_context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = self.context.copy()
        if extra_context:
            merged.update(extra_context)
        return merged

    def debug(self, message: str, *, extra_context: Optional[Dict[str, Any]] = None) -> None:
        self.base_logger.debug(message, extra_context=self._merged(extra_context))

    def info(self, message: str, *, extra_context: Optional[Dict[str, Any]] = None) -> None:
        self.base_logger.info(message, extra_context=self._merged(extra_context))

    def warning(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        self.base_logger.warning(
            message, extra_context=self._merged(extra_context), exception=exception
        )

    def error(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        self.base_logger.error(
            message, extra_context=self._merged(extra_context), exception=exception
        )

    def with_context(self, **additional_context: Any) -> "ContextualLogger":
        return ContextualLogger(self.base_logger, self._merged(additional_context))


class LoggerFactory:
    """
    Centralized factory for creating component loggers.

    Manages logger lifecycle and the global structlog/stdlib configuration.
    """

    _loggers: Dict[str, StructuredLogger] = {}
    _configured: bool = False

    @classmethod
    def shared_processors(cls) -> List[Any]:
        """Processors applied to both structlog events and foreign stdlib records."""
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ]

    @classmethod
    def build_formatter(cls, format_type: Union[str, LogFormat]) -> structlog.stdlib.ProcessorFormatter:
        """
        Build the stdlib formatter that renders records with the diagnostic context.

        Args:
            format_type: console, json or keyvalue
        """
        fmt = LogFormat.parse(format_type)

        processors: List[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
        if fmt is LogFormat.JSON:
            processors.extend(
                [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
            )
        elif fmt is LogFormat.KEYVALUE:
            processors.extend(
                [
                    structlog.processors.format_exc_info,
                    structlog.processors.KeyValueRenderer(
                        key_order=["timestamp", "level", "logger", "event"]
                    ),
                ]
            )
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

        return structlog.stdlib.ProcessorFormatter(
            processors=processors,
            foreign_pre_chain=cls.shared_processors(),
        )

    @classmethod
    def configure_logging(
        cls,
        level: Union[str, LogLevel] = "INFO",
        format_type: Union[str, LogFormat] = "console",
        log_file: Optional[Path] = None,
        enable_console: bool = True,
    ) -> None:
        """
        Configure global logging settings.

        Args:
            level: Minimum log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL, OFF)
            format_type: Log format (console, json, keyvalue)
            log_file: Optional log file path
            enable_console: Enable console output
        """
        numeric_level = LogLevel.parse(level).numeric

        structlog.configure(
            processors=cls.shared_processors()
            + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging_config: Dict[str, Any] = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": cls.build_formatter,
                    "format_type": format_type,
                },
            },
            "handlers": {},
            "root": {"level": numeric_level, "handlers": []},
        }

        if enable_console:
            logging_config["handlers"]["console"] = {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "level": numeric_level,
                "stream": "ext://sys.stderr",
            }
            logging_config["root"]["handlers"].append("console")

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            logging_config["handlers"]["file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "structured",
                "level": numeric_level,
                "filename": str(log_file),
                "maxBytes": 10 * 1024 * 1024,  # 10MB
                "backupCount": 5,
                "encoding": "utf-8",
            }
            logging_config["root"]["handlers"].append("file")

        logging.config.dictConfig(logging_config)
        cls._configured = True

    @classmethod
    def get_logger(
        cls,
        component: str,
        *,
        logger_name: Optional[str] = None,
        base_context: Optional[Dict[str, Any]] = None,
    ) -> StructuredLogger:
        """
        Get or create logger for component.

        Args:
            component: Component name
            logger_name: Optional logger name
            base_context: Base context for all log messages

        Returns:
            StructuredLogger instance for component
        """
        cache_key = f"{component}:{logger_name or component}"

        if cache_key not in cls._loggers:
            cls._loggers[cache_key] = StructuredLogger(
                component,
                logger_name=logger_name,
                base_context=base_context,
            )

        return cls._loggers[cache_key]

    @classmethod
    def configure_from_settings(cls, settings: SettingsProtocol) -> None:
        """
        Configure logging from resolved settings.

        Args:
            settings: LogwrapSettings instance (or anything shaped like it)
        """
        cls.configure_logging(
            level=getattr(settings, "log_level", "INFO"),
            format_type=getattr(settings, "log_format", "console"),
            log_file=getattr(settings, "log_file", None),
        )

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured


# Convenience functions for component loggers
@lru_cache()
def get_registry_logger() -> StructuredLogger:
    """Get converter registry logger."""
    return LoggerFactory.get_logger("registry")


@lru_cache()
def get_context_logger() -> StructuredLogger:
    """Get diagnostic context logger."""
    return LoggerFactory.get_logger("context")


@lru_cache()
def get_interceptor_logger() -> StructuredLogger:
    """Get interceptor logger."""
    return LoggerFactory.get_logger("interceptor")
