"""
logwrap: method-call logging with a call-scoped diagnostic context.

Decorate a function with ``logged`` to log its calls, results and failures
while its context-key parameters are visible in the diagnostic context.
"""

from logwrap.context import ContextStore, LogContextVariable
from logwrap.converters import ConverterRegistry, log_converter
from logwrap.interceptor import (
    DontLog,
    LogContext,
    LoggingInterceptor,
    get_default_interceptor,
    logged,
)
from logwrap.utils.logging import LogLevel

__all__ = [
    "ContextStore",
    "ConverterRegistry",
    "DontLog",
    "LogContext",
    "LogContextVariable",
    "LogLevel",
    "LoggingInterceptor",
    "get_default_interceptor",
    "log_converter",
    "logged",
]
