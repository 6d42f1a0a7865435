"""Call interception: descriptors, message rendering and the logging engine."""

from logwrap.interceptor.descriptor import (
    DontLog,
    LogContext,
    LoggingDescriptor,
    ParameterSpec,
    build_descriptor,
    resolve_logger_name,
)
from logwrap.interceptor.engine import (
    JSON_CONTEXT_KEY,
    LoggingInterceptor,
    get_default_interceptor,
    get_descriptor,
    logged,
)

__all__ = [
    "JSON_CONTEXT_KEY",
    "DontLog",
    "LogContext",
    "LoggingDescriptor",
    "LoggingInterceptor",
    "ParameterSpec",
    "build_descriptor",
    "get_default_interceptor",
    "get_descriptor",
    "logged",
    "resolve_logger_name",
]
