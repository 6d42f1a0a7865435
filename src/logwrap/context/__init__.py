"""Diagnostic context: call-scoped store and context-variable producers."""

from logwrap.context.store import ContextScope, ContextStore
from logwrap.context.variables import (
    CONTEXT_VARIABLES_ENTRY_POINT_GROUP,
    ContextVariableProducer,
    LogContextVariable,
    discover_context_variables,
    env_variable,
    hostname_variable,
    normalize_variable,
    static_variable,
    thread_name_variable,
)

__all__ = [
    "CONTEXT_VARIABLES_ENTRY_POINT_GROUP",
    "ContextScope",
    "ContextStore",
    "ContextVariableProducer",
    "LogContextVariable",
    "discover_context_variables",
    "env_variable",
    "hostname_variable",
    "normalize_variable",
    "static_variable",
    "thread_name_variable",
]
