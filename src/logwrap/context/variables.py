"""
Context-variable producers.

A producer is a zero-argument callable returning the entry it wants added to
the diagnostic context of every intercepted call, or ``None`` when it has
nothing to contribute right now.
"""

from __future__ import annotations

import os
import socket
import threading
from dataclasses import dataclass
from importlib.metadata import entry_points as _entry_points
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from logwrap.utils.errors import ConfigurationError

CONTEXT_VARIABLES_ENTRY_POINT_GROUP = "logwrap.context_variables"


@dataclass(frozen=True)
class LogContextVariable:
    """One diagnostic context entry."""

    key: str
    value: str


Produced = Union[LogContextVariable, Tuple[str, Any], None]
ContextVariableProducer = Callable[[], Produced]


def normalize_variable(produced: Produced) -> Optional[LogContextVariable]:
    """Coerce a producer's output into a ``LogContextVariable`` (or ``None``)."""
    if produced is None or isinstance(produced, LogContextVariable):
        return produced
    key, value = produced
    if value is None:
        return None
    return LogContextVariable(key=str(key), value=str(value))


def static_variable(key: str, value: str) -> ContextVariableProducer:
    """Producer that always yields the same entry (e.g. an application version)."""
    variable = LogContextVariable(key=key, value=value)

    def produce() -> LogContextVariable:
        return variable

    return produce


def env_variable(key: str, env_name: str) -> ContextVariableProducer:
    """Producer reading an environment variable; yields nothing while it is unset."""

    def produce() -> Optional[LogContextVariable]:
        value = os.getenv(env_name)
        if value is None:
            return None
        return LogContextVariable(key=key, value=value)

    return produce


def hostname_variable(key: str = "hostname") -> ContextVariableProducer:
    def produce() -> LogContextVariable:
        return LogContextVariable(key=key, value=socket.gethostname())

    return produce


def thread_name_variable(key: str = "thread") -> ContextVariableProducer:
    def produce() -> LogContextVariable:
        return LogContextVariable(key=key, value=threading.current_thread().name)

    return produce


def load_entry_point_variables(
    group: str = CONTEXT_VARIABLES_ENTRY_POINT_GROUP,
) -> List[ContextVariableProducer]:
    """Load producers published under an entry point group, sorted by name."""
    loaded: List[ContextVariableProducer] = []
    for entry_point in sorted(_entry_points(group=group), key=lambda ep: ep.name):
        try:
            loaded.append(entry_point.load())
        except Exception as exc:
            raise ConfigurationError(
                f"failed to load context variable entry point {entry_point.name!r}: {exc}",
                config_key=group,
                component="context",
            ) from exc
    return loaded


def discover_context_variables(
    variables: Iterable[ContextVariableProducer] = (),
    *,
    entry_points: bool = True,
) -> Tuple[ContextVariableProducer, ...]:
    """Explicit producers first, then entry point producers by name."""
    collected: List[ContextVariableProducer] = list(variables)
    if entry_points:
        collected.extend(load_entry_point_variables())
    for producer in collected:
        if not callable(producer):
            raise ConfigurationError(
                f"context variable producer {producer!r} is not callable",
                component="context",
            )
    return tuple(collected)
