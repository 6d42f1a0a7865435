"""
Call-scoped diagnostic context.

Values live in ``structlog.contextvars``, so they are isolated per thread and
per asyncio task and are merged into every structlog event and every stdlib
record rendered by logwrap's formatter. A ``ContextScope`` remembers what it
overwrote and puts it back exactly once.
"""

from __future__ import annotations

import types
from typing import Any, Dict, List, Optional

import structlog

from logwrap.utils.errors import ContextScopeError
from logwrap.utils.logging import get_context_logger

_ABSENT = object()


class ContextScope:
    """
    Handle for the context entries of one logical call.

    Usage:
        with ContextStore().scope() as scope:
            scope.put("request-id", "abc")
            ...  # "request-id" is visible here
        # previous "request-id" (or its absence) is back
    """

    def __init__(self) -> None:
        self._previous: Dict[str, Any] = {}
        self._order: List[str] = []
        self._restored = False

    def put(self, key: str, value: str) -> None:
        """Bind ``key`` for the lifetime of this scope."""
        if self._restored:
            raise ContextScopeError(
                f"put({key!r}) on a scope that was already restored",
                operation="put",
                keys=[key],
            )
        if key not in self._previous:
            self._previous[key] = structlog.contextvars.get_contextvars().get(key, _ABSENT)
            self._order.append(key)
        structlog.contextvars.bind_contextvars(**{key: value})

    def restore(self) -> None:
        """Revert every key touched by this scope. Must be called exactly once."""
        if self._restored:
            raise ContextScopeError(
                "diagnostic context scope restored twice",
                operation="restore",
                keys=list(self._order),
            )
        self._restored = True

        absent = [key for key in self._order if self._previous[key] is _ABSENT]
        present = {
            key: self._previous[key] for key in self._order if self._previous[key] is not _ABSENT
        }
        if absent:
            structlog.contextvars.unbind_contextvars(*absent)
        if present:
            structlog.contextvars.bind_contextvars(**present)

        get_context_logger().debug(
            "restored diagnostic context",
            extra_context={"restored_keys": list(self._order)},
        )

    @property
    def keys(self) -> List[str]:
        """Keys touched by this scope, in first-touch order."""
        return list(self._order)

    @property
    def restored(self) -> bool:
        return self._restored

    def __enter__(self) -> "ContextScope":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> None:
        self.restore()


class ContextStore:
    """Entry point to the current thread's (or task's) diagnostic context."""

    def scope(self) -> ContextScope:
        """Open a new restorable scope."""
        return ContextScope()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return structlog.contextvars.get_contextvars().get(key, default)

    def snapshot(self) -> Dict[str, Any]:
        """Copy of every currently bound context entry."""
        return dict(structlog.contextvars.get_contextvars())
