"""Tests for the restorable diagnostic context."""

import threading

import pytest
import structlog

from logwrap.context.store import ContextScope, ContextStore
from logwrap.utils.errors import ContextScopeError


@pytest.fixture
def store() -> ContextStore:
    return ContextStore()


def test_put_is_visible_until_restore(store):
    scope = store.scope()
    scope.put("request-id", "r-1")

    assert store.get("request-id") == "r-1"

    scope.restore()

    assert store.get("request-id") is None
    assert store.snapshot() == {}


def test_restore_brings_back_previous_value(store):
    structlog.contextvars.bind_contextvars(user="alice")

    with store.scope() as scope:
        scope.put("user", "bob")
        assert store.get("user") == "bob"

    assert store.get("user") == "alice"


def test_nested_scopes_restore_outer_state(store):
    structlog.contextvars.bind_contextvars(tenant="acme")
    before = store.snapshot()

    with store.scope() as outer:
        outer.put("request-id", "outer")
        outer.put("step", "one")

        with store.scope() as inner:
            inner.put("request-id", "inner")
            inner.put("depth", "2")
            assert store.snapshot() == {
                "tenant": "acme",
                "request-id": "inner",
                "step": "one",
                "depth": "2",
            }

        assert store.snapshot() == {"tenant": "acme", "request-id": "outer", "step": "one"}

    assert store.snapshot() == before


def test_repeated_put_remembers_first_previous_value(store):
    structlog.contextvars.bind_contextvars(key="original")

    scope = store.scope()
    scope.put("key", "first")
    scope.put("key", "second")
    scope.restore()

    assert store.get("key") == "original"
    assert scope.keys == ["key"]


def test_recursive_scopes(store):
    seen = []

    def recurse(depth: int) -> None:
        with store.scope() as scope:
            scope.put("depth", str(depth))
            seen.append(store.get("depth"))
            if depth < 3:
                recurse(depth + 1)
            assert store.get("depth") == str(depth)

    recurse(0)

    assert seen == ["0", "1", "2", "3"]
    assert store.get("depth") is None


def test_restore_runs_when_body_raises(store):
    with pytest.raises(ValueError):
        with store.scope() as scope:
            scope.put("request-id", "r-9")
            raise ValueError("boom")

    assert store.get("request-id") is None


def test_double_restore_is_an_invariant_violation(store):
    scope = store.scope()
    scope.put("a", "1")
    scope.restore()

    with pytest.raises(ContextScopeError) as exc_info:
        scope.restore()

    assert exc_info.value.error_code == "CTX001"
    assert exc_info.value.context["keys"] == ["a"]


def test_put_after_restore_is_rejected(store):
    scope = ContextScope()
    scope.restore()

    assert scope.restored
    with pytest.raises(ContextScopeError):
        scope.put("late", "value")


def test_threads_are_isolated(store):
    barrier = threading.Barrier(2)
    observed = {}

    def worker(name: str) -> None:
        with store.scope() as scope:
            scope.put("worker", name)
            barrier.wait(timeout=5)
            observed[name] = store.get("worker")
            barrier.wait(timeout=5)
        observed[f"{name}-after"] = store.get("worker")

    threads = [threading.Thread(target=worker, args=(name,)) for name in ("a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert observed == {"a": "a", "b": "b", "a-after": None, "b-after": None}
    assert store.get("worker") is None
