"""Shared fixtures for logwrap tests."""

import logging
from typing import Any, Dict, List, Tuple

import pytest
import structlog

from logwrap.converters.registry import ConverterRegistry


class ContextCapturingHandler(logging.Handler):
    """Keeps every record together with the diagnostic context at emit time."""

    def __init__(self) -> None:
        super().__init__(level=logging.NOTSET)
        self.entries: List[Tuple[logging.LogRecord, Dict[str, Any]]] = []

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith("logwrap."):
            return
        self.entries.append((record, dict(structlog.contextvars.get_contextvars())))

    @property
    def records(self) -> List[logging.LogRecord]:
        return [record for record, _ in self.entries]

    def messages(self) -> List[str]:
        return [record.getMessage() for record in self.records]

    def context_of(self, message: str) -> Dict[str, Any]:
        for record, context in self.entries:
            if record.getMessage() == message:
                return context
        raise AssertionError(f"no record {message!r} in {self.messages()}")


@pytest.fixture(autouse=True)
def clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def capture():
    """Attach a capturing handler to the root logger at TRACE level."""
    handler = ContextCapturingHandler()
    root = logging.getLogger()
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(1)
    yield handler
    root.removeHandler(handler)
    root.setLevel(previous_level)


@pytest.fixture
def registry() -> ConverterRegistry:
    return ConverterRegistry.discover(entry_points=False)
