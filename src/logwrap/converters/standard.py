"""Converters registered by default."""

from __future__ import annotations

import datetime as dt
import enum
import uuid
from pathlib import PurePath
from typing import Any, List

from logwrap.converters.registry import log_converter


@log_converter(dt.date, dt.time)
def temporal_converter(value: Any) -> str:
    """ISO-8601 rendering; ``datetime`` resolves here through ``date``."""
    return value.isoformat()


@log_converter(PurePath)
def path_converter(value: PurePath) -> str:
    return str(value)


@log_converter(uuid.UUID)
def uuid_converter(value: uuid.UUID) -> str:
    return str(value)


@log_converter(enum.Enum)
def enum_converter(value: enum.Enum) -> str:
    return value.name


STANDARD_CONVERTERS: List[Any] = [
    temporal_converter,
    path_converter,
    uuid_converter,
    enum_converter,
]
