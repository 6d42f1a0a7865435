"""Value converters: render runtime values for log output."""

from logwrap.converters.registry import (
    CONVERTERS_ENTRY_POINT_GROUP,
    ConverterRegistry,
    log_converter,
)
from logwrap.converters.standard import STANDARD_CONVERTERS

__all__ = [
    "CONVERTERS_ENTRY_POINT_GROUP",
    "ConverterRegistry",
    "STANDARD_CONVERTERS",
    "log_converter",
]
