"""
Converter registry: renders arbitrary runtime values for logging.

A converter is any callable taking the value and returning something
loggable. It declares the types it handles with ``@log_converter(...)``;
the registry resolves a value's converter by walking the value's type
ancestry and falls back to the value itself when nothing matches.
"""

from __future__ import annotations

import abc
from importlib.metadata import entry_points as _entry_points
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from logwrap.utils.errors import ConfigurationError, RegistryError
from logwrap.utils.logging import ContextKeys, get_registry_logger

CONVERTERS_ENTRY_POINT_GROUP = "logwrap.converters"
CONVERTER_TYPES_ATTR = "__log_converter_types__"

Converter = Callable[[Any], Any]
C = TypeVar("C")

_MISSING = object()


def log_converter(*types: type) -> Callable[[C], C]:
    """Declare the target types of a converter.

    Usage:
        @log_converter(Path, PurePath)
        def path_converter(value):
            return str(value)
    """
    if not types:
        raise ConfigurationError(
            "log_converter requires at least one target type",
            config_key=CONVERTER_TYPES_ATTR,
            component="registry",
        )
    for target in types:
        if not isinstance(target, type):
            raise ConfigurationError(
                f"log_converter target must be a type, got {target!r}",
                config_key=CONVERTER_TYPES_ATTR,
                component="registry",
            )

    def decorator(converter: C) -> C:
        setattr(converter, CONVERTER_TYPES_ATTR, tuple(types))
        return converter

    return decorator


def converter_name(converter: Any) -> str:
    """Qualified name of a converter, for diagnostics."""
    target = converter if hasattr(converter, "__qualname__") else type(converter)
    return f"{target.__module__}.{target.__qualname__}"


def type_name(target: type) -> str:
    return f"{target.__module__}.{target.__qualname__}"


def _as_callable(converter: Any) -> Converter:
    convert = getattr(converter, "convert", None)
    if callable(convert):
        return convert
    if callable(converter):
        return converter
    raise ConfigurationError(
        f"converter {converter!r} is neither callable nor has a convert() method",
        component="registry",
    )


class ConverterRegistry:
    """
    Maps types to converters and resolves converters by type ancestry.

    The registry is built once (see ``from_converters`` and ``discover``)
    and sealed; afterwards it is read-only and safe to share between threads.
    """

    def __init__(self) -> None:
        self._converters: Dict[type, Converter] = {}
        self._owners: Dict[type, str] = {}
        self._capabilities: List[type] = []
        self._resolved: Dict[type, Any] = {}
        self._sealed = False
        self._logger = get_registry_logger()

    # ------------------------------------------------------------------ build

    def register(self, converter: Any, *types: type) -> None:
        """
        Register a converter for one or more types.

        Args:
            converter: Callable, or object with a ``convert(value)`` method
                (or a class with one, which is instantiated)
            *types: Target types; defaults to the types declared with
                ``@log_converter``

        Raises:
            ConfigurationError: If no target types are given or declared
            RegistryError: If the registry is already sealed
        """
        if self._sealed:
            raise RegistryError(
                f"cannot register {converter_name(converter)} on a sealed registry",
                operation="register",
            )

        # Classes declaring convert() are instantiated; any other type is itself the callable
        if isinstance(converter, type) and callable(getattr(converter, "convert", None)):
            converter = converter()

        name = converter_name(converter)
        targets: Tuple[type, ...] = types or tuple(getattr(converter, CONVERTER_TYPES_ATTR, ()))
        if not targets:
            raise ConfigurationError(
                f"converter {name} must be declared with @log_converter(...)",
                config_key=CONVERTER_TYPES_ATTR,
                component="registry",
            )

        self._logger.debug("register converter", extra_context={ContextKeys.CONVERTER: name})
        convert = _as_callable(converter)
        for target in targets:
            self._add(target, convert, name)

    def _add(self, target: type, convert: Converter, name: str) -> None:
        previous = self._owners.get(target)
        if previous is not None:
            self._logger.warning(
                "ambiguous converters",
                extra_context={
                    ContextKeys.TARGET_TYPE: type_name(target),
                    ContextKeys.CONVERTER: name,
                    "replaced": previous,
                },
            )
        elif isinstance(target, abc.ABCMeta):
            self._capabilities.append(target)
        self._converters[target] = convert
        self._owners[target] = name
        self._resolved.clear()

    def seal(self) -> "ConverterRegistry":
        """Make the registry read-only."""
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    @classmethod
    def from_converters(cls, converters: Iterable[Any]) -> "ConverterRegistry":
        """Build a sealed registry, registering converters in iteration order."""
        registry = cls()
        for converter in converters:
            registry.register(converter)
        return registry.seal()

    @classmethod
    def discover(
        cls,
        converters: Iterable[Any] = (),
        *,
        include_standard: bool = True,
        entry_points: bool = True,
    ) -> "ConverterRegistry":
        """
        Build a sealed registry from every available converter.

        Order: standard converters, then ``converters``, then entry points of
        the ``logwrap.converters`` group sorted by name. Later registrations
        win on conflicts, so this order is the override order.
        """
        collected: List[Any] = []
        if include_standard:
            from logwrap.converters.standard import STANDARD_CONVERTERS

            collected.extend(STANDARD_CONVERTERS)
        collected.extend(converters)
        if entry_points:
            collected.extend(load_entry_point_converters())
        return cls.from_converters(collected)

    # ---------------------------------------------------------------- resolve

    def find_converter(self, target: type) -> Optional[Converter]:
        """
        Resolve the converter for ``target``.

        Checks the type itself, its superclass chain, then its other bases,
        depth-first; then registered abstract base classes via ``issubclass``.
        """
        cached = self._resolved.get(target, _MISSING)
        if cached is not _MISSING:
            return cached

        converter = self._walk(target)
        if converter is None:
            converter = self._find_capability(target)
        self._resolved[target] = converter
        return converter

    def _walk(self, target: type) -> Optional[Converter]:
        converter = self._converters.get(target)
        if converter is not None:
            return converter

        bases = target.__bases__
        if not bases:
            return None

        # First base is the superclass; the rest play the role of interfaces
        converter = self._walk(bases[0])
        if converter is not None:
            return converter
        for implemented in bases[1:]:
            converter = self._walk(implemented)
            if converter is not None:
                return converter
        return None

    def _find_capability(self, target: type) -> Optional[Converter]:
        for capability in self._capabilities:
            if issubclass(target, capability):
                return self._converters[capability]
        return None

    def convert(self, value: Any) -> Any:
        """Render ``value`` with its converter, or return it unchanged."""
        if value is None:
            return None
        converter = self.find_converter(type(value))
        if converter is not None:
            return converter(value)
        return value

    def __contains__(self, target: object) -> bool:
        return target in self._converters

    def __len__(self) -> int:
        return len(self._converters)

    def registered_types(self) -> Tuple[type, ...]:
        return tuple(self._converters)


def load_entry_point_converters(group: str = CONVERTERS_ENTRY_POINT_GROUP) -> List[Any]:
    """Load converters published under an entry point group, sorted by name.

    Raises:
        ConfigurationError: If an entry point cannot be loaded
    """
    loaded: List[Any] = []
    for entry_point in sorted(_entry_points(group=group), key=lambda ep: ep.name):
        try:
            loaded.append(entry_point.load())
        except Exception as exc:
            raise ConfigurationError(
                f"failed to load converter entry point {entry_point.name!r}: {exc}",
                config_key=group,
                component="registry",
            ) from exc
    return loaded
