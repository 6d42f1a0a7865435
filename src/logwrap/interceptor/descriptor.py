"""
Per-call-site logging configuration.

``build_descriptor`` turns a function plus the options given to ``@logged``
into a ``LoggingDescriptor`` once, at decoration time. Parameter markers can
be attached with ``typing.Annotated``:

    def login(self, user: str, password: Annotated[str, DontLog]) -> None: ...
    def handle(self, request_id: Annotated[str, LogContext("request-id")]): ...

or through the decorator options ``dont_log=("password",)`` and
``context={"request_id": "request-id"}``.
"""

from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from logwrap.interceptor.messages import (
    JSON_RESERVED_KEYS,
    prepare_template,
)
from logwrap.utils.errors import ConfigurationError
from logwrap.utils.logging import LogLevel

RECEIVER_NAMES = ("self", "cls")

LoggerSpec = Union[str, type, logging.Logger, None]


class DontLog:
    """Marker: exclude the parameter from the positional log arguments."""


@dataclass(frozen=True)
class LogContext:
    """Marker: contribute the parameter's converted value to a context key."""

    key: str


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    dont_log: bool = False
    context_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LoggingDescriptor:
    """Resolved static configuration of one logged call site."""

    method_name: str
    logger_name: str
    level: LogLevel
    message: str
    parameters: Tuple[ParameterSpec, ...]
    returns_value: bool
    json: bool = False
    receiver: Optional[str] = None
    message_arguments: Optional[int] = None
    signature: Optional[inspect.Signature] = field(default=None, compare=False, repr=False)

    @property
    def logged_parameters(self) -> Tuple[ParameterSpec, ...]:
        return tuple(spec for spec in self.parameters if not spec.dont_log)

    @property
    def context_parameters(self) -> Tuple[ParameterSpec, ...]:
        return tuple(spec for spec in self.parameters if spec.context_keys)

    def bind(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> List[Tuple[ParameterSpec, Any]]:
        """
        Pair every parameter spec with its actual argument.

        Raises:
            TypeError: If the arguments do not match the signature
        """
        if self.signature is None:
            return []
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return [(spec, bound.arguments[spec.name]) for spec in self.parameters]


def resolve_logger_name(func: Callable[..., Any], logger: LoggerSpec = None) -> str:
    """
    Logger name for a call site.

    An explicit logger wins. Otherwise methods log under their outermost
    enclosing class (``module.Outer``), plain functions under their module.
    """
    if logger is not None:
        if isinstance(logger, str):
            return logger
        if isinstance(logger, logging.Logger):
            return logger.name
        if isinstance(logger, type):
            return f"{logger.__module__}.{logger.__qualname__}"
        raise ConfigurationError(
            f"logger must be a name, a class or a logging.Logger, got {logger!r}",
            config_key="logger",
            component="interceptor",
        )

    qualname = func.__qualname__.rsplit("<locals>.", 1)[-1]
    outermost, _, rest = qualname.partition(".")
    if rest:
        return f"{func.__module__}.{outermost}"
    return func.__module__


def _type_hints(func: Callable[..., Any], signature: inspect.Signature) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(func, include_extras=True)
    except (NameError, TypeError, AttributeError):
        # Unresolvable forward references: fall back to the raw annotations
        return {name: param.annotation for name, param in signature.parameters.items()}


def _markers(annotation: Any) -> Tuple[bool, Tuple[str, ...]]:
    if typing.get_origin(annotation) is not typing.Annotated:
        return False, ()
    dont_log = False
    keys: List[str] = []
    for meta in annotation.__metadata__:
        if meta is DontLog or isinstance(meta, DontLog):
            dont_log = True
        elif isinstance(meta, LogContext):
            keys.append(meta.key)
    return dont_log, tuple(keys)


def _returns_value(signature: inspect.Signature) -> bool:
    annotation = signature.return_annotation
    return not (annotation is None or annotation is type(None) or annotation == "None")


def build_descriptor(
    func: Callable[..., Any],
    *,
    level: Union[str, int, LogLevel] = LogLevel.DEBUG,
    message: str = "",
    logger: LoggerSpec = None,
    json: bool = False,
    dont_log: Iterable[str] = (),
    context: Optional[Mapping[str, str]] = None,
) -> LoggingDescriptor:
    """
    Build the descriptor for ``func``.

    Raises:
        ConfigurationError: If ``dont_log``/``context`` name unknown parameters
            or ``level``/``logger`` are invalid
            or ``message`` has more placeholders than logged parameters
            or a ``json`` call site has a parameter named ``event``/``timestamp``
    """
    signature = inspect.signature(func)
    hints = _type_hints(func, signature)

    params = list(signature.parameters.values())
    receiver: Optional[str] = None
    if params and params[0].name in RECEIVER_NAMES:
        receiver = params[0].name
        params = params[1:]

    names = {param.name for param in params}
    suppressed = set(dont_log)
    context_options = dict(context or {})
    unknown = sorted((suppressed | set(context_options)) - names)
    if unknown:
        raise ConfigurationError(
            f"{func.__qualname__} has no parameter(s) {', '.join(unknown)}",
            config_key="dont_log/context",
            component="interceptor",
        )

    specs: List[ParameterSpec] = []
    for param in params:
        marked_dont_log, keys = _markers(hints.get(param.name, param.annotation))
        if param.name in context_options:
            keys = keys + (context_options[param.name],)
        keys = tuple(dict.fromkeys(keys))
        specs.append(
            ParameterSpec(
                name=param.name,
                dont_log=marked_dont_log or param.name in suppressed,
                context_keys=keys,
            )
        )

    logged_names = [spec.name for spec in specs if not spec.dont_log]
    if json:
        reserved = [name for name in logged_names if name in JSON_RESERVED_KEYS]
        if reserved:
            raise ConfigurationError(
                f"{func.__qualname__} parameter(s) {', '.join(reserved)} clash with JSON event keys",
                config_key="json",
                component="interceptor",
                help_text="Rename the parameter or exclude it with dont_log",
            )

    template = message or ""
    message_arguments: Optional[int] = None
    if template:
        template, message_arguments = prepare_template(template)
        if message_arguments > len(logged_names):
            raise ConfigurationError(
                f"message {message!r} has {message_arguments} placeholder(s) but "
                f"{func.__qualname__} logs {len(logged_names)} parameter(s)",
                config_key="message",
                component="interceptor",
            )

    return LoggingDescriptor(
        method_name=func.__name__,
        logger_name=resolve_logger_name(func, logger),
        level=LogLevel.parse(level),
        message=template,
        parameters=tuple(specs),
        returns_value=_returns_value(signature),
        json=json,
        receiver=receiver,
        message_arguments=message_arguments,
        signature=signature,
    )
