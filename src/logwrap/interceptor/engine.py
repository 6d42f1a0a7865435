"""
Call interception engine.

``LoggingInterceptor.wrap`` runs one intercepted call through

    ENTER -> CONTEXT_POPULATED -> PRE_LOGGED -> INVOKED -> POST_LOGGED -> RESTORED

populating the diagnostic context, writing the call/result/failure records
and restoring the context on every exit path. The call's own result or
exception always reaches the caller unchanged.
"""

from __future__ import annotations

import inspect
import logging
from functools import lru_cache, wraps
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from logwrap.context.store import ContextScope, ContextStore
from logwrap.context.variables import (
    ContextVariableProducer,
    discover_context_variables,
    normalize_variable,
)
from logwrap.converters.registry import ConverterRegistry
from logwrap.interceptor.descriptor import (
    LoggerSpec,
    LoggingDescriptor,
    ParameterSpec,
    build_descriptor,
)
from logwrap.interceptor.messages import (
    FAILURE_MESSAGE,
    RESULT_MESSAGE,
    auto_message,
    render_json_event,
)
from logwrap.utils.config import resolve_settings
from logwrap.utils.logging import LogLevel, get_interceptor_logger

F = TypeVar("F", bound=Callable[..., Any])

JSON_CONTEXT_KEY = "json"
DESCRIPTOR_ATTR = "__logging_descriptor__"


class _CallLogging:
    """Logging state of a single intercepted call."""

    def __init__(
        self,
        interceptor: "LoggingInterceptor",
        descriptor: LoggingDescriptor,
        arguments: List[Tuple[ParameterSpec, Any]],
    ) -> None:
        self.interceptor = interceptor
        self.descriptor = descriptor
        self.arguments = arguments
        self.logger = interceptor.get_logger(descriptor.logger_name)
        self.level = descriptor.level
        self.scope: ContextScope = interceptor.store.scope()

    @property
    def converters(self) -> ConverterRegistry:
        return self.interceptor.converters

    def log_call(self) -> None:
        self._add_parameter_contexts()
        self._add_context_variables()
        if self.descriptor.json:
            self.scope.put(JSON_CONTEXT_KEY, self._json_event())

        if self.level.is_enabled(self.logger):
            self.level.log(self.logger, self._message(), *self._parameters())

    def _add_parameter_contexts(self) -> None:
        collected: Dict[str, str] = {}
        for spec, value in self.arguments:
            if not spec.context_keys:
                continue
            converted = self.converters.convert(value)
            if converted is None:
                continue
            text = str(converted)
            for key in spec.context_keys:
                collected[key] = f"{collected[key]} {text}" if key in collected else text
        for key, text in collected.items():
            self.scope.put(key, text)

    def _add_context_variables(self) -> None:
        for producer in self.interceptor.variables:
            variable = normalize_variable(producer())
            if variable is None:
                continue
            self.scope.put(variable.key, variable.value)

    def _logged_arguments(self) -> List[Tuple[ParameterSpec, Any]]:
        return [(spec, value) for spec, value in self.arguments if not spec.dont_log]

    def _parameters(self) -> List[Any]:
        arguments = self._logged_arguments()
        if self.descriptor.message_arguments is not None:
            arguments = arguments[: self.descriptor.message_arguments]
        return [self.converters.convert(value) for _, value in arguments]

    def _message(self) -> str:
        if self.descriptor.message:
            return self.descriptor.message
        return auto_message(self.descriptor.method_name, len(self._logged_arguments()))

    def _json_event(self) -> str:
        return render_json_event(
            self.descriptor.method_name,
            [(spec.name, self.converters.convert(value)) for spec, value in self._logged_arguments()],
        )

    def log_result(self, result: Any) -> None:
        if self.descriptor.returns_value:
            self.level.log(self.logger, RESULT_MESSAGE, self.converters.convert(result))

    def log_exception(self, exc: Exception) -> None:
        self.level.log(self.logger, FAILURE_MESSAGE, exc_info=exc)

    def done(self) -> None:
        self.scope.restore()


class LoggingInterceptor:
    """
    Wraps calls with call/result/failure logging and diagnostic context.

    Args:
        converters: Sealed converter registry used to render values
        variables: Context-variable producers consulted on every call
        logger_factory: Maps a logger name to the logger sink
        store: Diagnostic context store
    """

    def __init__(
        self,
        converters: ConverterRegistry,
        variables: Iterable[ContextVariableProducer] = (),
        *,
        logger_factory: Callable[[str], logging.Logger] = logging.getLogger,
        store: Optional[ContextStore] = None,
        default_level: Union[str, int, LogLevel] = LogLevel.DEBUG,
    ) -> None:
        self.converters = converters
        self.variables: Tuple[ContextVariableProducer, ...] = tuple(variables)
        self.logger_factory = logger_factory
        self.store = store or ContextStore()
        self.default_level = LogLevel.parse(default_level)

    def get_logger(self, name: str) -> logging.Logger:
        return self.logger_factory(name)

    def _start(
        self, descriptor: LoggingDescriptor, args: Tuple[Any, ...], kwargs: Dict[str, Any]
    ) -> Optional[_CallLogging]:
        try:
            arguments = descriptor.bind(args, kwargs)
        except TypeError:
            # Arguments don't fit the signature; the call itself raises the real error
            return None
        call_logging = _CallLogging(self, descriptor, arguments)
        try:
            call_logging.log_call()
        except BaseException:
            call_logging.done()
            raise
        return call_logging

    def wrap(
        self,
        descriptor: LoggingDescriptor,
        proceed: Callable[..., Any],
        args: Tuple[Any, ...] = (),
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Run ``proceed(*args, **kwargs)`` exactly once inside the logging lifecycle.

        Returns the call's result; re-raises its exception unchanged.
        """
        kwargs = kwargs or {}
        call_logging = self._start(descriptor, args, kwargs)
        if call_logging is None:
            return proceed(*args, **kwargs)

        try:
            result = proceed(*args, **kwargs)
            call_logging.log_result(result)
            return result
        except Exception as exc:
            call_logging.log_exception(exc)
            raise
        finally:
            call_logging.done()

    async def wrap_async(
        self,
        descriptor: LoggingDescriptor,
        proceed: Callable[..., Any],
        args: Tuple[Any, ...] = (),
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Coroutine counterpart of ``wrap``; the context spans the awaited call."""
        kwargs = kwargs or {}
        call_logging = self._start(descriptor, args, kwargs)
        if call_logging is None:
            return await proceed(*args, **kwargs)

        try:
            result = await proceed(*args, **kwargs)
            call_logging.log_result(result)
            return result
        except Exception as exc:
            call_logging.log_exception(exc)
            raise
        finally:
            call_logging.done()

    def logged(
        self,
        func: Optional[F] = None,
        *,
        level: Union[str, int, LogLevel, None] = None,
        message: str = "",
        logger: LoggerSpec = None,
        json: bool = False,
        dont_log: Iterable[str] = (),
        context: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """
        Decorator logging every call of the decorated function.

        Usage:
            @interceptor.logged
            def fetch_order(self, order_id): ...

            @interceptor.logged(level="INFO", context={"order_id": "order"})
            def fetch_order(self, order_id): ...

        Args:
            level: Call-site level (defaults to the interceptor's default level)
            message: %-style template; empty derives it from the function name
            logger: Explicit logger name, class or ``logging.Logger``
            json: Also publish a JSON rendering of the call under context key "json"
            dont_log: Parameter names excluded from the log arguments
            context: Parameter name -> diagnostic context key
        """

        def decorator(target: F) -> F:
            descriptor = build_descriptor(
                target,
                level=self.default_level if level is None else level,
                message=message,
                logger=logger,
                json=json,
                dont_log=dont_log,
                context=context,
            )
            get_interceptor_logger().debug(
                "logged call site",
                extra_context={
                    "site": f"{target.__module__}.{target.__qualname__}",
                    "logger_name": descriptor.logger_name,
                    "level": descriptor.level.value,
                },
            )

            if inspect.iscoroutinefunction(target):

                @wraps(target)
                async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                    return await self.wrap_async(descriptor, target, args, kwargs)

                setattr(async_wrapper, DESCRIPTOR_ATTR, descriptor)
                return async_wrapper  # type: ignore[return-value]

            @wraps(target)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                return self.wrap(descriptor, target, args, kwargs)

            setattr(wrapper, DESCRIPTOR_ATTR, descriptor)
            return wrapper  # type: ignore[return-value]

        if func is not None:
            return decorator(func)
        return decorator


@lru_cache()
def get_default_interceptor() -> LoggingInterceptor:
    """Interceptor built from the environment settings and discovery, once per process."""
    settings = resolve_settings()
    return LoggingInterceptor(
        ConverterRegistry.discover(entry_points=settings.discover_entry_points),
        discover_context_variables(entry_points=settings.discover_entry_points),
        default_level=settings.default_level,
    )


def logged(func: Optional[F] = None, **options: Any) -> Any:
    """``LoggingInterceptor.logged`` on the default interceptor.

    The default interceptor is resolved at decoration time.
    """
    return get_default_interceptor().logged(func, **options)


def get_descriptor(func: Callable[..., Any]) -> Optional[LoggingDescriptor]:
    """Descriptor attached to a ``logged`` wrapper, if any."""
    return getattr(func, DESCRIPTOR_ATTR, None)
