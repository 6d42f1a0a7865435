"""Unified error handling for logwrap with structured context."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels for classification and handling."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for structured handling."""

    CONFIGURATION = "configuration"
    REGISTRY = "registry"
    CONTEXT = "context"
    RUNTIME = "runtime"


class LogwrapError(Exception):
    """
    Base exception for all logwrap failures with structured context.

    Failures raised by intercepted calls are never wrapped in this type;
    it only covers problems of the logging facility itself.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.RUNTIME,
        operation: Optional[str] = None,
        component: Optional[str] = None,
        help_text: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        """
        Initialize structured error.

        Args:
            message: Technical error message for developers
            context: Additional context data for debugging
            severity: Error severity level
            category: Error category for classification
            operation: Operation that failed (e.g., "register", "restore")
            component: Component where error occurred (e.g., "registry", "context")
            help_text: Suggested resolution
            error_code: Unique error code for documentation reference
        """
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.severity = severity
        self.category = category
        self.operation = operation
        self.component = component
        self.help_text = help_text
        self.error_code = error_code
        self.timestamp = datetime.now(timezone.utc)

        self.context.update(
            {
                "timestamp": self.timestamp.isoformat(),
                "severity": self.severity.value,
                "category": self.category.value,
            }
        )

        if self.operation:
            self.context["operation"] = self.operation
        if self.component:
            self.context["component"] = self.component

    def __str__(self) -> str:
        if self.operation and self.component:
            return f"[{self.component.upper()}] {self.operation} failed: {self.message}"
        elif self.operation:
            return f"Operation '{self.operation}' failed: {self.message}"
        return self.message

    def get_context_for_logging(self) -> Dict[str, Any]:
        """Get context information for structured logging."""
        log_context = self.context.copy()
        log_context.update(
            {
                "error_type": self.__class__.__name__,
                "error_message": self.message,
            }
        )

        if self.error_code:
            log_context["error_code"] = self.error_code
        if self.help_text:
            log_context["help_text"] = self.help_text

        return log_context

    def with_context(self, **additional_context: Any) -> "LogwrapError":
        """Add additional context to existing error."""
        self.context.update(additional_context)
        return self


class ConfigurationError(LogwrapError):
    """Configuration-related errors. These are fatal at startup."""

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        component: Optional[str] = None,
        help_text: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            component=component or "config",
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            help_text=help_text
            or "Check converter declarations, decorator options and LOGWRAP_* variables",
            error_code="CFG001",
            **kwargs,
        )

        if config_key:
            self.context["config_key"] = config_key


class RegistryError(LogwrapError):
    """Raised when a sealed converter registry is modified."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(
            message,
            component="registry",
            category=ErrorCategory.REGISTRY,
            error_code="REG001",
            help_text="Register all converters before the registry is sealed",
            **kwargs,
        )


class ContextScopeError(LogwrapError):
    """Diagnostic context put/restore imbalance; an internal invariant violation."""

    def __init__(self, message: str, *, keys: Optional[list] = None, **kwargs: Any) -> None:
        super().__init__(
            message,
            component="context",
            category=ErrorCategory.CONTEXT,
            severity=ErrorSeverity.CRITICAL,
            error_code="CTX001",
            **kwargs,
        )

        if keys:
            self.context["keys"] = keys
