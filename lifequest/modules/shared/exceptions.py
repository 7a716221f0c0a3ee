"""
LifeQuest exception hierarchy.

Services and the persistence gateway raise these; the CLI prints
``exc.message`` and exits 1. Model-level invariant violations raise
``DomainValidationError`` (see ``lifequest.domain.models.base``) and are
converted to ``ValidationError`` by the services.

Every ``LifeQuestError`` carries a message, a ``details`` dict, an
``ErrorSeverity`` used as the log level, an ``is_retryable`` hint and a
stable ``error_code``.

    LifeQuestError
    ├── ValidationError          bad caller input (INFO)
    ├── NotFoundError            unknown habit, hobby or goal (INFO)
    ├── InvalidOperationError    not allowed in the current state (INFO)
    └── PersistenceError         store failure, retryable (WARNING)
        └── StoreNotConnectedError   used before connect() (ERROR)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @property
    def label(self) -> str:
        return self.name.lower()


class LifeQuestError(Exception):
    """
    Base class for every error the engine raises on purpose.

    Subclasses set ``DEFAULT_SEVERITY`` and ``DEFAULT_RETRYABLE``; callers
    may still override both per instance.

    >>> str(LifeQuestError("Snapshot rejected", {"user_id": "u1"}, error_code="REJECTED"))
    "[REJECTED] Snapshot rejected | Details: {'user_id': 'u1'}"
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.label,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        text = f"[{self.error_code}] {self.message}"
        return f"{text} | Details: {self.details}" if self.details else text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, error_code={self.error_code!r})"


class ValidationError(LifeQuestError):
    """Caller input rejected; ``field`` names the argument."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "reason": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


class NotFoundError(LifeQuestError):
    """
    >>> NotFoundError("Habit", "run").message
    'Habit not found: run'
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        suffix = f": {identifier}" if identifier is not None else ""
        super().__init__(
            f"{resource_type} not found{suffix}",
            details={"resource": resource_type, "key": identifier},
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class InvalidOperationError(LifeQuestError):
    """An action that is valid in general but not right now (or unknown)."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Cannot {action}: {reason}",
            details={"action": action, "reason": reason},
            error_code=f"INVALID_{action.upper()}",
        )


class PersistenceError(LifeQuestError):
    """
    A snapshot store failed to load, save or delete.

    Retryable: a failed save leaves the dashboard dirty, so saving again is
    always safe.
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        operation: str,
        user_id: Optional[str],
        reason: str,
        error_code: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.user_id = user_id
        self.reason = reason
        super().__init__(
            f"Snapshot {operation} failed: {reason}",
            details={"operation": operation, "user_id": user_id, "reason": reason},
            error_code=error_code or f"PERSISTENCE_{operation.upper()}_FAILED",
        )


class StoreNotConnectedError(PersistenceError):
    """A store was used before ``connect()`` or after ``close()``."""

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = False

    def __init__(self, store: str, operation: str = "access") -> None:
        self.store = store
        super().__init__(
            operation, None, f"{store} store is not connected", error_code="STORE_NOT_CONNECTED"
        )


def is_transient_error(exc: BaseException) -> bool:
    return isinstance(exc, LifeQuestError) and exc.is_retryable


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """Log severity for any exception; foreign exceptions are ERROR."""
    return exc.severity if isinstance(exc, LifeQuestError) else ErrorSeverity.ERROR
