"""
Base class for LifeQuest services.

A service wraps domain models with the concerns the models stay free of:
tunable lookups through ConfigManager, structured logging of operations and
domain events, and input validation that raises ``ValidationError``.

There is no event bus in a single-user engine; events drained from the
dashboard are logged and handed back to the caller.

    class ProgressionService(BaseService):
        def __init__(self, dashboard, config_manager=ConfigManager):
            super().__init__(config_manager, get_logger(__name__))
            self.dashboard = dashboard
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Type

from .exceptions import ValidationError, get_error_severity

if TYPE_CHECKING:
    from logging import Logger

    from lifequest.core.config.manager import ConfigManager
    from lifequest.domain.models.base import DomainEvent

# Events worth INFO; the rest are DEBUG
_NOTABLE_EVENT_SUFFIXES = ("leveled_up", "leveled_down", "unlocked")


class BaseService:
    """
    Args:
        config_manager: The ``ConfigManager`` class, or anything with its
            ``get``/``get_int``/``get_float`` classmethods
        logger: Logger for this service
    """

    def __init__(self, config_manager: Type[ConfigManager], logger: Logger) -> None:
        self._config = config_manager
        self.log = logger

    # Tunables

    def get_config(self, key: str, default: Optional[Any] = None) -> Any:
        return self._config.get(key, default)

    def get_config_int(self, key: str, default: int) -> int:
        return self._config.get_int(key, default)

    def get_config_float(self, key: str, default: float) -> float:
        return self._config.get_float(key, default)

    # Logging

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(f"Service operation: {operation}", extra={"operation": operation, **context})

    def log_events(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            notable = event.event_name.endswith(_NOTABLE_EVENT_SUFFIXES)
            self.log.log(
                logging.INFO if notable else logging.DEBUG,
                f"Domain event: {event.event_name}",
                extra={"event_name": event.event_name, "event_payload": event.payload},
            )

    def log_error(self, operation: str, error: BaseException, **context: Any) -> None:
        """Log at the error's own severity (foreign exceptions log at ERROR)."""
        self.log.log(
            get_error_severity(error).value,
            f"{operation} failed: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )

    # Validation

    def validate_non_negative_int(self, value: Any, name: str) -> None:
        """
        Raises:
            ValidationError: If value is not an int >= 0 (bools rejected)
        """
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(name, f"{name} must be a non-negative integer, got {value!r}")
