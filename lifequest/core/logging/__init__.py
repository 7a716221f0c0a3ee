"""
LifeQuest logging.

Queue-backed structured logging with ContextVar-based context
(``LogContext``). See ``lifequest.core.logging.logger``.
"""

from lifequest.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    clear_log_context,
    current_log_context,
    get_logger,
    get_logging_health,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "get_logging_health",
    "LogContext",
    "ContextFilter",
    "JSONFormatter",
    "set_log_context",
    "clear_log_context",
    "current_log_context",
]
