"""
LifeQuest Shared Module

Purpose
-------
Foundations used by every feature module:
- Exceptions and error handling
- Base service pattern
- Progression constants and pure formulas

Architecture
------------
- BaseService: Foundation for service classes (logging, config, validation)
- Exceptions: LifeQuestError hierarchy with severity and retry hints
- Formulas: Pure calculation functions for the XP curve and titles
- Constants: Built-in defaults behind every YAML tunable

Usage
-----
    from lifequest.modules.shared import (
        BaseService,
        NotFoundError,
        threshold_for_level,
        title_for_level,
    )
"""

from __future__ import annotations

# Base patterns
from .base_service import BaseService

# Exceptions
from .exceptions import (
    ErrorSeverity,
    InvalidOperationError,
    LifeQuestError,
    NotFoundError,
    PersistenceError,
    StoreNotConnectedError,
    ValidationError,
    get_error_severity,
    is_transient_error,
)

# Constants
from .constants import (
    CATEGORY_BASE_THRESHOLD,
    DEFAULT_TITLE,
    HABIT_BASE_THRESHOLD,
    HABIT_COMPLETION_XP,
    HOBBY_BASE_THRESHOLD,
    HOBBY_COMPLETION_XP,
    LEVEL_UP_MESSAGES,
    MIN_LEVEL,
    TITLE_BREAKPOINTS,
    XP_MULTIPLIER,
)

# Formulas
from .formulas import (
    discipline_label,
    discipline_score,
    level_up_message,
    overall_level,
    progress_percentage,
    threshold_for_level,
    title_for_level,
    total_xp_for_level,
)

__all__ = [
    # Base patterns
    "BaseService",
    # Exceptions
    "LifeQuestError",
    "ErrorSeverity",
    "NotFoundError",
    "ValidationError",
    "InvalidOperationError",
    "PersistenceError",
    "StoreNotConnectedError",
    "is_transient_error",
    "get_error_severity",
    # Constants
    "XP_MULTIPLIER",
    "CATEGORY_BASE_THRESHOLD",
    "HABIT_BASE_THRESHOLD",
    "HOBBY_BASE_THRESHOLD",
    "HABIT_COMPLETION_XP",
    "HOBBY_COMPLETION_XP",
    "MIN_LEVEL",
    "TITLE_BREAKPOINTS",
    "DEFAULT_TITLE",
    "LEVEL_UP_MESSAGES",
    # Formulas
    "threshold_for_level",
    "total_xp_for_level",
    "progress_percentage",
    "overall_level",
    "title_for_level",
    "level_up_message",
    "discipline_score",
    "discipline_label",
]
