"""
LifeQuest Domain Constants

Purpose
-------
Built-in defaults for the progression rules: XP curve, baseline thresholds,
completion rewards, titles and level-up messages.

IMPORTANT:
This module contains PROGRESSION constants only. Infrastructure concerns
(database pool sizes, log paths) live in ``lifequest.core.config.config``.

Design Notes
------------
- Values are annotated with typing.Final to signal immutability
- Every value here is the fallback for a YAML tunable read through
  ConfigManager (see ``config/progression.yaml``)
- No side effects at import time
"""

from __future__ import annotations

from typing import Final, Tuple

# ============================================================================
# XP CURVE
# ============================================================================

XP_MULTIPLIER: Final[float] = 1.5  # Threshold growth per level-up (floored)

CATEGORY_BASE_THRESHOLD: Final[int] = 500  # academics, goals, books, social, timetable
HABIT_BASE_THRESHOLD: Final[int] = 100
HOBBY_BASE_THRESHOLD: Final[int] = 100

MIN_LEVEL: Final[int] = 1

# ============================================================================
# COMPLETION REWARDS (per-item trackers)
# ============================================================================

HABIT_COMPLETION_XP: Final[int] = 20
HOBBY_COMPLETION_XP: Final[int] = 30

# ============================================================================
# OVERALL LEVEL
# ============================================================================

# Six equally weighted components: five categories plus the habits average.
COMPONENT_WEIGHT: Final[float] = 1.0

# Ordered highest first; first breakpoint the level reaches wins.
TITLE_BREAKPOINTS: Final[Tuple[Tuple[int, str], ...]] = (
    (10, "GOATED"),
    (7, "Master Achiever"),
    (5, "Skilled Tracker"),
    (3, "Novice Explorer"),
    (2, "Beginner Adventurer"),
)
DEFAULT_TITLE: Final[str] = "Noob Idiot"

# ============================================================================
# LEVEL-UP MESSAGES
# ============================================================================

LEVEL_UP_MESSAGES: Final[Tuple[str, ...]] = (
    "You leveled up! Keep pushing forward!",
    "Level up! You're making great progress!",
    "Congratulations on reaching the next level!",
    "You're unstoppable! Another level conquered!",
    "Level up! Your dedication is paying off!",
    "Amazing work! You've reached a new milestone!",
    "You're on fire! Keep that momentum going!",
    "Level up! You're becoming a master!",
    "Incredible achievement! New level unlocked!",
    "GOATED STATUS ACHIEVED! You're legendary!",
)

# ============================================================================
# SOCIAL MEDIA DISCIPLINE
# ============================================================================

DISCIPLINE_LABELS: Final[Tuple[Tuple[int, str], ...]] = (
    (90, "Master"),
    (75, "Expert"),
    (60, "Adept"),
    (40, "Novice"),
)
DEFAULT_DISCIPLINE_LABEL: Final[str] = "Beginner"

DEFAULT_SOCIAL_LIMIT_MINUTES: Final[int] = 120
