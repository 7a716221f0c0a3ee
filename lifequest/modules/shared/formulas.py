"""
LifeQuest Progression Formulas

Purpose
-------
Pure calculation functions for the progression rules: the geometric level
curve, the composite overall level, titles, level-up messages and the
social-media discipline score.

Design Notes
------------
All formulas:
- Accept parameters explicitly (no config access, callers pass tunables)
- Return calculated values
- Have no side effects
- Are deterministic and testable

Usage
-----
    from lifequest.modules.shared.formulas import threshold_for_level

    threshold_for_level(3)            # 225
    overall_level([2, 2, 3, 3, 4, 4]) # 3
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from .constants import (
    COMPONENT_WEIGHT,
    DEFAULT_DISCIPLINE_LABEL,
    DEFAULT_TITLE,
    DISCIPLINE_LABELS,
    HABIT_BASE_THRESHOLD,
    LEVEL_UP_MESSAGES,
    MIN_LEVEL,
    TITLE_BREAKPOINTS,
    XP_MULTIPLIER,
)


# ============================================================================
# LEVEL CURVE
# ============================================================================


def grow_threshold(threshold: int, multiplier: float = XP_MULTIPLIER) -> int:
    """
    Threshold for the next level after a level-up.

    Example:
        >>> grow_threshold(100)
        150
        >>> grow_threshold(337)
        505
    """
    return math.floor(threshold * multiplier)


def shrink_threshold(threshold: int, multiplier: float = XP_MULTIPLIER) -> int:
    """
    Threshold restored after a level-down.

    Not an exact inverse of ``grow_threshold`` once flooring has discarded
    a fraction: ``shrink_threshold(grow_threshold(337)) == 336``.
    """
    return max(1, math.floor(threshold / multiplier))


def threshold_for_level(
    level: int,
    base: int = HABIT_BASE_THRESHOLD,
    multiplier: float = XP_MULTIPLIER,
) -> int:
    """
    XP needed to advance from ``level`` to ``level + 1`` on a fresh curve.

    Args:
        level: Current level (values below 1 are treated as 1)
        base: Threshold at level 1
        multiplier: Growth factor per level

    Example:
        >>> threshold_for_level(1)
        100
        >>> threshold_for_level(3)
        225
        >>> threshold_for_level(2, base=500)
        750
    """
    level = max(MIN_LEVEL, level)
    return math.floor(base * math.pow(multiplier, level - 1))


def total_xp_for_level(
    target_level: int,
    base: int = HABIT_BASE_THRESHOLD,
    multiplier: float = XP_MULTIPLIER,
) -> int:
    """
    Cumulative XP required to reach ``target_level`` from level 1.

    Example:
        >>> total_xp_for_level(1)
        0
        >>> total_xp_for_level(3)
        250
    """
    return sum(
        threshold_for_level(level, base, multiplier)
        for level in range(MIN_LEVEL, max(MIN_LEVEL, target_level))
    )


def progress_percentage(xp: int, next_level_xp: int) -> float:
    """
    Progress through the current level as a percentage (0-100).

    Example:
        >>> progress_percentage(75, 150)
        50.0
    """
    if next_level_xp <= 0:
        return 0.0
    return min(100.0, max(0.0, (xp / next_level_xp) * 100.0))


# ============================================================================
# OVERALL LEVEL & TITLE
# ============================================================================


def habits_average_level(levels: Iterable[int]) -> float:
    """
    Arithmetic mean of habit levels; 1 when there are no habits.

    Example:
        >>> habits_average_level([])
        1
        >>> habits_average_level([1, 2])
        1.5
    """
    values = list(levels)
    if not values:
        return MIN_LEVEL
    return sum(values) / len(values)


def weighted_overall_level(components: Sequence[Tuple[float, float]]) -> int:
    """
    Floor of the weighted mean of ``(level, weight)`` pairs, never below 1.

    Example:
        >>> weighted_overall_level([(3, 1.0), (4, 1.0)])
        3
    """
    total_weight = sum(weight for _, weight in components)
    if total_weight <= 0:
        return MIN_LEVEL
    weighted_sum = sum(level * weight for level, weight in components)
    return max(MIN_LEVEL, math.floor(weighted_sum / total_weight))


def overall_level(levels: Iterable[float]) -> int:
    """
    Overall level from equally weighted component levels.

    Example:
        >>> overall_level([1, 1, 1, 1, 1, 1])
        1
        >>> overall_level([10, 10, 10, 10, 10, 10])
        10
    """
    return weighted_overall_level([(level, COMPONENT_WEIGHT) for level in levels])


def title_for_level(
    level: int,
    breakpoints: Sequence[Tuple[int, str]] = TITLE_BREAKPOINTS,
    default: str = DEFAULT_TITLE,
) -> str:
    """
    Map an overall level to its display title.

    ``breakpoints`` are ordered highest first.

    Example:
        >>> title_for_level(1)
        'Noob Idiot'
        >>> title_for_level(6)
        'Skilled Tracker'
        >>> title_for_level(42)
        'GOATED'
    """
    for minimum, title in breakpoints:
        if level >= minimum:
            return title
    return default


def level_up_message(
    level: int,
    messages: Sequence[str] = LEVEL_UP_MESSAGES,
) -> str:
    """
    Celebration message for reaching ``level``.

    Levels past the end of the list reuse the last message.

    Example:
        >>> level_up_message(10)
        "GOATED STATUS ACHIEVED! You're legendary!"
    """
    if not messages:
        return ""
    index = min(max(level - 1, 0), len(messages) - 1)
    return messages[index]


# ============================================================================
# SOCIAL MEDIA DISCIPLINE
# ============================================================================


def discipline_score(platforms: Iterable[Mapping[str, Any]]) -> int:
    """
    Discipline score (0-100) from tracked platforms.

    Each platform contributes ``100 - usage%`` while under its limit and a
    penalty of half the overshoot once over it. ``usageToday`` is in seconds,
    ``timeLimit`` in minutes.

    Example:
        >>> discipline_score([{"usageToday": 1800, "timeLimit": 60}])
        50
        >>> discipline_score([])
        0
    """
    entries = list(platforms)
    if not entries:
        return 0

    total = 0.0
    for platform in entries:
        limit_minutes = platform.get("timeLimit") or 0
        usage_seconds = platform.get("usageToday") or 0
        if limit_minutes <= 0:
            continue
        usage_percent = (usage_seconds / (limit_minutes * 60)) * 100
        if usage_percent <= 100:
            total += 100 - usage_percent
        else:
            total -= (usage_percent - 100) * 0.5

    normalized = max(0.0, min(100.0, total / len(entries)))
    # Round half up so 62.5 -> 63
    return int(math.floor(normalized + 0.5))


def discipline_label(
    score: int,
    labels: Sequence[Tuple[int, str]] = DISCIPLINE_LABELS,
    default: str = DEFAULT_DISCIPLINE_LABEL,
) -> str:
    """
    Example:
        >>> discipline_label(92)
        'Master'
        >>> discipline_label(10)
        'Beginner'
    """
    for minimum, label in labels:
        if score >= minimum:
            return label
    return default


def score_percentage(score: float, max_score: float) -> Optional[float]:
    """Score as a percentage of ``max_score``; None when max is not positive."""
    if max_score <= 0:
        return None
    return (score / max_score) * 100.0
