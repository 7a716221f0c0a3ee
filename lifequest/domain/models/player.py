"""
Player Domain Model for LifeQuest.

Purpose
-------
The player record shown at the top of the dashboard: display name, lifetime
XP, overall level and title. ``level`` and ``title`` are derived by the
composite level aggregator and are never set directly by callers.

Responsibilities
----------------
- Accumulate lifetime XP (never decremented)
- Derive overall level and title from all category levels and the habits
  average (``recompute_overall_level``)
- Emit ``player.leveled_up`` / ``player.leveled_down`` on overall changes

Non-Responsibilities
--------------------
- Category ledgers (handled by CategoryProgress)
- Persistence (handled by the persistence gateway)

Usage Example
-------------
>>> overall = recompute_overall_level(dashboard.categories.values(), dashboard.habits)
>>> player.apply_overall_level(overall)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping

from lifequest.domain.models.base import (
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
)
from lifequest.domain.models.category import Category, CategoryProgress
from lifequest.domain.models.habit import ItemTracker
from lifequest.modules.shared.constants import COMPONENT_WEIGHT, DEFAULT_TITLE, MIN_LEVEL
from lifequest.modules.shared.formulas import (
    habits_average_level,
    title_for_level,
    weighted_overall_level,
)


# ============================================================================
# VALUE OBJECTS
# ============================================================================


@dataclass(frozen=True)
class OverallLevel:
    """Derived overall level and its title."""

    level: int
    title: str


# ============================================================================
# AGGREGATOR
# ============================================================================


def recompute_overall_level(
    categories: Iterable[CategoryProgress],
    habits: Iterable[ItemTracker],
) -> OverallLevel:
    """
    Overall level from the five category levels and the habits average.

    Six components, each weight 1.0: one per ``Category`` plus the mean
    habit level (1 with no habits). A category missing from ``categories``
    counts as level 1. The result is floored and never below 1.

    Raises
    ------
    DomainValidationError
        If the same category appears more than once

    Examples
    --------
    >>> recompute_overall_level([], [])
    OverallLevel(level=1, title='Noob Idiot')
    """
    levels: Dict[Category, int] = {category: MIN_LEVEL for category in Category}
    seen = set()
    for record in categories:
        if record.category in seen:
            raise DomainValidationError(
                f"Duplicate category record: {record.category.value}", field="categories"
            )
        seen.add(record.category)
        levels[record.category] = record.level

    components = [(float(level), COMPONENT_WEIGHT) for level in levels.values()]
    components.append(
        (float(habits_average_level(habit.level for habit in habits)), COMPONENT_WEIGHT)
    )

    level = weighted_overall_level(components)
    return OverallLevel(level=level, title=title_for_level(level))


# ============================================================================
# PLAYER RECORD
# ============================================================================


class PlayerRecord(Entity):
    """
    Player summary owned by the dashboard.

    Attributes
    ----------
    name : str
        Display name
    total_xp : int
        Lifetime XP awarded through categories
    level : int
        Derived overall level
    title : str
        Derived title
    """

    def __init__(
        self,
        name: str,
        total_xp: int = 0,
        level: int = MIN_LEVEL,
        title: str = DEFAULT_TITLE,
    ) -> None:
        super().__init__(name)
        validate_not_empty(name, "name")
        validate_non_negative(total_xp, "total_xp")
        self.name = name
        self.total_xp = total_xp
        self._level = max(MIN_LEVEL, level)
        self._title = title

    @property
    def level(self) -> int:
        return self._level

    @property
    def title(self) -> str:
        return self._title

    def add_lifetime_xp(self, amount: int) -> None:
        """Add to lifetime XP; negative amounts are ignored."""
        if amount > 0:
            self.total_xp += amount

    def apply_overall_level(self, overall: OverallLevel) -> bool:
        """
        Store a recomputed overall level.

        Returns True when the level changed.
        """
        old_level = self._level
        self._level = overall.level
        self._title = overall.title

        if overall.level == old_level:
            return False

        self.add_domain_event(
            "player.leveled_up" if overall.level > old_level else "player.leveled_down",
            {
                "old_level": old_level,
                "new_level": overall.level,
                "title": overall.title,
            },
        )
        return True

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_record(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "totalXP": self.total_xp,
            "level": self._level,
            "title": self._title,
        }

    @classmethod
    def from_record(cls, record: Any, default_name: str) -> "PlayerRecord":
        """
        Restore by direct assignment. Level and title are recomputed by the
        dashboard right after, so only ``name`` and ``totalXP`` matter here.
        """
        if not isinstance(record, Mapping):
            return cls(default_name)

        name = record.get("name")
        if not isinstance(name, str) or not name.strip():
            name = default_name

        total_xp = record.get("totalXP")
        if not isinstance(total_xp, int) or isinstance(total_xp, bool) or total_xp < 0:
            total_xp = 0

        level = record.get("level")
        if not isinstance(level, int) or isinstance(level, bool):
            level = MIN_LEVEL

        title = record.get("title")
        return cls(
            name,
            total_xp=total_xp,
            level=level,
            title=title if isinstance(title, str) else DEFAULT_TITLE,
        )

    def __repr__(self) -> str:
        return f"<PlayerRecord {self.name!r} level={self.level} title={self.title!r}>"
