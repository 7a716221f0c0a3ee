"""
Category Progress domain model.

Purpose
-------
One ``CategoryProgress`` per feature area (academics, goals, books, social
media, timetable). Each embeds an ``XPLedger`` plus the feature's own fields
(subject list, goal lists, platform list...). The progression engine only
reads and writes the ledger; feature fields round-trip untouched.

Snapshot Shape
--------------
``{"totalXP": int, "<levelField>": int, "nextLevelXP": int, ...feature fields}``
where ``<levelField>`` is ``disciplineLevel`` for social media and
``overallLevel`` for every other category.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from lifequest.domain.models.base import DomainValidationError, Entity
from lifequest.domain.models.ledger import (
    AwardResult,
    XPLedger,
    award,
    ledger_from_record,
)
from lifequest.modules.shared.constants import (
    CATEGORY_BASE_THRESHOLD,
    DEFAULT_SOCIAL_LIMIT_MINUTES,
    XP_MULTIPLIER,
)

XP_FIELD = "totalXP"
THRESHOLD_FIELD = "nextLevelXP"


class Category(str, Enum):
    """Feature areas that own a category ledger. Values are snapshot keys."""

    ACADEMICS = "academics"
    GOALS = "goals"
    BOOKS = "books"
    SOCIAL_MEDIA = "socialMedia"
    TIMETABLE = "timetable"

    @property
    def level_field(self) -> str:
        return "disciplineLevel" if self is Category.SOCIAL_MEDIA else "overallLevel"

    @classmethod
    def parse(cls, name: str) -> "Category":
        """
        Resolve a category from its snapshot key or a CLI-friendly alias.

        >>> Category.parse("social")
        <Category.SOCIAL_MEDIA: 'socialMedia'>
        """
        key = (name or "").strip()
        normalized = key.lower().replace("-", "").replace("_", "")
        for category in cls:
            if normalized == category.value.lower():
                return category
        if normalized in ("social", "socialmedia"):
            return cls.SOCIAL_MEDIA
        raise DomainValidationError(f"Unknown category: {name!r}", field="category")


# Feature fields a brand-new record starts with.
DEFAULT_FIELDS: Dict[Category, Dict[str, Any]] = {
    Category.ACADEMICS: {"subjects": []},
    Category.GOALS: {
        "weekly": [],
        "monthly": [],
        "yearly": [],
        "life": [],
        "achievements": [],
    },
    Category.BOOKS: {"reading": [], "completed": []},
    Category.SOCIAL_MEDIA: {
        "platforms": [],
        "dailyUsage": 0,
        "limit": DEFAULT_SOCIAL_LIMIT_MINUTES,
        "streakDays": 0,
    },
    Category.TIMETABLE: {"events": []},
}


class CategoryProgress(Entity):
    """
    XP ledger plus opaque feature fields for one category.

    The entity id is the ``Category`` itself; a dashboard holds exactly one
    record per category.
    """

    def __init__(
        self,
        category: Category,
        ledger: Optional[XPLedger] = None,
        fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(category)
        self.category = category
        self._ledger = ledger or XPLedger.fresh(CATEGORY_BASE_THRESHOLD)
        self.fields: Dict[str, Any] = copy.deepcopy(dict(fields or {}))

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def default(
        cls,
        category: Category,
        base_threshold: int = CATEGORY_BASE_THRESHOLD,
    ) -> "CategoryProgress":
        return cls(
            category,
            XPLedger.fresh(base_threshold),
            DEFAULT_FIELDS.get(category, {}),
        )

    @classmethod
    def from_record(
        cls,
        category: Category,
        record: Any,
        base_threshold: int = CATEGORY_BASE_THRESHOLD,
        multiplier: float = XP_MULTIPLIER,
    ) -> "CategoryProgress":
        """
        Restore from a snapshot record by direct assignment.

        A missing or non-mapping record yields the level 1 / zero XP default;
        malformed ledger values are repaired field by field. Feature fields
        are kept verbatim, with defaults filled in for any that are absent.
        """
        if not isinstance(record, Mapping):
            return cls.default(category, base_threshold)

        ledger = ledger_from_record(
            record, XP_FIELD, category.level_field, base_threshold, multiplier
        )
        ledger_keys = {XP_FIELD, THRESHOLD_FIELD, category.level_field}
        fields = copy.deepcopy(DEFAULT_FIELDS.get(category, {}))
        fields.update(
            {key: value for key, value in record.items() if key not in ledger_keys}
        )
        return cls(category, ledger, fields)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def ledger(self) -> XPLedger:
        return self._ledger

    @property
    def level(self) -> int:
        return self._ledger.level

    @property
    def xp(self) -> int:
        return self._ledger.xp

    @property
    def next_level_xp(self) -> int:
        return self._ledger.next_level_xp

    # =========================================================================
    # BUSINESS LOGIC
    # =========================================================================

    def add_xp(self, amount: int, multiplier: float = XP_MULTIPLIER) -> AwardResult:
        """
        Award XP to this category's ledger.

        Emits ``category.xp_awarded`` and, on a level change,
        ``category.leveled_up``.
        """
        old_level = self.level
        result = award(self._ledger, amount, multiplier)
        self._ledger = result.ledger

        self.add_domain_event(
            "category.xp_awarded",
            {"category": self.category.value, "amount": amount, "xp": result.xp},
        )
        if result.leveled_up:
            self.add_domain_event(
                "category.leveled_up",
                {
                    "category": self.category.value,
                    "old_level": old_level,
                    "new_level": result.level,
                    "levels_gained": result.levels_gained,
                },
            )
        return result

    def reset(self, base_threshold: int = CATEGORY_BASE_THRESHOLD) -> None:
        """Return the ledger to level 1; feature fields are kept."""
        self._ledger = XPLedger.fresh(base_threshold)
        self.add_domain_event("category.reset", {"category": self.category.value})

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_record(self) -> Dict[str, Any]:
        record = copy.deepcopy(self.fields)
        record[XP_FIELD] = self._ledger.xp
        record[self.category.level_field] = self._ledger.level
        record[THRESHOLD_FIELD] = self._ledger.next_level_xp
        return record

    def __repr__(self) -> str:
        return (
            f"<CategoryProgress {self.category.value} "
            f"level={self.level} xp={self.xp}/{self.next_level_xp}>"
        )
