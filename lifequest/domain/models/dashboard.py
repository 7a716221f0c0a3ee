"""
Dashboard aggregate root.

Purpose
-------
Consistency boundary for one user's progression state: the player record,
one ``CategoryProgress`` per ``Category``, and the habit and hobby trackers.
Every mutation goes through this class so the overall level is recomputed
and the dirty flag set in one place.

Responsibilities
----------------
- Dispatch category XP through a ``Category -> CategoryProgress`` mapping
- Add lifetime XP to the player for every category award
- Add, remove and toggle habits and hobbies
- Recompute overall level and title after every change
- Produce and restore the camelCase snapshot

Non-Responsibilities
--------------------
- Reward amounts per feature action (handled by RewardRules)
- Where snapshots are stored (handled by the persistence gateway)

Snapshot Shape
--------------
``{"player", "habits", "hobbies", "academics", "goals", "books",
"socialMedia", "timetable", "updatedAt"}``. Restoring is direct assignment:
no award or deduct runs, so no events are emitted.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from lifequest.domain.models.base import AggregateRoot
from lifequest.domain.models.category import Category, CategoryProgress
from lifequest.domain.models.habit import ItemTracker, ToggleResult, TrackerKind
from lifequest.domain.models.ledger import AwardResult
from lifequest.domain.models.player import (
    OverallLevel,
    PlayerRecord,
    recompute_overall_level,
)
from lifequest.modules.shared.constants import CATEGORY_BASE_THRESHOLD, XP_MULTIPLIER

SNAPSHOT_KEYS = (
    "player",
    "habits",
    "hobbies",
    *(category.value for category in Category),
    "updatedAt",
)

_ITEM_KEYS = {TrackerKind.HABIT: "habits", TrackerKind.HOBBY: "hobbies"}


class Dashboard(AggregateRoot):
    """
    One user's complete progression state.

    Parameters
    ----------
    user_id : str
        Owner of the snapshot (document key in the stores)
    player : PlayerRecord
        Player summary; level and title are recomputed on construction
    categories : Mapping[Category, CategoryProgress]
        Missing categories are filled with defaults
    habits, hobbies : Iterable[ItemTracker]
        Per-item trackers
    """

    def __init__(
        self,
        user_id: str,
        player: PlayerRecord,
        categories: Optional[Mapping[Category, CategoryProgress]] = None,
        habits: Iterable[ItemTracker] = (),
        hobbies: Iterable[ItemTracker] = (),
        updated_at: Optional[str] = None,
        base_threshold: int = CATEGORY_BASE_THRESHOLD,
    ) -> None:
        super().__init__(user_id)
        self.player = player
        self._categories: Dict[Category, CategoryProgress] = {
            category: (categories or {}).get(category)
            or CategoryProgress.default(category, base_threshold)
            for category in Category
        }
        self.habits: List[ItemTracker] = list(habits)
        self.hobbies: List[ItemTracker] = list(hobbies)
        self.updated_at = updated_at
        self._dirty = False
        self.player.apply_overall_level(self.overall_level())
        self.player.clear_domain_events()

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def new(
        cls,
        user_id: str,
        player_name: str,
        base_threshold: int = CATEGORY_BASE_THRESHOLD,
    ) -> "Dashboard":
        """Default state for a brand-new user: everything at level 1."""
        dashboard = cls(
            user_id,
            PlayerRecord(player_name),
            base_threshold=base_threshold,
        )
        dashboard._dirty = True
        return dashboard

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def user_id(self) -> str:
        return self.id

    @property
    def categories(self) -> Mapping[Category, CategoryProgress]:
        return dict(self._categories)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_clean(self) -> None:
        self._dirty = False

    def category(self, category: Category) -> CategoryProgress:
        return self._categories[category]

    def items(self, kind: TrackerKind) -> List[ItemTracker]:
        return self.habits if kind is TrackerKind.HABIT else self.hobbies

    def find_item(self, kind: TrackerKind, key: str) -> Optional[ItemTracker]:
        """Look up a tracker by id, then by case-insensitive name."""
        trackers = self.items(kind)
        for item in trackers:
            if item.id == key:
                return item
        lowered = key.strip().lower()
        for item in trackers:
            if item.name.lower() == lowered:
                return item
        return None

    # =========================================================================
    # CATEGORY XP
    # =========================================================================

    def add_category_xp(
        self,
        category: Category,
        amount: int,
        multiplier: float = XP_MULTIPLIER,
    ) -> AwardResult:
        """
        Award XP to one category and to the player's lifetime total.

        The lifetime total grows by ``amount`` whether or not the category
        levels up.
        """
        record = self._categories[category]
        result = record.add_xp(amount, multiplier)
        self.player.add_lifetime_xp(amount)
        self._after_change(record)
        return result

    def update_category_fields(self, category: Category, **fields: Any) -> None:
        """Replace feature fields on a category record (no XP change)."""
        record = self._categories[category]
        record.fields.update(fields)
        self.updated_at = datetime.now(timezone.utc).isoformat()
        self._dirty = True

    def reset_category(
        self,
        category: Category,
        base_threshold: int = CATEGORY_BASE_THRESHOLD,
    ) -> None:
        record = self._categories[category]
        record.reset(base_threshold)
        self._after_change(record)

    # =========================================================================
    # HABITS & HOBBIES
    # =========================================================================

    def add_item(
        self,
        name: str,
        kind: TrackerKind = TrackerKind.HABIT,
        base_threshold: Optional[int] = None,
        **extra: Any,
    ) -> ItemTracker:
        item = ItemTracker.create(name, kind, base_threshold, **extra)
        self.items(kind).append(item)
        item.add_domain_event(
            f"{kind.value}.added", {"item_id": item.id, "name": item.name}
        )
        self._after_change(item)
        return item

    def remove_item(self, kind: TrackerKind, key: str) -> Optional[ItemTracker]:
        item = self.find_item(kind, key)
        if item is None:
            return None
        self.items(kind).remove(item)
        item.add_domain_event(
            f"{kind.value}.removed", {"item_id": item.id, "name": item.name}
        )
        self._after_change(item)
        return item

    def toggle_item(
        self,
        item: ItemTracker,
        on: Any,
        completion_xp: Optional[int] = None,
        multiplier: float = XP_MULTIPLIER,
        today: Optional[date] = None,
    ) -> ToggleResult:
        result = item.toggle_completion(on, completion_xp, multiplier, today)
        self._after_change(item)
        return result

    # =========================================================================
    # OVERALL LEVEL
    # =========================================================================

    def overall_level(self) -> OverallLevel:
        return recompute_overall_level(self._categories.values(), self.habits)

    def _after_change(self, *children: Any) -> None:
        self.player.apply_overall_level(self.overall_level())
        self._collect_events(*children, self.player)
        self.updated_at = datetime.now(timezone.utc).isoformat()
        self._dirty = True

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def to_snapshot(self) -> Dict[str, Any]:
        snapshot: Dict[str, Any] = {
            "player": self.player.to_record(),
            "habits": [item.to_record() for item in self.habits],
            "hobbies": [item.to_record() for item in self.hobbies],
        }
        for category, record in self._categories.items():
            snapshot[category.value] = record.to_record()
        snapshot["updatedAt"] = self.updated_at or datetime.now(timezone.utc).isoformat()
        return snapshot

    @classmethod
    def from_snapshot(
        cls,
        user_id: str,
        snapshot: Any,
        default_player_name: str,
        category_threshold: int = CATEGORY_BASE_THRESHOLD,
        item_thresholds: Optional[Mapping[TrackerKind, int]] = None,
        multiplier: float = XP_MULTIPLIER,
        today: Optional[date] = None,
    ) -> "Dashboard":
        """
        Restore a dashboard by direct field assignment.

        Missing or malformed sections fall back to level 1 / zero XP
        defaults; list entries that cannot describe a tracker are dropped.
        """
        data: Mapping[str, Any] = snapshot if isinstance(snapshot, Mapping) else {}
        thresholds = dict(item_thresholds or {})

        categories = {
            category: CategoryProgress.from_record(
                category, data.get(category.value), category_threshold, multiplier
            )
            for category in Category
        }

        trackers: Dict[TrackerKind, List[ItemTracker]] = {}
        for kind, key in _ITEM_KEYS.items():
            raw = data.get(key)
            restored = []
            for entry in raw if isinstance(raw, list) else []:
                item = ItemTracker.from_record(
                    entry, kind, thresholds.get(kind), multiplier, today=today
                )
                if item is not None:
                    restored.append(item)
            trackers[kind] = restored

        updated_at = data.get("updatedAt")
        return cls(
            user_id,
            PlayerRecord.from_record(data.get("player"), default_player_name),
            categories,
            trackers[TrackerKind.HABIT],
            trackers[TrackerKind.HOBBY],
            updated_at=updated_at if isinstance(updated_at, str) else None,
            base_threshold=category_threshold,
        )

    def __repr__(self) -> str:
        return (
            f"<Dashboard user={self.user_id!r} level={self.player.level} "
            f"habits={len(self.habits)} hobbies={len(self.hobbies)}>"
        )
