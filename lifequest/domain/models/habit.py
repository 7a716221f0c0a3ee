"""
Habit and hobby trackers.

Purpose
-------
Per-item progress: every habit or hobby owns its own ``XPLedger``, a
streak, a per-date completion map and an append-only history of toggles.

Responsibilities
----------------
- Toggle completion for a calendar date, awarding or deducting the item's
  completion XP through the ledger
- Keep streak and ``completed`` (today's state) consistent with the map
- Serialize to / restore from the camelCase snapshot record

Toggling the same date twice restores ``xp``, ``level``, ``nextLevelXP`` and
``streak`` exactly; only ``history`` keeps growing.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from lifequest.domain.models.base import (
    DomainValidationError,
    Entity,
    validate_not_empty,
    validate_positive,
)
from lifequest.domain.models.ledger import XPLedger, award, deduct, ledger_from_record
from lifequest.modules.shared.constants import (
    HABIT_BASE_THRESHOLD,
    HABIT_COMPLETION_XP,
    HOBBY_BASE_THRESHOLD,
    HOBBY_COMPLETION_XP,
    XP_MULTIPLIER,
)

# Keys owned by the tracker itself; anything else on a record is kept verbatim.
_RECORD_KEYS = frozenset(
    {
        "id",
        "name",
        "kind",
        "level",
        "xp",
        "nextLevelXP",
        "streak",
        "completed",
        "completionDates",
        "history",
    }
)


class TrackerKind(str, Enum):
    HABIT = "habit"
    HOBBY = "hobby"

    @property
    def default_completion_xp(self) -> int:
        return HABIT_COMPLETION_XP if self is TrackerKind.HABIT else HOBBY_COMPLETION_XP

    @property
    def default_base_threshold(self) -> int:
        return HABIT_BASE_THRESHOLD if self is TrackerKind.HABIT else HOBBY_BASE_THRESHOLD


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of a single completion toggle."""

    item_id: str
    date: str
    completed: bool
    xp_delta: int
    leveled_up: bool = False
    leveled_down: bool = False
    level: int = 1


def normalize_date(value: Any) -> str:
    """
    Canonical ``YYYY-MM-DD`` key for the completion map.

    Raises
    ------
    DomainValidationError
        If the value is not a date or an ISO date string
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()).isoformat()
        except ValueError:
            pass
    raise DomainValidationError(f"Invalid completion date: {value!r}", field="date")


class ItemTracker(Entity):
    """
    A single habit or hobby.

    Attributes
    ----------
    name : str
        Display name
    kind : TrackerKind
        Decides the default completion reward (habit 20, hobby 30)
    streak : int
        Completion count, incremented on complete and decremented (floored at
        0) on un-complete
    completion_dates : Dict[str, bool]
        Per-date completion state keyed by ``YYYY-MM-DD``
    history : List[Dict[str, Any]]
        Timestamped log of every toggle
    """

    def __init__(
        self,
        item_id: str,
        name: str,
        kind: TrackerKind = TrackerKind.HABIT,
        ledger: Optional[XPLedger] = None,
        streak: int = 0,
        completed: bool = False,
        completion_dates: Optional[Mapping[str, bool]] = None,
        history: Optional[List[Dict[str, Any]]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(item_id)
        validate_not_empty(name, "name")
        self.name = name.strip()
        self.kind = kind
        self._ledger = ledger or XPLedger.fresh(kind.default_base_threshold)
        self.streak = max(0, streak)
        self.completed = completed
        self.completion_dates: Dict[str, bool] = dict(completion_dates or {})
        self.history: List[Dict[str, Any]] = list(history or [])
        self.extra: Dict[str, Any] = copy.deepcopy(dict(extra or {}))

    @classmethod
    def create(
        cls,
        name: str,
        kind: TrackerKind = TrackerKind.HABIT,
        base_threshold: Optional[int] = None,
        item_id: Optional[str] = None,
        **extra: Any,
    ) -> "ItemTracker":
        """New tracker at level 1 with a fresh ledger and a random id."""
        threshold = base_threshold or kind.default_base_threshold
        validate_positive(threshold, "base_threshold")
        return cls(
            item_id or str(uuid.uuid4()),
            name,
            kind,
            XPLedger.fresh(threshold),
            extra=extra,
        )

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

    def is_completed_on(self, on: Any) -> bool:
        return bool(self.completion_dates.get(normalize_date(on), False))

    # =========================================================================
    # BUSINESS LOGIC
    # =========================================================================

    def toggle_completion(
        self,
        on: Any,
        completion_xp: Optional[int] = None,
        multiplier: float = XP_MULTIPLIER,
        today: Optional[date] = None,
    ) -> ToggleResult:
        """
        Flip completion for one calendar date.

        Incomplete -> complete awards ``completion_xp`` and increments the
        streak; complete -> incomplete deducts the same amount and decrements
        the streak (never below 0).

        Parameters
        ----------
        on : date | str
            Calendar date being toggled
        completion_xp : int, optional
            Reward for one completion; defaults to the kind's reward
        multiplier : float
            Threshold growth factor passed through to the ledger
        today : date, optional
            Reference "today" for the ``completed`` flag (tests pin this)
        """
        key = normalize_date(on)
        amount = self.kind.default_completion_xp if completion_xp is None else completion_xp
        validate_positive(amount, "completion_xp")

        was_completed = bool(self.completion_dates.get(key, False))
        now_completed = not was_completed
        self.completion_dates[key] = now_completed

        old_level = self.level
        leveled_up = leveled_down = False
        if now_completed:
            awarded = award(self._ledger, amount, multiplier)
            self._ledger = awarded.ledger
            leveled_up = awarded.leveled_up
            self.streak += 1
            delta = amount
        else:
            deducted = deduct(self._ledger, amount, multiplier)
            self._ledger = deducted.ledger
            leveled_down = deducted.leveled_down
            self.streak = max(0, self.streak - 1)
            delta = -amount

        today_key = (today or date.today()).isoformat()
        self.completed = bool(self.completion_dates.get(today_key, False))

        self.history.append(
            {
                "date": key,
                "completed": now_completed,
                "xp": delta,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

        event_base = {"item_id": self.id, "kind": self.kind.value, "name": self.name, "date": key}
        self.add_domain_event(
            f"{self.kind.value}.completed" if now_completed else f"{self.kind.value}.uncompleted",
            {**event_base, "xp_delta": delta, "streak": self.streak},
        )
        if leveled_up:
            self.add_domain_event(
                f"{self.kind.value}.leveled_up",
                {**event_base, "old_level": old_level, "new_level": self.level},
            )
        if leveled_down:
            self.add_domain_event(
                f"{self.kind.value}.leveled_down",
                {**event_base, "old_level": old_level, "new_level": self.level},
            )

        return ToggleResult(
            item_id=self.id,
            date=key,
            completed=now_completed,
            xp_delta=delta,
            leveled_up=leveled_up,
            leveled_down=leveled_down,
            level=self.level,
        )

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_record(self) -> Dict[str, Any]:
        record = copy.deepcopy(self.extra)
        record.update(
            {
                "id": self.id,
                "name": self.name,
                "kind": self.kind.value,
                "level": self._ledger.level,
                "xp": self._ledger.xp,
                "nextLevelXP": self._ledger.next_level_xp,
                "streak": self.streak,
                "completed": self.completed,
                "completionDates": dict(self.completion_dates),
                "history": copy.deepcopy(self.history),
            }
        )
        return record

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        kind: TrackerKind,
        base_threshold: Optional[int] = None,
        multiplier: float = XP_MULTIPLIER,
        today: Optional[date] = None,
    ) -> Optional["ItemTracker"]:
        """
        Restore a tracker from a snapshot record.

        ``completed`` is recomputed from ``completionDates`` for ``today``
        (default: the current date); the stored flag may be from another day.

        Returns None for records that cannot describe a tracker (not a
        mapping, or no usable name).
        """
        if not isinstance(record, Mapping):
            return None
        name = record.get("name")
        if not isinstance(name, str) or not name.strip():
            return None

        threshold = base_threshold or kind.default_base_threshold
        ledger = ledger_from_record(record, "xp", "level", threshold, multiplier)

        dates = record.get("completionDates")
        completion_dates = (
            {str(k): bool(v) for k, v in dates.items()} if isinstance(dates, Mapping) else {}
        )
        history = record.get("history")
        streak = record.get("streak")

        return cls(
            str(record.get("id") or uuid.uuid4()),
            name,
            kind,
            ledger,
            streak=streak if isinstance(streak, int) and not isinstance(streak, bool) else 0,
            completed=completion_dates.get((today or date.today()).isoformat(), False),
            completion_dates=completion_dates,
            history=list(history) if isinstance(history, list) else [],
            extra={k: v for k, v in record.items() if k not in _RECORD_KEYS},
        )

    def __repr__(self) -> str:
        return (
            f"<ItemTracker {self.kind.value} {self.name!r} "
            f"level={self.level} streak={self.streak}>"
        )
