"""
Domain model building blocks.

- ``Entity``: identity-based equality plus a buffer of pending
  ``DomainEvent`` objects (a habit, a category record, the player)
- ``AggregateRoot``: pulls its children's events into its own buffer so the
  caller drains exactly one place (``Dashboard``)
- ``DomainValidationError`` and the ``validate_*`` guards used by the models

Value objects (``XPLedger``) are frozen dataclasses and do not derive from
anything here. Nothing in this module knows about persistence or logging;
events are returned to the service layer, which logs them.

>>> class Streak(Entity):
...     def extend(self) -> None:
...         self.add_domain_event("streak.extended", {"streak_id": self.id})
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Hashable, List, Optional


@dataclass
class DomainEvent:
    """Something that happened to a model, e.g. ``category.leveled_up``."""

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Entity(ABC):
    """
    Model with an identity that outlives attribute changes.

    Equality is by concrete type and id, never by attributes.
    """

    def __init__(self, entity_id: Hashable) -> None:
        self._id = entity_id
        self._domain_events: List[DomainEvent] = []

    @property
    def id(self) -> Any:
        return self._id

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.id == self.id  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._id))

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        self._domain_events.append(DomainEvent(event_name, payload))

    def clear_domain_events(self) -> List[DomainEvent]:
        """Return pending events in emission order and empty the buffer."""
        drained, self._domain_events = self._domain_events, []
        return drained

    def get_pending_events(self) -> List[DomainEvent]:
        return list(self._domain_events)


class AggregateRoot(Entity):
    """Entry point for every change to the entities it owns."""

    def _collect_events(self, *children: Entity) -> None:
        for child in children:
            self._domain_events.extend(child.clear_domain_events())


class DomainValidationError(Exception):
    """A model rejected a value; ``field`` names the offending attribute."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def _require(condition: bool, field_name: str, problem: str) -> None:
    if not condition:
        raise DomainValidationError(f"{field_name} {problem}", field=field_name)


def validate_positive(value: int, field_name: str) -> None:
    _require(value > 0, field_name, f"must be positive, got {value}")


def validate_non_negative(value: int, field_name: str) -> None:
    _require(value >= 0, field_name, f"must be non-negative, got {value}")


def validate_not_empty(value: str, field_name: str) -> None:
    _require(bool(value and value.strip()), field_name, "cannot be empty")
