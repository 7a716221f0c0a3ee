"""
Domain models package for LifeQuest.

Purpose
-------
Rich domain models for the progression engine. These models encapsulate
the XP rules, validation, and state transitions; they never touch storage.

Design Notes
------------
Domain models are separate from table models:
- Table models (lifequest/database/models/): one JSON document per user
- Domain models (lifequest/domain/models/): objects with business logic

The persistence gateway converts between the two via
``Dashboard.to_snapshot()`` / ``Dashboard.from_snapshot()``.

Building Blocks
---------------
- XPLedger + award/deduct: leaf arithmetic
- CategoryProgress: one ledger per feature area
- ItemTracker: habits and hobbies
- PlayerRecord + recompute_overall_level: overall level and title
- Dashboard: aggregate root over all of the above
"""

from .base import (
    AggregateRoot,
    DomainEvent,
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)
from .category import Category, CategoryProgress
from .dashboard import Dashboard
from .habit import ItemTracker, ToggleResult, TrackerKind, normalize_date
from .ledger import AwardResult, DeductResult, XPLedger, award, deduct
from .player import OverallLevel, PlayerRecord, recompute_overall_level

__all__ = [
    # Base classes
    "Entity",
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "validate_positive",
    "validate_non_negative",
    "validate_not_empty",
    # Ledger
    "XPLedger",
    "AwardResult",
    "DeductResult",
    "award",
    "deduct",
    # Categories & trackers
    "Category",
    "CategoryProgress",
    "ItemTracker",
    "TrackerKind",
    "ToggleResult",
    "normalize_date",
    # Player & aggregate
    "PlayerRecord",
    "OverallLevel",
    "recompute_overall_level",
    "Dashboard",
]
