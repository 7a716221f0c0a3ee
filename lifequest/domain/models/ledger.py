"""
XP Ledger value object and its award/deduct arithmetic.

Purpose
-------
The leaf of the progression engine. A ledger is ``(xp, level,
next_level_xp)``; every category and every habit/hobby embeds one.

Rules
-----
- ``award``: add XP; while ``xp >= next_level_xp`` level up, carry the
  remainder and grow the threshold by ``floor(t * multiplier)``. Loops until
  ``0 <= xp < next_level_xp`` so one large award can cross several levels.
- ``deduct``: remove XP; when the result goes negative above level 1, drop a
  single level, restore ``floor(t / multiplier)`` and borrow from it. At
  level 1 XP clamps to 0. XP never ends negative.

``deduct(award(l, n), n) == l`` whenever the award crossed at most one
level. Flooring in both directions means a long level-up/level-down cycle
can leave the threshold a few points below the fresh curve; that drift is
accepted.

Usage
-----
>>> ledger = XPLedger(xp=90, level=1, next_level_xp=100)
>>> result = award(ledger, 20)
>>> (result.xp, result.level, result.next_level_xp, result.leveled_up)
(10, 2, 150, True)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from lifequest.domain.models.base import (
    DomainValidationError,
    validate_non_negative,
    validate_positive,
)
from lifequest.modules.shared.constants import MIN_LEVEL, XP_MULTIPLIER
from lifequest.modules.shared.formulas import (
    grow_threshold,
    progress_percentage,
    shrink_threshold,
    threshold_for_level,
)


@dataclass(frozen=True)
class XPLedger:
    """
    Immutable XP ledger state.

    Attributes
    ----------
    xp : int
        Points accumulated toward the current level
    level : int
        Current level (>= 1)
    next_level_xp : int
        Threshold for the next level-up (> 0)
    """

    xp: int = 0
    level: int = MIN_LEVEL
    next_level_xp: int = 100

    def __post_init__(self) -> None:
        validate_non_negative(self.xp, "xp")
        validate_positive(self.level, "level")
        validate_positive(self.next_level_xp, "next_level_xp")

    @classmethod
    def fresh(cls, base_threshold: int) -> "XPLedger":
        """Level 1, zero XP, baseline threshold."""
        return cls(xp=0, level=MIN_LEVEL, next_level_xp=base_threshold)

    @classmethod
    def coerce(
        cls,
        xp: Any,
        level: Any,
        next_level_xp: Any,
        base_threshold: int,
        multiplier: float = XP_MULTIPLIER,
    ) -> "XPLedger":
        """
        Build a ledger from untrusted stored values.

        Missing or malformed values fall back to level 1 / zero XP; a missing
        threshold is rebuilt from the level on the fresh curve.
        """
        safe_level = _as_int(level)
        if safe_level is None or safe_level < MIN_LEVEL:
            safe_level = MIN_LEVEL

        safe_xp = _as_int(xp)
        if safe_xp is None or safe_xp < 0:
            safe_xp = 0

        safe_threshold = _as_int(next_level_xp)
        if safe_threshold is None or safe_threshold <= 0:
            safe_threshold = threshold_for_level(safe_level, base_threshold, multiplier)

        return cls(xp=safe_xp, level=safe_level, next_level_xp=safe_threshold)

    @property
    def progress(self) -> float:
        """Percentage through the current level."""
        return progress_percentage(self.xp, self.next_level_xp)


@dataclass(frozen=True)
class AwardResult:
    xp: int
    level: int
    next_level_xp: int
    leveled_up: bool
    levels_gained: int = 0

    @property
    def ledger(self) -> XPLedger:
        return XPLedger(self.xp, self.level, self.next_level_xp)


@dataclass(frozen=True)
class DeductResult:
    xp: int
    level: int
    next_level_xp: int
    leveled_down: bool

    @property
    def ledger(self) -> XPLedger:
        return XPLedger(self.xp, self.level, self.next_level_xp)


def award(
    ledger: XPLedger,
    amount: int,
    multiplier: float = XP_MULTIPLIER,
) -> AwardResult:
    """
    Add ``amount`` XP, levelling up as many times as the total allows.

    Parameters
    ----------
    ledger : XPLedger
        Current state
    amount : int
        XP to add (>= 0); 0 is a no-op
    multiplier : float
        Threshold growth per level-up

    Returns
    -------
    AwardResult
        New state plus ``leveled_up`` / ``levels_gained``

    Raises
    ------
    DomainValidationError
        If ``amount`` is negative (use ``deduct``)
    """
    if amount < 0:
        raise DomainValidationError(
            f"award amount must be non-negative, got {amount}; use deduct()",
            field="amount",
        )

    xp = ledger.xp + amount
    level = ledger.level
    threshold = ledger.next_level_xp
    gained = 0

    while xp >= threshold:
        xp -= threshold
        level += 1
        gained += 1
        threshold = grow_threshold(threshold, multiplier)

    return AwardResult(
        xp=xp,
        level=level,
        next_level_xp=threshold,
        leveled_up=gained > 0,
        levels_gained=gained,
    )


def deduct(
    ledger: XPLedger,
    amount: int,
    multiplier: float = XP_MULTIPLIER,
) -> DeductResult:
    """
    Remove ``amount`` XP, dropping at most one level.

    Raises
    ------
    DomainValidationError
        If ``amount`` is negative
    """
    if amount < 0:
        raise DomainValidationError(
            f"deduct amount must be non-negative, got {amount}",
            field="amount",
        )

    new_xp = ledger.xp - amount
    level = ledger.level
    threshold = ledger.next_level_xp
    leveled_down = False

    if new_xp < 0 and level > MIN_LEVEL:
        level -= 1
        threshold = shrink_threshold(threshold, multiplier)
        new_xp = threshold + new_xp
        leveled_down = True

    return DeductResult(
        xp=max(0, new_xp),
        level=level,
        next_level_xp=threshold,
        leveled_down=leveled_down,
    )


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def ledger_from_record(
    record: Mapping[str, Any],
    xp_key: str,
    level_key: str,
    base_threshold: int,
    multiplier: float = XP_MULTIPLIER,
) -> XPLedger:
    """Read a ledger out of a camelCase snapshot record."""
    return XPLedger.coerce(
        record.get(xp_key),
        record.get(level_key),
        record.get("nextLevelXP"),
        base_threshold,
        multiplier,
    )
