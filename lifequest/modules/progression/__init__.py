"""Progression feature module: XP, goals, habits and resets for one dashboard."""

from .service import ProgressOutcome, ProgressionService

__all__ = ["ProgressionService", "ProgressOutcome"]
