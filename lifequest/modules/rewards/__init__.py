"""Feature reward table and goal achievements."""

from .rules import (
    DEFAULT_ACHIEVEMENTS,
    DEFAULT_REWARDS,
    GOAL_HORIZONS,
    GOAL_PRIORITIES,
    Achievement,
    GoalStats,
    RewardRules,
)

__all__ = [
    "RewardRules",
    "Achievement",
    "GoalStats",
    "DEFAULT_REWARDS",
    "DEFAULT_ACHIEVEMENTS",
    "GOAL_HORIZONS",
    "GOAL_PRIORITIES",
]
