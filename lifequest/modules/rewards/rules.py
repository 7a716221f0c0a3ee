"""
Reward rules: how many XP each feature action is worth.

Purpose
-------
Translate a feature action (``academics``/``test_recorded``,
``goals``/``goal_completed``...) into an XP amount, and decide which goal
achievements a goal list has earned.

Responsibilities
----------------
- Hold the built-in reward table and achievement catalogue
- Let YAML tunables override any amount (``rewards.<category>.<action>``,
  ``achievements.goals``)
- Validate action parameters (score bands, goal priority)

Non-Responsibilities
--------------------
- Applying XP (handled by ProgressionService through the Dashboard)
- Storing which achievements are unlocked (goal feature fields)

Reward Table (defaults)
-----------------------
- academics: subject_added 10, test_recorded 5 + score band bonus
  (>=90% +20, >=80% +15, >=70% +10, >=60% +5)
- goals: goal_created 10, goal_completed low 10 / medium 20 / high 30
- books: book_added 10, progress_updated 5, rating_raised 5
- socialMedia: platform_tracked 5
- timetable: event_scheduled 5, event_completed 15
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, List, Mapping, Type

from lifequest.domain.models.category import Category
from lifequest.modules.shared.exceptions import InvalidOperationError, ValidationError
from lifequest.modules.shared.formulas import score_percentage

if TYPE_CHECKING:
    from lifequest.core.config.manager import ConfigManager


GOAL_HORIZONS = ("weekly", "monthly", "yearly", "life")
GOAL_PRIORITIES = ("low", "medium", "high")

DEFAULT_REWARDS: Dict[Category, Dict[str, Any]] = {
    Category.ACADEMICS: {
        "subject_added": 10,
        "test_recorded": 5,
        "score_bonus": [
            {"min_percent": 90, "bonus": 20},
            {"min_percent": 80, "bonus": 15},
            {"min_percent": 70, "bonus": 10},
            {"min_percent": 60, "bonus": 5},
        ],
    },
    Category.GOALS: {
        "goal_created": 10,
        "goal_completed": {"low": 10, "medium": 20, "high": 30},
    },
    Category.BOOKS: {
        "book_added": 10,
        "progress_updated": 5,
        "rating_raised": 5,
    },
    Category.SOCIAL_MEDIA: {
        "platform_tracked": 5,
    },
    Category.TIMETABLE: {
        "event_scheduled": 5,
        "event_completed": 15,
    },
}

# Keys under a category's reward table that are not actions.
_NON_ACTION_KEYS = frozenset({"score_bonus"})


# ============================================================================
# ACHIEVEMENTS
# ============================================================================


@dataclass(frozen=True)
class Achievement:
    """
    One-time goal achievement.

    ``metric`` names a ``GoalStats`` attribute; the achievement unlocks when
    that metric reaches ``threshold``.
    """

    title: str
    description: str
    xp_reward: int
    metric: str
    threshold: int

    def is_met(self, stats: "GoalStats") -> bool:
        return getattr(stats, self.metric, 0) >= self.threshold


DEFAULT_ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        "title": "Goal Setter",
        "description": "Set your first goal",
        "xp_reward": 50,
        "metric": "goals_created",
        "threshold": 1,
    },
    {
        "title": "Achievement Hunter",
        "description": "Complete 5 goals",
        "xp_reward": 100,
        "metric": "goals_completed",
        "threshold": 5,
    },
    {
        "title": "Overachiever",
        "description": "Complete 10 goals",
        "xp_reward": 200,
        "metric": "goals_completed",
        "threshold": 10,
    },
    {
        "title": "Master Planner",
        "description": "Have goals in all categories",
        "xp_reward": 150,
        "metric": "horizons_covered",
        "threshold": len(GOAL_HORIZONS),
    },
    {
        "title": "Perfectionist",
        "description": "Complete 3 high priority goals",
        "xp_reward": 200,
        "metric": "high_priority_completed",
        "threshold": 3,
    },
]


@dataclass(frozen=True)
class GoalStats:
    """Counts over a goals record used to evaluate achievements."""

    goals_created: int = 0
    goals_completed: int = 0
    high_priority_completed: int = 0
    horizons: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def horizons_covered(self) -> int:
        return len(self.horizons)

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "GoalStats":
        created = completed = high = 0
        horizons = set()
        for horizon in GOAL_HORIZONS:
            goals = fields.get(horizon)
            if not isinstance(goals, list):
                continue
            for goal in goals:
                if not isinstance(goal, Mapping):
                    continue
                created += 1
                horizons.add(horizon)
                if goal.get("completed"):
                    completed += 1
                    if goal.get("priority") == "high":
                        high += 1
        return cls(created, completed, high, frozenset(horizons))


# ============================================================================
# RULES
# ============================================================================


class RewardRules:
    """
    Reward table backed by ConfigManager tunables.

    Example
    -------
    >>> rules = RewardRules(ConfigManager)
    >>> rules.amount_for(Category.ACADEMICS, "test_recorded", score=46, max_score=50)
    25
    """

    def __init__(self, config_manager: Type[ConfigManager]) -> None:
        self._config = config_manager

    def actions(self, category: Category) -> List[str]:
        table = self._config.get_mapping(
            f"rewards.{category.value}", DEFAULT_REWARDS.get(category, {})
        )
        merged = {**DEFAULT_REWARDS.get(category, {}), **table}
        return sorted(key for key in merged if key not in _NON_ACTION_KEYS)

    def amount_for(self, category: Category, action: str, **params: Any) -> int:
        """
        XP for one feature action.

        Parameters
        ----------
        category : Category
            Feature area
        action : str
            Action name from the reward table
        **params
            ``score``/``max_score`` for ``test_recorded``; ``priority`` for
            ``goal_completed``; ``page``/``previous_page`` for
            ``progress_updated`` (no XP unless the page moved forward)

        Raises
        ------
        InvalidOperationError
            If the category has no such action
        ValidationError
            If a required parameter is missing or out of range
        """
        if action not in self.actions(category):
            raise InvalidOperationError(
                "reward",
                f"unknown action {action!r} for {category.value}; "
                f"expected one of {', '.join(self.actions(category))}",
            )

        key = f"rewards.{category.value}.{action}"
        default = DEFAULT_REWARDS.get(category, {}).get(action)

        if category is Category.GOALS and action == "goal_completed":
            return self._goal_completed(key, default or {}, params.get("priority"))

        amount = self._config.get_int(key, default if isinstance(default, int) else 0)
        if category is Category.BOOKS and action == "progress_updated":
            if not self._page_advanced(params.get("page"), params.get("previous_page")):
                return 0
        if category is Category.ACADEMICS and action == "test_recorded":
            amount += self.score_bonus(params.get("score"), params.get("max_score"))
        return amount

    def score_bonus(self, score: Any, max_score: Any) -> int:
        """Bonus for a test result; 0 when the score is not given."""
        if score is None and max_score is None:
            return 0
        try:
            percent = score_percentage(float(score), float(max_score))
        except (TypeError, ValueError) as exc:
            raise ValidationError("score", f"score and max_score must be numbers ({exc})") from exc
        if percent is None:
            raise ValidationError("max_score", "max_score must be positive")

        bands = self._config.get_list(
            "rewards.academics.score_bonus",
            DEFAULT_REWARDS[Category.ACADEMICS]["score_bonus"],
        )
        for band in sorted(bands, key=lambda b: b["min_percent"], reverse=True):
            if percent >= band["min_percent"]:
                return int(band["bonus"])
        return 0

    @staticmethod
    def _page_advanced(page: Any, previous_page: Any) -> bool:
        if page is None:
            return True
        try:
            page, previous_page = int(page), int(previous_page or 0)
        except (TypeError, ValueError) as exc:
            raise ValidationError("page", f"page must be an integer ({exc})") from exc
        if page < 0:
            raise ValidationError("page", "page must be non-negative")
        return page > previous_page

    def _goal_completed(self, key: str, default: Mapping[str, int], priority: Any) -> int:
        priority = (priority or "medium").lower()
        if priority not in GOAL_PRIORITIES:
            raise ValidationError(
                "priority", f"priority must be one of {', '.join(GOAL_PRIORITIES)}"
            )
        table = self._config.get_mapping(key, default)
        return int(table.get(priority, default.get(priority, 0)))

    # =========================================================================
    # ACHIEVEMENTS
    # =========================================================================

    def achievements(self) -> List[Achievement]:
        entries = self._config.get_list("achievements.goals", DEFAULT_ACHIEVEMENTS)
        return [Achievement(**entry) for entry in entries]

    def newly_unlocked(
        self,
        stats: GoalStats,
        unlocked: Iterable[str],
    ) -> List[Achievement]:
        """Achievements whose condition holds and that are not yet unlocked."""
        already = set(unlocked)
        return [
            achievement
            for achievement in self.achievements()
            if achievement.title not in already and achievement.is_met(stats)
        ]
