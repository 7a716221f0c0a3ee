"""
Progression Service
===================

Purpose
-------
Single entry point for everything that changes a user's progression:
category XP, feature rewards, goals and achievements, habit and hobby
completion, and ledger resets.

Domain
------
- Category XP through the ``Category -> CategoryProgress`` mapping
- Feature rewards priced by ``RewardRules``
- Goal creation, progress, completion and reopening with one-time
  achievements
- Habit/hobby add, remove and per-date completion toggles
- Overall level and title (recomputed by the Dashboard after every change)

Design Notes
------------
- Synchronous: the engine never awaits. Saving is the gateway's job.
- Tunables (multiplier, thresholds, completion XP, level-up messages) are
  read through ConfigManager with the constants as fallbacks.
- Domain invariant violations (``DomainValidationError``) are converted to
  ``ValidationError`` here so callers only see the LifeQuestError hierarchy.
- Every public operation returns a ``ProgressOutcome`` carrying the domain
  events it produced, after logging them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import LogContext, get_logger
from lifequest.domain.models.base import DomainEvent, DomainValidationError
from lifequest.domain.models.category import Category
from lifequest.domain.models.dashboard import Dashboard
from lifequest.domain.models.habit import ItemTracker, ToggleResult, TrackerKind
from lifequest.domain.models.ledger import AwardResult
from lifequest.modules.rewards.rules import (
    GOAL_HORIZONS,
    GOAL_PRIORITIES,
    Achievement,
    GoalStats,
    RewardRules,
)
from lifequest.modules.shared.base_service import BaseService
from lifequest.modules.shared.constants import (
    CATEGORY_BASE_THRESHOLD,
    HABIT_BASE_THRESHOLD,
    HABIT_COMPLETION_XP,
    HOBBY_BASE_THRESHOLD,
    HOBBY_COMPLETION_XP,
    LEVEL_UP_MESSAGES,
    XP_MULTIPLIER,
)
from lifequest.modules.shared.exceptions import (
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from lifequest.modules.shared.formulas import (
    discipline_label,
    discipline_score,
    level_up_message,
    progress_percentage,
)

if TYPE_CHECKING:
    from logging import Logger


@dataclass
class ProgressOutcome:
    """
    What a progression operation did.

    Attributes
    ----------
    xp_awarded : int
        Net XP applied (negative for an un-completion)
    events : List[DomainEvent]
        Events drained from the dashboard
    messages : List[str]
        Level-up messages suitable for display
    unlocked : List[Achievement]
        Goal achievements unlocked by this operation
    """

    xp_awarded: int = 0
    award: Optional[AwardResult] = None
    toggle: Optional[ToggleResult] = None
    events: List[DomainEvent] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    unlocked: List[Achievement] = field(default_factory=list)

    @property
    def leveled_up(self) -> bool:
        return any(event.event_name.endswith("leveled_up") for event in self.events)


class ProgressionService(BaseService):
    """
    Applies progression operations to one ``Dashboard``.

    Public Methods
    --------------
    - add_category_xp() -> Award raw XP to a category
    - reward() -> Award the XP a feature action is worth
    - add_goal() / complete_goal() -> Goals plus achievements
    - update_goal_progress() / reopen_goal() -> Goal progress and reopening
    - add_item() / remove_item() / toggle_item() -> Habits and hobbies
    - reset() -> Return category ledgers to level 1
    - status() -> Plain summary for display
    """

    def __init__(
        self,
        dashboard: Dashboard,
        config_manager: Type[ConfigManager] = ConfigManager,
        rules: Optional[RewardRules] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(config_manager, logger or get_logger(__name__))
        self.dashboard = dashboard
        self.rules = rules or RewardRules(config_manager)

    # ========================================================================
    # TUNABLES
    # ========================================================================

    @property
    def multiplier(self) -> float:
        return self.get_config_float("progression.xp_multiplier", XP_MULTIPLIER)

    @property
    def category_threshold(self) -> int:
        return self.get_config_int(
            "progression.base_thresholds.category", CATEGORY_BASE_THRESHOLD
        )

    def item_threshold(self, kind: TrackerKind) -> int:
        default = HABIT_BASE_THRESHOLD if kind is TrackerKind.HABIT else HOBBY_BASE_THRESHOLD
        return self.get_config_int(f"progression.base_thresholds.{kind.value}", default)

    def completion_xp(self, kind: TrackerKind) -> int:
        default = HABIT_COMPLETION_XP if kind is TrackerKind.HABIT else HOBBY_COMPLETION_XP
        return self.get_config_int(f"progression.completion_xp.{kind.value}", default)

    def _level_up_message(self, level: int) -> str:
        messages = self.get_config("messages.level_up", list(LEVEL_UP_MESSAGES))
        return level_up_message(level, messages)

    # ========================================================================
    # CATEGORY XP
    # ========================================================================

    def add_category_xp(self, category: Category, amount: int) -> ProgressOutcome:
        """
        Award ``amount`` XP to ``category`` and to the player's lifetime XP.

        Raises:
            ValidationError: If amount is not a non-negative integer
        """
        self.validate_non_negative_int(amount, "amount")

        with LogContext(user_id=self.dashboard.user_id, category=category.value, action="award"):
            result = self.dashboard.add_category_xp(category, amount, self.multiplier)
            self.log_operation("add_category_xp", amount=amount, new_level=result.level)
            outcome = ProgressOutcome(xp_awarded=amount, award=result)
            return self._finish(outcome)

    def reward(self, category: Category, action: str, **params: Any) -> ProgressOutcome:
        """
        Award the XP a feature action is worth.

        Example:
            >>> service.reward(Category.BOOKS, "rating_raised").xp_awarded
            5
        """
        amount = self.rules.amount_for(category, action, **params)
        with LogContext(user_id=self.dashboard.user_id, category=category.value, action=action):
            self.log_operation("reward", amount=amount, params=params)
            result = self.dashboard.add_category_xp(category, amount, self.multiplier)
            return self._finish(ProgressOutcome(xp_awarded=amount, award=result))

    # ========================================================================
    # GOALS
    # ========================================================================

    def add_goal(
        self,
        title: str,
        horizon: str = "weekly",
        priority: str = "medium",
        **details: Any,
    ) -> ProgressOutcome:
        """
        Create a goal, award ``goal_created`` and check achievements.

        Raises:
            ValidationError: If title is empty, or horizon/priority is unknown
        """
        if not title or not title.strip():
            raise ValidationError("title", "goal title cannot be empty")
        if horizon not in GOAL_HORIZONS:
            raise ValidationError("horizon", f"horizon must be one of {', '.join(GOAL_HORIZONS)}")
        if priority not in GOAL_PRIORITIES:
            raise ValidationError("priority", f"priority must be one of {', '.join(GOAL_PRIORITIES)}")

        goals = self.dashboard.category(Category.GOALS).fields
        goal = {
            **details,
            "id": str(uuid.uuid4()),
            "title": title.strip(),
            "priority": priority,
            "category": horizon,
            "completed": False,
            "progress": 0,
        }
        self.dashboard.update_category_fields(
            Category.GOALS, **{horizon: [*list(goals.get(horizon) or []), goal]}
        )

        outcome = self.reward(Category.GOALS, "goal_created")
        outcome.events.append(DomainEvent("goal.created", {"goal_id": goal["id"], "horizon": horizon}))
        return self._check_achievements(outcome)

    def complete_goal(self, goal_key: str) -> ProgressOutcome:
        """
        Mark a goal completed and award XP by its priority.

        Raises:
            NotFoundError: If no goal matches the id or title
            InvalidOperationError: If the goal is already completed
        """
        horizon, index, goal = self._find_goal(goal_key)
        if goal.get("completed"):
            raise InvalidOperationError("complete_goal", f"goal {goal.get('title')!r} is already completed")

        self._write_goal(horizon, index, {**goal, "completed": True, "progress": 100})
        return self._award_completion(goal)

    def update_goal_progress(self, goal_key: str, progress: Any) -> ProgressOutcome:
        """
        Set a goal's progress, clamped to 0..100.

        Reaching 100 from an open goal completes it and awards the priority
        XP. Any other value leaves the goal open; lowering a completed goal
        reopens it without taking XP back.

        Raises:
            NotFoundError: If no goal matches the id or title
            ValidationError: If progress is not a number
        """
        if isinstance(progress, bool):
            raise ValidationError("progress", f"progress must be a number, got {progress!r}")
        try:
            value = min(max(int(progress), 0), 100)
        except (TypeError, ValueError) as exc:
            raise ValidationError("progress", f"progress must be a number, got {progress!r}") from exc

        horizon, index, goal = self._find_goal(goal_key)
        was_completed = bool(goal.get("completed"))
        now_completed = value == 100
        self._write_goal(horizon, index, {**goal, "progress": value, "completed": now_completed})

        if now_completed and not was_completed:
            return self._award_completion(goal)

        event = DomainEvent(
            "goal.progress_updated",
            {"goal_id": goal.get("id"), "progress": value, "completed": now_completed},
        )
        with LogContext(user_id=self.dashboard.user_id, category=Category.GOALS.value):
            self.log_operation("update_goal_progress", goal_id=goal.get("id"), progress=value)
            self.log_events([event])
        return ProgressOutcome(events=[event])

    def reopen_goal(self, goal_key: str) -> ProgressOutcome:
        """
        Mark a completed goal as open again. Progress and XP are kept.

        Raises:
            NotFoundError: If no goal matches the id or title
            InvalidOperationError: If the goal is not completed
        """
        horizon, index, goal = self._find_goal(goal_key)
        if not goal.get("completed"):
            raise InvalidOperationError("reopen_goal", f"goal {goal.get('title')!r} is not completed")

        self._write_goal(horizon, index, {**goal, "completed": False})
        event = DomainEvent("goal.reopened", {"goal_id": goal.get("id")})
        with LogContext(user_id=self.dashboard.user_id, category=Category.GOALS.value):
            self.log_operation("reopen_goal", goal_id=goal.get("id"))
            self.log_events([event])
        return ProgressOutcome(events=[event])

    def _write_goal(self, horizon: str, index: int, goal: Dict[str, Any]) -> None:
        goals = list(self.dashboard.category(Category.GOALS).fields.get(horizon) or [])
        goals[index] = goal
        self.dashboard.update_category_fields(Category.GOALS, **{horizon: goals})

    def _award_completion(self, goal: Dict[str, Any]) -> ProgressOutcome:
        outcome = self.reward(Category.GOALS, "goal_completed", priority=goal.get("priority"))
        return self._check_achievements(outcome)

    def _find_goal(self, key: str):
        fields = self.dashboard.category(Category.GOALS).fields
        lowered = key.strip().lower()
        for horizon in GOAL_HORIZONS:
            for index, goal in enumerate(fields.get(horizon) or []):
                if not isinstance(goal, dict):
                    continue
                if goal.get("id") == key or str(goal.get("title", "")).lower() == lowered:
                    return horizon, index, goal
        raise NotFoundError("Goal", key)

    def _check_achievements(self, outcome: ProgressOutcome) -> ProgressOutcome:
        fields = self.dashboard.category(Category.GOALS).fields
        unlocked_titles = list(fields.get("achievements") or [])
        newly = self.rules.newly_unlocked(GoalStats.from_fields(fields), unlocked_titles)

        for achievement in newly:
            unlocked_titles.append(achievement.title)
            self.dashboard.update_category_fields(Category.GOALS, achievements=list(unlocked_titles))
            result = self.dashboard.add_category_xp(
                Category.GOALS, achievement.xp_reward, self.multiplier
            )
            self.log.info(
                f"Achievement unlocked: {achievement.title}",
                extra={
                    "user_id": self.dashboard.user_id,
                    "achievement": achievement.title,
                    "xp_reward": achievement.xp_reward,
                },
            )
            outcome.xp_awarded += achievement.xp_reward
            outcome.award = result
            outcome.unlocked.append(achievement)
            outcome.events.append(
                DomainEvent(
                    "goals.achievement_unlocked",
                    {"title": achievement.title, "xp_reward": achievement.xp_reward},
                )
            )

        if newly:
            self._finish(outcome)
        return outcome

    # ========================================================================
    # HABITS & HOBBIES
    # ========================================================================

    def add_item(self, name: str, kind: TrackerKind = TrackerKind.HABIT, **extra: Any) -> ItemTracker:
        """
        Raises:
            ValidationError: If name is empty
        """
        try:
            item = self.dashboard.add_item(name, kind, self.item_threshold(kind), **extra)
        except DomainValidationError as exc:
            raise ValidationError(exc.field or "name", str(exc)) from exc

        with LogContext(user_id=self.dashboard.user_id, action=f"{kind.value}_add"):
            self.log_operation("add_item", item_id=item.id, kind=kind.value)
            self._finish(ProgressOutcome())
        return item

    def remove_item(self, kind: TrackerKind, key: str) -> ItemTracker:
        """
        Raises:
            NotFoundError: If no tracker matches the id or name
        """
        item = self.dashboard.remove_item(kind, key)
        if item is None:
            raise NotFoundError(kind.value.capitalize(), key)

        with LogContext(user_id=self.dashboard.user_id, action=f"{kind.value}_remove"):
            self.log_operation("remove_item", item_id=item.id, kind=kind.value)
            self._finish(ProgressOutcome())
        return item

    def toggle_item(
        self,
        kind: TrackerKind,
        key: str,
        on: Optional[Any] = None,
        today: Optional[date] = None,
    ) -> ProgressOutcome:
        """
        Toggle completion of a habit/hobby for a date (default: today).

        Raises:
            NotFoundError: If no tracker matches the id or name
            ValidationError: If the date is not an ISO date
        """
        item = self.dashboard.find_item(kind, key)
        if item is None:
            raise NotFoundError(kind.value.capitalize(), key)

        reference = today or date.today()
        try:
            result = self.dashboard.toggle_item(
                item,
                on if on is not None else reference,
                self.completion_xp(kind),
                self.multiplier,
                reference,
            )
        except DomainValidationError as exc:
            raise ValidationError(exc.field or "date", str(exc)) from exc

        with LogContext(user_id=self.dashboard.user_id, action=f"{kind.value}_toggle"):
            self.log_operation(
                "toggle_item",
                item_id=item.id,
                date=result.date,
                completed=result.completed,
                xp_delta=result.xp_delta,
            )
            return self._finish(ProgressOutcome(xp_awarded=result.xp_delta, toggle=result))

    # ========================================================================
    # RESET
    # ========================================================================

    def reset(self, category: Optional[Category] = None) -> ProgressOutcome:
        """
        Return one or all category ledgers to level 1.

        Feature fields, habits, hobbies and the player's lifetime XP are kept.
        """
        targets = [category] if category is not None else list(Category)
        for target in targets:
            self.dashboard.reset_category(target, self.category_threshold)

        with LogContext(user_id=self.dashboard.user_id, action="reset"):
            self.log_operation("reset", categories=[target.value for target in targets])
            return self._finish(ProgressOutcome())

    # ========================================================================
    # READ
    # ========================================================================

    def status(self, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Plain dict summary of the dashboard for display.

        Item ``completed`` flags are read from the completion dates for
        ``today`` (default: the current date), not from the stored flag.
        """
        dashboard = self.dashboard
        today = today or date.today()
        return {
            "user_id": dashboard.user_id,
            "player": dashboard.player.to_record(),
            "categories": {
                category.value: {
                    "level": record.level,
                    "xp": record.xp,
                    "next_level_xp": record.next_level_xp,
                    "progress": round(progress_percentage(record.xp, record.next_level_xp), 1),
                }
                for category, record in dashboard.categories.items()
            },
            "habits": [self._item_summary(item, today) for item in dashboard.habits],
            "hobbies": [self._item_summary(item, today) for item in dashboard.hobbies],
            "discipline": self.social_discipline(),
        }

    def social_discipline(self) -> Dict[str, Any]:
        """Discipline score and label from the tracked social platforms."""
        platforms = self.dashboard.category(Category.SOCIAL_MEDIA).fields.get("platforms")
        entries = [p for p in platforms or [] if isinstance(p, dict)]
        score = discipline_score(entries)
        return {"score": score, "label": discipline_label(score), "platforms": len(entries)}

    @staticmethod
    def _item_summary(item: ItemTracker, today: date) -> Dict[str, Any]:
        return {
            "id": item.id,
            "name": item.name,
            "level": item.level,
            "xp": item.xp,
            "next_level_xp": item.next_level_xp,
            "streak": item.streak,
            "completed": item.is_completed_on(today),
        }

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _finish(self, outcome: ProgressOutcome) -> ProgressOutcome:
        """Drain dashboard events into the outcome, log them, add messages."""
        drained = self.dashboard.clear_domain_events()
        self.log_events(drained)
        outcome.events.extend(drained)
        for event in drained:
            if event.event_name.endswith("leveled_up"):
                outcome.messages.append(self._describe_level_up(event))
        return outcome

    def _describe_level_up(self, event: DomainEvent) -> str:
        """Motivational line for the overall level; a plain one for the rest."""
        level = event.payload["new_level"]
        if event.event_name == "player.leveled_up":
            return self._level_up_message(level)
        subject = event.payload.get("name")
        if subject is None:
            subject = Category(event.payload["category"]).name.replace("_", " ").capitalize()
        return f"{subject} reached level {level}"
