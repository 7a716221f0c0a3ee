"""
Unit Tests for ProgressionService
=================================

Purpose
-------
Test the orchestration layer over a real Dashboard with default tunables:
category XP, feature rewards, goals and achievements, trackers, resets and
the status summary.

Testing Strategy
----------------
- No mocks for the domain (it is pure and fast)
- ConfigManager overrides for tunables
- AAA pattern (Arrange, Act, Assert)
"""

import logging
from datetime import date

import pytest

from lifequest.domain.models import Category, TrackerKind
from lifequest.modules.shared.exceptions import (
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from lifequest.modules.shared.formulas import level_up_message

TODAY = date(2024, 5, 10)


def _names(outcome):
    return [event.event_name for event in outcome.events]


# ============================================================================
# CATEGORY XP
# ============================================================================


@pytest.mark.unit
class TestCategoryXP:
    def test_add_category_xp(self, progression, dashboard):
        outcome = progression.add_category_xp(Category.ACADEMICS, 600)

        assert outcome.xp_awarded == 600
        assert outcome.award.level == 2
        assert outcome.leveled_up is True
        assert "category.leveled_up" in _names(outcome)
        assert outcome.messages == ["Academics reached level 2"]
        assert dashboard.player.total_xp == 600
        assert dashboard.get_pending_events() == []

    @pytest.mark.parametrize("amount", [-5, 2.5, True, "10"])
    def test_invalid_amount_rejected(self, progression, amount):
        with pytest.raises(ValidationError):
            progression.add_category_xp(Category.BOOKS, amount)

    def test_multiplier_tunable(self, progression, config_manager, dashboard):
        config_manager.override("progression.xp_multiplier", 2.0)

        progression.add_category_xp(Category.BOOKS, 500)

        assert dashboard.category(Category.BOOKS).next_level_xp == 1000

    def test_overall_level_up_uses_motivational_message(self, progression, config_manager, dashboard):
        config_manager.override("messages.level_up", ["one", "two"])

        messages = []
        for category in (Category.ACADEMICS, Category.GOALS, Category.BOOKS):
            messages.extend(progression.add_category_xp(category, 2000).messages)

        assert dashboard.player.level == 2
        assert messages.count("two") == 1
        assert "Books reached level 3" in messages

    def test_social_media_label(self, progression):
        outcome = progression.add_category_xp(Category.SOCIAL_MEDIA, 500)

        assert outcome.messages == ["Social media reached level 2"]

    def test_operation_is_logged(self, progression, caplog):
        with caplog.at_level(logging.INFO):
            progression.add_category_xp(Category.BOOKS, 600)

        operations = [r for r in caplog.records if getattr(r, "operation", None) == "add_category_xp"]
        assert operations and operations[0].amount == 600
        assert any(r.getMessage() == "Domain event: category.leveled_up" for r in caplog.records)


# ============================================================================
# FEATURE REWARDS
# ============================================================================


@pytest.mark.unit
class TestRewards:
    def test_reward_action(self, progression, dashboard):
        outcome = progression.reward(Category.BOOKS, "rating_raised")

        assert outcome.xp_awarded == 5
        assert dashboard.category(Category.BOOKS).xp == 5
        assert dashboard.player.total_xp == 5

    def test_reward_test_score(self, progression, dashboard):
        outcome = progression.reward(
            Category.ACADEMICS, "test_recorded", score=46, max_score=50
        )

        assert outcome.xp_awarded == 25
        assert dashboard.category(Category.ACADEMICS).xp == 25

    def test_unknown_action_changes_nothing(self, progression, dashboard):
        with pytest.raises(InvalidOperationError):
            progression.reward(Category.TIMETABLE, "event_cancelled")

        assert dashboard.is_dirty is False


# ============================================================================
# GOALS & ACHIEVEMENTS
# ============================================================================


@pytest.mark.unit
class TestGoals:
    def test_first_goal_unlocks_goal_setter(self, progression, dashboard):
        outcome = progression.add_goal("Run a 10k", "monthly", "high")

        assert outcome.xp_awarded == 10 + 50
        assert [a.title for a in outcome.unlocked] == ["Goal Setter"]
        assert "goal.created" in _names(outcome)
        assert "goals.achievement_unlocked" in _names(outcome)

        fields = dashboard.category(Category.GOALS).fields
        goal = fields["monthly"][0]
        assert goal["title"] == "Run a 10k"
        assert goal["priority"] == "high"
        assert goal["completed"] is False
        assert fields["achievements"] == ["Goal Setter"]
        assert dashboard.category(Category.GOALS).xp == 60

    def test_second_goal_awards_base_only(self, progression):
        progression.add_goal("One")

        outcome = progression.add_goal("Two")

        assert outcome.xp_awarded == 10
        assert outcome.unlocked == []

    @pytest.mark.parametrize(
        "title, horizon, priority",
        [("  ", "weekly", "low"), ("Plan", "decade", "low"), ("Plan", "weekly", "urgent")],
    )
    def test_invalid_goal_rejected(self, progression, title, horizon, priority):
        with pytest.raises(ValidationError):
            progression.add_goal(title, horizon, priority)

    def test_complete_goal_by_title(self, progression, dashboard):
        progression.add_goal("Read 12 books", "yearly", "high")

        outcome = progression.complete_goal("read 12 books")

        assert outcome.xp_awarded == 30
        goal = dashboard.category(Category.GOALS).fields["yearly"][0]
        assert goal["completed"] is True
        assert goal["progress"] == 100

    def test_complete_goal_by_id(self, progression, dashboard):
        progression.add_goal("Stretch", "weekly", "low")
        goal_id = dashboard.category(Category.GOALS).fields["weekly"][0]["id"]

        assert progression.complete_goal(goal_id).xp_awarded == 10

    def test_complete_twice_rejected(self, progression):
        progression.add_goal("Stretch")
        progression.complete_goal("Stretch")

        with pytest.raises(InvalidOperationError):
            progression.complete_goal("Stretch")

    def test_complete_unknown_goal(self, progression):
        with pytest.raises(NotFoundError):
            progression.complete_goal("nothing")

    @pytest.mark.parametrize("progress, stored", [(40, 40), (-15, 0), ("70", 70)])
    def test_progress_is_clamped_and_keeps_goal_open(self, progression, dashboard, progress, stored):
        progression.add_goal("Learn Rust", "monthly")

        outcome = progression.update_goal_progress("Learn Rust", progress)

        goal = dashboard.category(Category.GOALS).fields["monthly"][0]
        assert (goal["progress"], goal["completed"]) == (stored, False)
        assert outcome.xp_awarded == 0
        assert _names(outcome) == ["goal.progress_updated"]

    def test_reaching_full_progress_completes_once(self, progression, dashboard):
        progression.add_goal("Learn Rust", "monthly", "high")

        first = progression.update_goal_progress("Learn Rust", 250)
        again = progression.update_goal_progress("Learn Rust", 100)

        goal = dashboard.category(Category.GOALS).fields["monthly"][0]
        assert (goal["progress"], goal["completed"]) == (100, True)
        assert first.xp_awarded == 30
        assert again.xp_awarded == 0

    def test_lowering_progress_reopens_without_refund(self, progression, dashboard):
        progression.add_goal("Stretch", "weekly", "medium")
        progression.complete_goal("Stretch")
        xp_before = dashboard.category(Category.GOALS).xp

        progression.update_goal_progress("Stretch", 60)

        goal = dashboard.category(Category.GOALS).fields["weekly"][0]
        assert (goal["progress"], goal["completed"]) == (60, False)
        assert dashboard.category(Category.GOALS).xp == xp_before

    @pytest.mark.parametrize("progress", [None, "half", True])
    def test_bad_progress_rejected(self, progression, progress):
        progression.add_goal("Stretch")

        with pytest.raises(ValidationError):
            progression.update_goal_progress("Stretch", progress)

    def test_reopen_keeps_xp_and_allows_completing_again(self, progression, dashboard):
        progression.add_goal("Stretch", "weekly", "low")
        progression.complete_goal("Stretch")
        total_before = dashboard.player.total_xp

        outcome = progression.reopen_goal("Stretch")

        goal = dashboard.category(Category.GOALS).fields["weekly"][0]
        assert (goal["completed"], goal["progress"]) == (False, 100)
        assert _names(outcome) == ["goal.reopened"]
        assert dashboard.player.total_xp == total_before
        assert progression.complete_goal("Stretch").xp_awarded == 10

    def test_reopen_open_goal_rejected(self, progression):
        progression.add_goal("Stretch")

        with pytest.raises(InvalidOperationError):
            progression.reopen_goal("Stretch")

    def test_master_planner(self, progression):
        for horizon in ("weekly", "monthly", "yearly"):
            progression.add_goal(f"{horizon} goal", horizon)

        outcome = progression.add_goal("life goal", "life")

        assert [a.title for a in outcome.unlocked] == ["Master Planner"]
        assert outcome.xp_awarded == 10 + 150

    def test_perfectionist(self, progression):
        for n in range(3):
            progression.add_goal(f"Hard {n}", "weekly", "high")
        progression.complete_goal("Hard 0")
        progression.complete_goal("Hard 1")

        outcome = progression.complete_goal("Hard 2")

        assert [a.title for a in outcome.unlocked] == ["Perfectionist"]

    def test_achievement_unlocks_once(self, progression, dashboard):
        progression.add_goal("One")
        progression.add_goal("Two")

        assert dashboard.category(Category.GOALS).fields["achievements"] == ["Goal Setter"]


# ============================================================================
# HABITS & HOBBIES
# ============================================================================


@pytest.mark.unit
class TestTrackers:
    def test_add_and_toggle_habit(self, progression, dashboard):
        habit = progression.add_item("Run")

        outcome = progression.toggle_item(TrackerKind.HABIT, "run", today=TODAY)

        assert outcome.xp_awarded == 20
        assert outcome.toggle.completed is True
        assert outcome.toggle.date == "2024-05-10"
        assert habit.streak == 1
        assert dashboard.player.total_xp == 0

    def test_toggle_twice_undoes(self, progression):
        habit = progression.add_item("Run")
        progression.toggle_item(TrackerKind.HABIT, habit.id, on="2024-05-01", today=TODAY)

        outcome = progression.toggle_item(TrackerKind.HABIT, habit.id, on="2024-05-01", today=TODAY)

        assert outcome.xp_awarded == -20
        assert (habit.xp, habit.streak) == (0, 0)

    def test_hobby_reward_and_tunable(self, progression, config_manager):
        config_manager.override("progression.completion_xp.hobby", 45)
        hobby = progression.add_item("Guitar", TrackerKind.HOBBY)

        outcome = progression.toggle_item(TrackerKind.HOBBY, "Guitar", today=TODAY)

        assert outcome.xp_awarded == 45
        assert hobby.xp == 45

    def test_item_threshold_tunable(self, progression, config_manager):
        config_manager.override("progression.base_thresholds.habit", 40)

        habit = progression.add_item("Floss")

        assert habit.next_level_xp == 40

    def test_habit_level_up_message(self, progression):
        progression.add_item("Run")
        for day in range(1, 5):
            progression.toggle_item(TrackerKind.HABIT, "Run", on=date(2024, 5, day), today=TODAY)

        outcome = progression.toggle_item(TrackerKind.HABIT, "Run", on=date(2024, 5, 5), today=TODAY)

        assert "habit.leveled_up" in _names(outcome)
        assert outcome.messages == ["Run reached level 2"]

    def test_item_level_up_never_uses_overall_titles(self, progression, config_manager):
        config_manager.override("progression.base_thresholds.hobby", 30)
        config_manager.override("progression.xp_multiplier", 1.01)
        progression.add_item("Chess", TrackerKind.HOBBY)

        messages = []
        for day in range(1, 12):
            outcome = progression.toggle_item(
                TrackerKind.HOBBY, "Chess", on=date(2024, 5, day), today=TODAY
            )
            messages.extend(outcome.messages)

        assert "Chess reached level 10" in messages
        assert level_up_message(10) not in messages

    def test_empty_name_rejected(self, progression):
        with pytest.raises(ValidationError):
            progression.add_item(" ")

    def test_invalid_date_rejected(self, progression):
        progression.add_item("Run")

        with pytest.raises(ValidationError) as exc_info:
            progression.toggle_item(TrackerKind.HABIT, "Run", on="someday")

        assert exc_info.value.field == "date"

    def test_unknown_items(self, progression):
        with pytest.raises(NotFoundError):
            progression.toggle_item(TrackerKind.HABIT, "ghost")
        with pytest.raises(NotFoundError):
            progression.remove_item(TrackerKind.HOBBY, "ghost")

    def test_remove_item(self, progression, dashboard):
        progression.add_item("Chess", TrackerKind.HOBBY)

        removed = progression.remove_item(TrackerKind.HOBBY, "chess")

        assert removed.name == "Chess"
        assert dashboard.hobbies == []


# ============================================================================
# RESET & STATUS
# ============================================================================


@pytest.mark.unit
class TestResetAndStatus:
    def test_reset_all_categories(self, progression, dashboard):
        for category in Category:
            progression.add_category_xp(category, 900)
        habit = progression.add_item("Run")

        outcome = progression.reset()

        assert all(record.level == 1 for record in dashboard.categories.values())
        assert dashboard.player.total_xp == 900 * 5
        assert dashboard.habits == [habit]
        assert _names(outcome).count("category.reset") == 5

    def test_reset_one_category(self, progression, dashboard, config_manager):
        config_manager.override("progression.base_thresholds.category", 300)
        progression.add_category_xp(Category.BOOKS, 900)
        progression.add_category_xp(Category.GOALS, 900)

        progression.reset(Category.BOOKS)

        assert dashboard.category(Category.BOOKS).next_level_xp == 300
        assert dashboard.category(Category.GOALS).level > 1

    def test_status(self, progression, dashboard):
        progression.add_category_xp(Category.ACADEMICS, 250)
        progression.add_item("Run")
        dashboard.update_category_fields(
            Category.SOCIAL_MEDIA, platforms=[{"name": "X", "usageToday": 1800, "timeLimit": 60}]
        )

        status = progression.status()

        assert status["player"]["name"] == "Tester"
        assert status["categories"]["academics"]["progress"] == 50.0
        assert set(status["categories"]) == {c.value for c in Category}
        assert status["habits"][0]["name"] == "Run"
        assert status["hobbies"] == []
        assert status["discipline"] == {"score": 50, "label": "Novice", "platforms": 1}

    def test_status_reads_completion_for_the_given_day(self, progression):
        progression.add_item("Run")
        progression.toggle_item(TrackerKind.HABIT, "Run", on=TODAY, today=TODAY)

        assert progression.status(today=TODAY)["habits"][0]["completed"] is True
        assert progression.status(today=date(2024, 5, 11))["habits"][0]["completed"] is False
