"""
Unit Tests for Reward Rules
===========================

Test Coverage
-------------
- Built-in reward table per category/action
- Test score bonus bands and parameter validation
- Goal completion by priority
- YAML overrides and YAML-only actions
- Goal statistics and achievement unlocking
"""

import pytest

from lifequest.core.config.manager import ConfigManager
from lifequest.domain.models import Category
from lifequest.modules.rewards import GoalStats, RewardRules
from lifequest.modules.shared.exceptions import InvalidOperationError, ValidationError


@pytest.fixture
def rules(config_manager) -> RewardRules:
    return RewardRules(config_manager)


@pytest.mark.unit
class TestAmounts:
    @pytest.mark.parametrize(
        "category, action, expected",
        [
            (Category.ACADEMICS, "subject_added", 10),
            (Category.GOALS, "goal_created", 10),
            (Category.BOOKS, "book_added", 10),
            (Category.BOOKS, "progress_updated", 5),
            (Category.BOOKS, "rating_raised", 5),
            (Category.SOCIAL_MEDIA, "platform_tracked", 5),
            (Category.TIMETABLE, "event_scheduled", 5),
            (Category.TIMETABLE, "event_completed", 15),
        ],
    )
    def test_default_table(self, rules, category, action, expected):
        assert rules.amount_for(category, action) == expected

    def test_actions_exclude_bonus_table(self, rules):
        assert rules.actions(Category.ACADEMICS) == ["subject_added", "test_recorded"]

    def test_unknown_action(self, rules):
        with pytest.raises(InvalidOperationError) as exc_info:
            rules.amount_for(Category.BOOKS, "book_burned")

        assert "book_added" in str(exc_info.value)

    def test_score_bonus_not_an_action(self, rules):
        with pytest.raises(InvalidOperationError):
            rules.amount_for(Category.ACADEMICS, "score_bonus")


@pytest.mark.unit
class TestTestScores:
    @pytest.mark.parametrize(
        "score, max_score, expected",
        [
            (46, 50, 25),
            (45, 50, 25),
            (40, 50, 20),
            (35, 50, 15),
            (30, 50, 10),
            (29, 50, 5),
        ],
    )
    def test_score_bands(self, rules, score, max_score, expected):
        assert rules.amount_for(
            Category.ACADEMICS, "test_recorded", score=score, max_score=max_score
        ) == expected

    def test_without_score_only_base(self, rules):
        assert rules.amount_for(Category.ACADEMICS, "test_recorded") == 5

    def test_score_without_max_rejected(self, rules):
        with pytest.raises(ValidationError):
            rules.amount_for(Category.ACADEMICS, "test_recorded", score=40)

    def test_zero_max_score_rejected(self, rules):
        with pytest.raises(ValidationError) as exc_info:
            rules.amount_for(Category.ACADEMICS, "test_recorded", score=1, max_score=0)

        assert exc_info.value.field == "max_score"


@pytest.mark.unit
class TestGoalCompletion:
    @pytest.mark.parametrize(
        "priority, expected", [(None, 20), ("low", 10), ("medium", 20), ("HIGH", 30)]
    )
    def test_priority(self, rules, priority, expected):
        assert rules.amount_for(Category.GOALS, "goal_completed", priority=priority) == expected

    def test_unknown_priority(self, rules):
        with pytest.raises(ValidationError):
            rules.amount_for(Category.GOALS, "goal_completed", priority="urgent")


@pytest.mark.unit
class TestReadingProgress:
    @pytest.mark.parametrize(
        "page, previous_page, expected",
        [(None, None, 5), (40, 12, 5), (12, 12, 0), (3, 12, 0), (1, None, 5)],
    )
    def test_only_forward_progress_pays(self, rules, page, previous_page, expected):
        amount = rules.amount_for(
            Category.BOOKS, "progress_updated", page=page, previous_page=previous_page
        )

        assert amount == expected

    @pytest.mark.parametrize("page", [-1, "ten"])
    def test_bad_page(self, rules, page):
        with pytest.raises(ValidationError):
            rules.amount_for(Category.BOOKS, "progress_updated", page=page)


@pytest.mark.unit
class TestTunables:
    def test_override_amount(self, rules, config_manager):
        config_manager.override("rewards.books.book_added", 12)

        assert rules.amount_for(Category.BOOKS, "book_added") == 12

    def test_yaml_only_action(self, tmp_path):
        (tmp_path / "rewards.yaml").write_text(
            "rewards:\n  books:\n    review_written: 8\n", encoding="utf-8"
        )
        ConfigManager.initialize(config_dir=tmp_path, force=True)
        rules = RewardRules(ConfigManager)

        assert "review_written" in rules.actions(Category.BOOKS)
        assert rules.amount_for(Category.BOOKS, "review_written") == 8
        assert rules.amount_for(Category.BOOKS, "book_added") == 10


@pytest.mark.unit
class TestAchievements:
    def test_goal_stats_from_fields(self):
        fields = {
            "weekly": [{"completed": True, "priority": "high"}, {"completed": False}],
            "monthly": [{"completed": True, "priority": "low"}],
            "yearly": [],
            "life": "junk",
            "achievements": ["Goal Setter"],
        }

        stats = GoalStats.from_fields(fields)

        assert stats.goals_created == 3
        assert stats.goals_completed == 2
        assert stats.high_priority_completed == 1
        assert stats.horizons_covered == 2

    def test_default_catalogue(self, rules):
        titles = [a.title for a in rules.achievements()]

        assert titles == [
            "Goal Setter",
            "Achievement Hunter",
            "Overachiever",
            "Master Planner",
            "Perfectionist",
        ]

    def test_newly_unlocked_skips_already_unlocked(self, rules):
        stats = GoalStats(goals_created=1)

        assert [a.title for a in rules.newly_unlocked(stats, [])] == ["Goal Setter"]
        assert rules.newly_unlocked(stats, ["Goal Setter"]) == []

    def test_master_planner_needs_all_horizons(self, rules):
        stats = GoalStats(
            goals_created=4,
            horizons=frozenset({"weekly", "monthly", "yearly", "life"}),
        )

        titles = [a.title for a in rules.newly_unlocked(stats, ["Goal Setter"])]

        assert titles == ["Master Planner"]
