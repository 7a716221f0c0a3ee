"""
Unit Tests for the Dashboard Aggregate
======================================

Test Coverage
-------------
- Category XP dispatch and lifetime XP
- Overall level recomputation (habits count, hobbies do not)
- Habit/hobby add, find, remove and toggle
- Dirty tracking and event collection
- Snapshot shape, round trip and tolerant restore
"""

from datetime import date

import pytest

from lifequest.domain.models import Category, Dashboard, TrackerKind
from lifequest.domain.models.dashboard import SNAPSHOT_KEYS

TODAY = date(2024, 5, 10)


def _complete_days(dashboard: Dashboard, item, days: int) -> None:
    for day in range(1, days + 1):
        dashboard.toggle_item(item, date(2024, 5, day), today=TODAY)


@pytest.mark.unit
@pytest.mark.domain
class TestCategoryXP:
    def test_new_dashboard_defaults(self):
        board = Dashboard.new("u1", "Tester")

        assert board.is_dirty is True
        assert set(board.categories) == set(Category)
        assert all(record.level == 1 for record in board.categories.values())
        assert board.player.level == 1
        assert board.player.title == "Noob Idiot"

    def test_award_updates_category_and_lifetime_xp(self, dashboard):
        result = dashboard.add_category_xp(Category.ACADEMICS, 600)

        assert result.level == 2
        assert dashboard.category(Category.ACADEMICS).xp == 100
        assert dashboard.player.total_xp == 600
        assert dashboard.is_dirty is True

    def test_lifetime_xp_grows_without_level_up(self, dashboard):
        dashboard.add_category_xp(Category.BOOKS, 10)
        dashboard.add_category_xp(Category.GOALS, 15)

        assert dashboard.player.total_xp == 25

    def test_events_are_collected_on_the_aggregate(self, dashboard):
        dashboard.add_category_xp(Category.ACADEMICS, 600)

        names = [e.event_name for e in dashboard.clear_domain_events()]

        assert names == ["category.xp_awarded", "category.leveled_up"]
        assert dashboard.category(Category.ACADEMICS).get_pending_events() == []

    def test_overall_level_up_needs_every_component(self, dashboard):
        for category in Category:
            dashboard.add_category_xp(category, 500)
        # (2 * 5 + 1) / 6 = 1.83
        assert dashboard.player.level == 1

        habit = dashboard.add_item("Run")
        _complete_days(dashboard, habit, 5)

        assert habit.level == 2
        assert dashboard.player.level == 2
        assert dashboard.player.title == "Beginner Adventurer"
        names = [e.event_name for e in dashboard.clear_domain_events()]
        assert "player.leveled_up" in names


@pytest.mark.unit
@pytest.mark.domain
class TestTrackers:
    def test_hobbies_do_not_affect_overall_level(self, dashboard):
        for category in Category:
            dashboard.add_category_xp(category, 500)
        hobby = dashboard.add_item("Guitar", TrackerKind.HOBBY)

        _complete_days(dashboard, hobby, 10)

        assert hobby.level > 1
        assert dashboard.player.level == 1

    def test_tracker_xp_is_not_lifetime_xp(self, dashboard):
        habit = dashboard.add_item("Run")

        dashboard.toggle_item(habit, TODAY, today=TODAY)

        assert habit.xp == 20
        assert dashboard.player.total_xp == 0

    def test_find_item_by_id_then_name(self, dashboard):
        habit = dashboard.add_item("Morning Run")

        assert dashboard.find_item(TrackerKind.HABIT, habit.id) is habit
        assert dashboard.find_item(TrackerKind.HABIT, "morning run") is habit
        assert dashboard.find_item(TrackerKind.HOBBY, "morning run") is None

    def test_remove_item(self, dashboard):
        dashboard.add_item("Run")

        removed = dashboard.remove_item(TrackerKind.HABIT, "run")

        assert removed is not None
        assert dashboard.habits == []
        assert dashboard.remove_item(TrackerKind.HABIT, "run") is None

    def test_add_item_emits_event_and_marks_dirty(self, dashboard):
        dashboard.add_item("Read", TrackerKind.HOBBY)

        assert dashboard.is_dirty is True
        assert [e.event_name for e in dashboard.clear_domain_events()] == ["hobby.added"]


@pytest.mark.unit
@pytest.mark.domain
class TestFieldsAndReset:
    def test_update_fields_marks_dirty(self, dashboard):
        dashboard.update_category_fields(Category.TIMETABLE, events=[{"title": "Exam"}])

        assert dashboard.is_dirty is True
        assert dashboard.category(Category.TIMETABLE).fields["events"] == [{"title": "Exam"}]

    def test_reset_category_keeps_lifetime_xp(self, dashboard):
        dashboard.add_category_xp(Category.BOOKS, 2000)

        dashboard.reset_category(Category.BOOKS)

        assert dashboard.category(Category.BOOKS).level == 1
        assert dashboard.player.total_xp == 2000


@pytest.mark.unit
@pytest.mark.domain
class TestSnapshot:
    def test_snapshot_keys(self, dashboard):
        snapshot = dashboard.to_snapshot()

        assert tuple(snapshot) == SNAPSHOT_KEYS
        assert set(snapshot["socialMedia"]) >= {"disciplineLevel", "totalXP", "nextLevelXP"}

    def test_round_trip(self, dashboard):
        dashboard.add_category_xp(Category.ACADEMICS, 700)
        dashboard.update_category_fields(Category.ACADEMICS, subjects=[{"name": "Maths"}])
        habit = dashboard.add_item("Run", category="health")
        dashboard.toggle_item(habit, TODAY, today=TODAY)
        dashboard.add_item("Guitar", TrackerKind.HOBBY)
        snapshot = dashboard.to_snapshot()

        restored = Dashboard.from_snapshot("user-1", snapshot, "Default", today=TODAY)

        assert restored.to_snapshot() == snapshot
        assert restored.is_dirty is False
        assert restored.get_pending_events() == []

    def test_restored_habit_is_not_completed_the_next_day(self, dashboard):
        habit = dashboard.add_item("Run")
        dashboard.toggle_item(habit, TODAY, today=TODAY)

        restored = Dashboard.from_snapshot(
            "user-1", dashboard.to_snapshot(), "Default", today=date(2024, 5, 11)
        )

        assert restored.habits[0].completed is False
        assert restored.habits[0].streak == 1

    def test_restore_tolerates_garbage(self):
        snapshot = {
            "player": "not a mapping",
            "habits": "nope",
            "hobbies": [None, {"name": "Chess", "level": "3"}],
            "academics": 5,
            "goals": {"totalXP": -10, "overallLevel": 0, "weekly": [{"title": "x"}]},
        }

        restored = Dashboard.from_snapshot("u2", snapshot, "Adventurer")

        assert restored.player.name == "Adventurer"
        assert restored.habits == []
        assert [h.name for h in restored.hobbies] == ["Chess"]
        assert restored.hobbies[0].level == 3
        assert restored.category(Category.ACADEMICS).level == 1
        goals = restored.category(Category.GOALS)
        assert (goals.level, goals.xp) == (1, 0)
        assert goals.fields["weekly"] == [{"title": "x"}]

    def test_restore_non_mapping_snapshot(self):
        restored = Dashboard.from_snapshot("u3", None, "Adventurer")

        assert restored.player.level == 1
        assert restored.updated_at is None

    def test_restore_recomputes_player_level(self):
        board = Dashboard.new("u4", "Tester")
        snapshot = board.to_snapshot()
        snapshot["player"]["level"] = 9
        snapshot["player"]["title"] = "Master Achiever"

        restored = Dashboard.from_snapshot("u4", snapshot, "Tester")

        assert restored.player.level == 1
        assert restored.player.title == "Noob Idiot"
