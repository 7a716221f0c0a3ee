"""
Unit Tests for PersistenceGateway
=================================

Purpose
-------
Test dashboard load/save and profile documents against a mocked
SnapshotStore, plus one end-to-end pass through the local JSON store.

Testing Strategy
----------------
- ``mock_store`` fixture (AsyncMock methods) for call assertions
- ``local_store`` fixture for a real round trip
- Backend failures are simulated with ``side_effect``
"""

import pytest

from lifequest.domain.models import Category, Dashboard
from lifequest.modules.persistence import (
    DocumentStore,
    LocalSnapshotStore,
    PersistenceGateway,
    build_store,
)
from lifequest.modules.progression import ProgressionService
from lifequest.modules.shared.exceptions import (
    PersistenceError,
    StoreNotConnectedError,
    ValidationError,
)


@pytest.fixture
def gateway(mock_store, config_manager) -> PersistenceGateway:
    return PersistenceGateway(mock_store, config_manager)


# ============================================================================
# LOAD
# ============================================================================


@pytest.mark.unit
class TestLoad:
    async def test_new_user_gets_dirty_defaults(self, gateway, mock_store):
        dashboard = await gateway.load_dashboard("u1", "Ada")

        mock_store.load.assert_awaited_once_with("u1")
        assert dashboard.user_id == "u1"
        assert dashboard.player.name == "Ada"
        assert dashboard.player.level == 1
        assert dashboard.is_dirty is True

    async def test_new_user_uses_configured_threshold(self, gateway, config_manager):
        config_manager.override("progression.base_thresholds.category", 250)

        dashboard = await gateway.load_dashboard("u1")

        assert dashboard.category(Category.BOOKS).next_level_xp == 250

    async def test_existing_snapshot_restored_clean(self, gateway, mock_store):
        source = Dashboard.new("u1", "Ada")
        source.add_category_xp(Category.GOALS, 120)
        mock_store.load.return_value = source.to_snapshot()

        dashboard = await gateway.load_dashboard("u1", "Someone Else")

        assert dashboard.is_dirty is False
        assert dashboard.player.name == "Ada"
        assert dashboard.category(Category.GOALS).xp == 120

    async def test_profile_only_document_uses_display_name(self, gateway, mock_store):
        mock_store.load.return_value = {"email": "a@b.c", "displayName": "Ada"}

        dashboard = await gateway.load_dashboard("u1", "Fallback")

        assert dashboard.player.name == "Ada"

    async def test_backend_error_wrapped(self, gateway, mock_store):
        mock_store.load.side_effect = OSError("disk gone")

        with pytest.raises(PersistenceError) as exc_info:
            await gateway.load_dashboard("u1")

        assert exc_info.value.details["operation"] == "load"
        assert exc_info.value.details["user_id"] == "u1"

    async def test_not_connected_passes_through(self, gateway, mock_store):
        mock_store.load.side_effect = StoreNotConnectedError("mock", "load")

        with pytest.raises(StoreNotConnectedError):
            await gateway.load_dashboard("u1")


# ============================================================================
# SAVE
# ============================================================================


@pytest.mark.unit
class TestSave:
    async def test_clean_dashboard_not_written(self, gateway, mock_store, dashboard):
        assert await gateway.save_dashboard(dashboard) is False
        mock_store.save.assert_not_awaited()

    async def test_dirty_dashboard_merged_and_cleaned(self, gateway, mock_store, dashboard):
        dashboard.add_category_xp(Category.BOOKS, 10)

        assert await gateway.save_dashboard(dashboard) is True

        user_id, snapshot = mock_store.save.await_args.args
        assert user_id == "user-1"
        assert snapshot["books"]["totalXP"] == 10
        assert mock_store.save.await_args.kwargs == {"merge": True}
        assert dashboard.is_dirty is False

    async def test_force_writes_clean_dashboard(self, gateway, mock_store, dashboard):
        assert await gateway.save_dashboard(dashboard, force=True) is True
        mock_store.save.assert_awaited_once()

    async def test_failed_save_keeps_dashboard_dirty(self, gateway, mock_store, dashboard):
        dashboard.add_category_xp(Category.BOOKS, 10)
        mock_store.save.side_effect = OSError("read-only file system")

        with pytest.raises(PersistenceError):
            await gateway.save_dashboard(dashboard)

        assert dashboard.is_dirty is True


# ============================================================================
# PROFILE
# ============================================================================


@pytest.mark.unit
class TestProfile:
    async def test_create_profile_replaces_document(self, gateway, mock_store):
        dashboard = await gateway.create_profile("u1", "ada@example.com", " Ada ")

        user_id, document = mock_store.save.await_args.args
        assert user_id == "u1"
        assert mock_store.save.await_args.kwargs == {"merge": False}
        assert document["email"] == "ada@example.com"
        assert document["displayName"] == "Ada"
        assert "createdAt" in document
        assert document["player"]["name"] == "Ada"
        assert dashboard.is_dirty is False

    @pytest.mark.parametrize(
        "email, name, field",
        [("not-an-email", "Ada", "email"), ("", "Ada", "email"), ("a@b.c", "  ", "display_name")],
    )
    async def test_create_profile_validation(self, gateway, mock_store, email, name, field):
        with pytest.raises(ValidationError) as exc_info:
            await gateway.create_profile("u1", email, name)

        assert exc_info.value.field == field
        mock_store.save.assert_not_awaited()

    async def test_update_profile_merges_non_empty_fields(self, gateway, mock_store):
        await gateway.update_profile("u1", displayName="Ada L.", photoURL=None)

        mock_store.save.assert_awaited_once_with("u1", {"displayName": "Ada L."}, merge=True)

    async def test_update_profile_requires_fields(self, gateway):
        with pytest.raises(ValidationError):
            await gateway.update_profile("u1", displayName="")

    async def test_delete_profile(self, gateway, mock_store):
        assert await gateway.delete_profile("u1") is True
        mock_store.delete.assert_awaited_once_with("u1")


# ============================================================================
# LIFECYCLE & STORE SELECTION
# ============================================================================


@pytest.mark.unit
class TestLifecycle:
    async def test_context_manager_connects_and_closes(self, gateway, mock_store):
        async with gateway:
            mock_store.connect.assert_awaited_once()

        mock_store.close.assert_awaited_once()

    async def test_connect_failure_wrapped(self, gateway, mock_store):
        mock_store.connect.side_effect = OSError("permission denied")

        with pytest.raises(PersistenceError):
            await gateway.connect()

    def test_build_store(self):
        assert isinstance(build_store("local"), LocalSnapshotStore)
        assert isinstance(build_store("REMOTE"), DocumentStore)

    def test_build_store_unknown_backend(self):
        with pytest.raises(ValidationError):
            build_store("floppy")


@pytest.mark.unit
async def test_round_trip_through_local_store(local_store, config_manager):
    gateway = PersistenceGateway(local_store, config_manager)
    dashboard = await gateway.load_dashboard("u1", "Ada")
    service = ProgressionService(dashboard, config_manager)
    service.add_category_xp(Category.ACADEMICS, 700)
    service.add_item("Run")
    await gateway.save_dashboard(dashboard)

    restored = await gateway.load_dashboard("u1")

    assert restored.player.name == "Ada"
    assert restored.player.total_xp == 700
    assert restored.category(Category.ACADEMICS).level == 2
    assert [habit.name for habit in restored.habits] == ["Run"]
