"""
Persistence Gateway
===================

Purpose
-------
Moves dashboards between the in-memory engine and a ``SnapshotStore``.
The engine itself never awaits; this is the only asynchronous seam.

Domain
------
- Load a user's snapshot into a ``Dashboard`` (defaults for new users)
- Save a dashboard snapshot when it has unsaved changes
- Create and update the profile document (email, display name)

Error Handling
--------------
- ``StoreNotConnectedError``: gateway used before ``connect()``
- ``PersistenceError``: any backend failure (file system, database). The
  error is retryable; the dashboard stays dirty after a failed save.
- ``ValidationError``: empty user id or missing profile fields
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from sqlalchemy.exc import SQLAlchemyError

from lifequest.core.config.config import Config
from lifequest.core.config.manager import ConfigManager
from lifequest.core.database.service import DatabaseInitializationError
from lifequest.core.logging.logger import LogContext, get_logger
from lifequest.domain.models.dashboard import Dashboard
from lifequest.domain.models.habit import TrackerKind
from lifequest.modules.persistence.document_store import DocumentStore
from lifequest.modules.persistence.local_store import LocalSnapshotStore
from lifequest.modules.persistence.store import SnapshotStore
from lifequest.modules.shared.base_service import BaseService
from lifequest.modules.shared.constants import (
    CATEGORY_BASE_THRESHOLD,
    HABIT_BASE_THRESHOLD,
    HOBBY_BASE_THRESHOLD,
    XP_MULTIPLIER,
)
from lifequest.modules.shared.exceptions import (
    PersistenceError,
    StoreNotConnectedError,
    ValidationError,
)

if TYPE_CHECKING:
    from logging import Logger

# Backend failures the gateway converts to PersistenceError
_BACKEND_ERRORS = (OSError, ValueError, SQLAlchemyError, DatabaseInitializationError)


def build_store(backend: Optional[str] = None) -> SnapshotStore:
    """
    Store for the configured backend (``Config.STORAGE_BACKEND``).

    Raises:
        ValidationError: If the backend name is unknown
    """
    name = (backend or Config.STORAGE_BACKEND).lower()
    if name == "local":
        return LocalSnapshotStore(Config.DATA_DIR)
    if name == "remote":
        return DocumentStore()
    raise ValidationError("storage_backend", f"unknown storage backend {name!r}")


class PersistenceGateway(BaseService):
    """
    Loads and saves dashboards through one store.

    Usage
    -----
    >>> async with PersistenceGateway(build_store()) as gateway:
    ...     dashboard = await gateway.load_dashboard("u1")
    ...     ProgressionService(dashboard).add_category_xp(Category.BOOKS, 10)
    ...     await gateway.save_dashboard(dashboard)
    """

    def __init__(
        self,
        store: SnapshotStore,
        config_manager: Type[ConfigManager] = ConfigManager,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(config_manager, logger or get_logger(__name__))
        self.store = store

    async def __aenter__(self) -> "PersistenceGateway":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def connect(self) -> None:
        try:
            await self.store.connect()
        except _BACKEND_ERRORS as exc:
            self.log_error("connect", exc, store=self.store.name)
            raise PersistenceError("connect", None, str(exc)) from exc

    async def close(self) -> None:
        await self.store.close()

    # ========================================================================
    # DASHBOARD
    # ========================================================================

    async def load_dashboard(
        self,
        user_id: str,
        default_player_name: Optional[str] = None,
    ) -> Dashboard:
        """
        Load a user's dashboard; a user without a document gets defaults.

        A freshly created default dashboard is dirty so the first save
        writes it.
        """
        player_name = default_player_name or Config.DEFAULT_PLAYER_NAME
        snapshot = await self._call("load", user_id, self.store.load(user_id))

        with LogContext(user_id=user_id, operation="load_dashboard"):
            if snapshot is None:
                self.log.info("No snapshot found; starting a new dashboard")
                return Dashboard.new(user_id, player_name, self._category_threshold())

            if "player" not in snapshot and snapshot.get("displayName"):
                player_name = str(snapshot["displayName"])

            dashboard = Dashboard.from_snapshot(
                user_id,
                snapshot,
                player_name,
                category_threshold=self._category_threshold(),
                item_thresholds=self._item_thresholds(),
                multiplier=self.get_config_float("progression.xp_multiplier", XP_MULTIPLIER),
            )
            self.log.info(
                "Dashboard loaded",
                extra={"level": dashboard.player.level, "habits": len(dashboard.habits)},
            )
            return dashboard

    async def save_dashboard(self, dashboard: Dashboard, force: bool = False) -> bool:
        """
        Write the dashboard snapshot with merge semantics.

        Returns:
            True if a write happened, False if there was nothing to save
        """
        if not dashboard.is_dirty and not force:
            self.log.debug("Dashboard clean; skipping save", extra={"user_id": dashboard.user_id})
            return False

        snapshot = dashboard.to_snapshot()
        await self._call(
            "save",
            dashboard.user_id,
            self.store.save(dashboard.user_id, snapshot, merge=True),
        )
        dashboard.mark_clean()
        self.log.info(
            "Dashboard saved",
            extra={"user_id": dashboard.user_id, "store": self.store.name, "forced": force},
        )
        return True

    # ========================================================================
    # PROFILE
    # ========================================================================

    async def create_profile(
        self,
        user_id: str,
        email: str,
        display_name: str,
    ) -> Dashboard:
        """
        Write the initial document for a new account.

        Replaces any existing document: the profile fields plus a default
        dashboard whose player is named after the display name.
        """
        if not email or "@" not in email:
            raise ValidationError("email", "a valid email address is required")
        if not display_name or not display_name.strip():
            raise ValidationError("display_name", "display name cannot be empty")

        dashboard = Dashboard.new(user_id, display_name.strip(), self._category_threshold())
        document: Dict[str, Any] = {
            "email": email,
            "displayName": display_name.strip(),
            "createdAt": datetime.now(timezone.utc).isoformat(),
            **dashboard.to_snapshot(),
        }
        await self._call("create", user_id, self.store.save(user_id, document, merge=False))
        dashboard.mark_clean()
        self.log_operation("create_profile", user_id=user_id)
        return dashboard

    async def update_profile(self, user_id: str, **fields: Any) -> None:
        """Merge profile fields (``displayName``, ``photoURL``) into the document."""
        updates = {key: value for key, value in fields.items() if value}
        if not updates:
            raise ValidationError("profile", "no profile fields to update")
        await self._call("update", user_id, self.store.save(user_id, updates, merge=True))
        self.log_operation("update_profile", user_id=user_id, fields=sorted(updates))

    async def delete_profile(self, user_id: str) -> bool:
        return await self._call("delete", user_id, self.store.delete(user_id))

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _category_threshold(self) -> int:
        return self.get_config_int("progression.base_thresholds.category", CATEGORY_BASE_THRESHOLD)

    def _item_thresholds(self) -> Dict[TrackerKind, int]:
        return {
            TrackerKind.HABIT: self.get_config_int(
                "progression.base_thresholds.habit", HABIT_BASE_THRESHOLD
            ),
            TrackerKind.HOBBY: self.get_config_int(
                "progression.base_thresholds.hobby", HOBBY_BASE_THRESHOLD
            ),
        }

    async def _call(self, operation: str, user_id: str, awaitable: Any) -> Any:
        """Await a store call, converting backend failures."""
        try:
            return await awaitable
        except (StoreNotConnectedError, ValidationError):
            raise
        except _BACKEND_ERRORS as exc:
            self.log_error(operation, exc, user_id=user_id, store=self.store.name)
            raise PersistenceError(operation, user_id, str(exc)) from exc


__all__ = ["PersistenceGateway", "build_store"]
