"""
Remote document store on async SQLAlchemy.

Purpose
-------
Keeps one ``UserDocument`` row per user; the row's JSON ``data`` column
holds the snapshot. ``save(merge=True)`` behaves like a document
``set(..., merge)``: top-level keys in the incoming snapshot replace the
stored ones, everything else is kept.

Design Notes
------------
- The ``DatabaseService`` is injected, never global. ``connect()`` connects
  it and ensures the schema; ``close()`` disposes it only when this store
  created it.
- Writes run inside ``DatabaseService.transaction()`` and lock the row
  (``SELECT ... FOR UPDATE``) before merging, so two concurrent saves for
  the same user cannot interleave their read-merge-write.
- SQLAlchemy errors propagate; the gateway turns them into
  ``PersistenceError``.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from sqlalchemy import delete, select

from lifequest.core.database.service import DatabaseService
from lifequest.core.logging.logger import get_logger
from lifequest.database.models import UserDocument
from lifequest.modules.persistence.store import merge_documents
from lifequest.modules.shared.exceptions import StoreNotConnectedError, ValidationError

logger = get_logger(__name__)


class DocumentStore:
    """
    ``SnapshotStore`` backed by the ``user_documents`` table.

    Example
    -------
    >>> store = DocumentStore(DatabaseService(url="postgresql+asyncpg://..."))
    >>> await store.connect()
    >>> await store.save("u1", dashboard.to_snapshot())
    """

    name = "remote"

    def __init__(
        self,
        database: Optional[DatabaseService] = None,
        create_schema: bool = True,
    ) -> None:
        self._owns_database = database is None
        self._database = database or DatabaseService()
        self._create_schema = create_schema

    @property
    def is_connected(self) -> bool:
        return self._database.is_connected

    @property
    def database(self) -> DatabaseService:
        return self._database

    async def connect(self) -> None:
        await self._database.connect()
        if self._create_schema:
            await self._database.create_schema()

    async def close(self) -> None:
        if self._owns_database:
            await self._database.close()

    # =========================================================================
    # DOCUMENT OPERATIONS
    # =========================================================================

    async def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        self._require_connection("load", user_id)
        async with self._database.session() as session:
            document = await session.get(UserDocument, user_id)
            if document is None:
                return None
            data = dict(document.data or {})

        logger.debug("Document loaded", extra={"user_id": user_id, "keys": len(data)})
        return data

    async def save(
        self,
        user_id: str,
        snapshot: Mapping[str, Any],
        merge: bool = True,
    ) -> None:
        self._require_connection("save", user_id)
        async with self._database.transaction() as session:
            stmt = (
                select(UserDocument)
                .where(UserDocument.user_id == user_id)
                .with_for_update()
            )
            document = (await session.execute(stmt)).scalar_one_or_none()

            if document is None:
                session.add(UserDocument(user_id=user_id, data=dict(snapshot)))
                created = True
            else:
                # Reassign so the JSON column is flagged as changed
                document.data = merge_documents(document.data, snapshot, merge)
                created = False

        logger.debug(
            "Document saved",
            extra={"user_id": user_id, "merge": merge, "created": created},
        )

    async def delete(self, user_id: str) -> bool:
        self._require_connection("delete", user_id)
        async with self._database.transaction() as session:
            result = await session.execute(
                delete(UserDocument).where(UserDocument.user_id == user_id)
            )
        return bool(result.rowcount)

    def _require_connection(self, operation: str, user_id: str) -> None:
        if not user_id or not user_id.strip():
            raise ValidationError("user_id", "user id cannot be empty")
        if not self._database.is_connected:
            raise StoreNotConnectedError(self.name, operation)

    def __repr__(self) -> str:
        return f"<DocumentStore connected={self.is_connected}>"


__all__ = ["DocumentStore"]
