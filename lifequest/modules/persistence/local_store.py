"""
Local snapshot store: one JSON file per user.

Purpose
-------
Per-device persistence for the CLI. Files live under ``Config.DATA_DIR``
(``<data_dir>/users/<user>.json``) and are written atomically through a
temporary file in the same directory followed by ``os.replace``.

Notes
-----
- File I/O runs in a worker thread (``asyncio.to_thread``) so the store
  honours the same async contract as the database-backed store.
- User ids are mapped to safe file names; ids containing other characters
  get a short hash suffix so two ids never share a file.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from lifequest.core.config.config import Config
from lifequest.core.logging.logger import get_logger
from lifequest.modules.persistence.store import merge_documents
from lifequest.modules.shared.exceptions import StoreNotConnectedError, ValidationError

logger = get_logger(__name__)

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


class LocalSnapshotStore:
    """JSON-file store rooted at a data directory."""

    name = "local"

    def __init__(self, data_dir: Optional[Union[str, Path]] = None) -> None:
        self._root = Path(data_dir) if data_dir is not None else Path(Config.DATA_DIR)
        self._directory = self._root / "users"
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def directory(self) -> Path:
        return self._directory

    async def connect(self) -> None:
        if self._connected:
            return
        await asyncio.to_thread(self._directory.mkdir, parents=True, exist_ok=True)
        self._connected = True
        logger.info("Local snapshot store ready", extra={"directory": str(self._directory)})

    async def close(self) -> None:
        self._connected = False

    # =========================================================================
    # DOCUMENT OPERATIONS
    # =========================================================================

    def path_for(self, user_id: str) -> Path:
        if not user_id or not user_id.strip():
            raise ValidationError("user_id", "user id cannot be empty")
        safe = _SAFE_NAME.sub("_", user_id)
        if safe != user_id or safe.startswith("."):
            digest = hashlib.sha1(user_id.encode("utf-8")).hexdigest()[:8]
            safe = f"{safe.lstrip('.')}-{digest}"
        return self._directory / f"{safe}.json"

    async def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        self._require_connection("load")
        return await asyncio.to_thread(self._read, self.path_for(user_id))

    async def save(
        self,
        user_id: str,
        snapshot: Mapping[str, Any],
        merge: bool = True,
    ) -> None:
        self._require_connection("save")
        path = self.path_for(user_id)
        existing = await asyncio.to_thread(self._read, path) if merge else None
        document = merge_documents(existing, snapshot, merge)
        await asyncio.to_thread(self._write_atomic, path, document)
        logger.debug(
            "Snapshot written",
            extra={"user_id": user_id, "path": str(path), "merge": merge},
        )

    async def delete(self, user_id: str) -> bool:
        self._require_connection("delete")
        path = self.path_for(user_id)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        return True

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _require_connection(self, operation: str) -> None:
        if not self._connected:
            raise StoreNotConnectedError(self.name, operation)

    @staticmethod
    def _read(path: Path) -> Optional[Dict[str, Any]]:
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return None
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring snapshot file with non-object root",
                extra={"path": str(path), "root_type": type(data).__name__},
            )
            return None
        return data

    @staticmethod
    def _write_atomic(path: Path, document: Mapping[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2, default=str)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def __repr__(self) -> str:
        return f"<LocalSnapshotStore directory={str(self._directory)!r}>"


__all__ = ["LocalSnapshotStore"]
