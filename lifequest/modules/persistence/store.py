"""
Snapshot store contract.

A store persists one JSON-compatible mapping per user. Both backends keep
the document shape opaque: they never interpret snapshot keys, they only
replace or shallow-merge them.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class SnapshotStore(Protocol):
    """Async document store keyed by user id."""

    name: str

    @property
    def is_connected(self) -> bool: ...

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def load(self, user_id: str) -> Optional[Dict[str, Any]]: ...

    async def save(
        self,
        user_id: str,
        snapshot: Mapping[str, Any],
        merge: bool = True,
    ) -> None: ...

    async def delete(self, user_id: str) -> bool: ...


def merge_documents(
    existing: Optional[Mapping[str, Any]],
    incoming: Mapping[str, Any],
    merge: bool,
) -> Dict[str, Any]:
    """
    Combine a stored document with an incoming one.

    ``merge=True`` replaces top-level keys present in ``incoming`` and keeps
    the rest (``email``, ``displayName``, ``createdAt`` survive a snapshot
    save). ``merge=False`` replaces the document outright.
    """
    if not merge or not existing:
        return dict(incoming)
    return {**existing, **incoming}


__all__ = ["SnapshotStore", "merge_documents"]
