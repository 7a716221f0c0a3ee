"""
Snapshot persistence.

- SnapshotStore: async store contract (connect/close/load/save/delete)
- LocalSnapshotStore: JSON file per user under DATA_DIR
- DocumentStore: ``user_documents`` table through DatabaseService
- PersistenceGateway: Dashboard <-> store, error conversion
"""

from .document_store import DocumentStore
from .gateway import PersistenceGateway, build_store
from .local_store import LocalSnapshotStore
from .store import SnapshotStore, merge_documents

__all__ = [
    "SnapshotStore",
    "LocalSnapshotStore",
    "DocumentStore",
    "PersistenceGateway",
    "build_store",
    "merge_documents",
]
