"""
Database subsystem for LifeQuest.

Provides the async SQLAlchemy engine owner and the ORM base classes used
by the remote document store.
"""

from lifequest.core.database.base import Base, TimestampMixin, utc_now
from lifequest.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
    DatabaseSettings,
)

__all__ = [
    # ORM Base & Mixins
    "Base",
    "TimestampMixin",
    "utc_now",
    # Main service
    "DatabaseService",
    "DatabaseSettings",
    # Exceptions
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
