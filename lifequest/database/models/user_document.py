from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from lifequest.core.database.base import Base, TimestampMixin


class UserDocument(Base, TimestampMixin):
    """
    One dashboard snapshot per user, stored as a JSON document.

    Schema-only model:
    - user_id: identifier of the owning user (primary key)
    - data: the camelCase snapshot mapping (player, habits, hobbies, ...)
    - created_at / updated_at: timestamps from TimestampMixin
    """

    __tablename__ = "user_documents"

    user_id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )

    data: Mapped[Dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        return f"<UserDocument user_id={self.user_id!r}>"
