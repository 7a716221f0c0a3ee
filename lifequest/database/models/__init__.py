"""Table models for the remote document store."""

from lifequest.database.models.user_document import UserDocument

__all__ = ["UserDocument"]
