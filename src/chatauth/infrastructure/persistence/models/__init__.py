"""SQLAlchemy models for the credential and session stores."""

from chatauth.infrastructure.persistence.models.user import UserModel
from chatauth.infrastructure.persistence.models.user_session import UserSessionModel

__all__ = [
    "UserModel",
    "UserSessionModel",
]
