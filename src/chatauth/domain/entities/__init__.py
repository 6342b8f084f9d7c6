"""Domain entities for chatauth."""

from chatauth.domain.entities.session import Session
from chatauth.domain.entities.tokens import AccessClaims, LoginResult, TokenPair
from chatauth.domain.entities.user import User, UserStatus

__all__ = [
    "AccessClaims",
    "LoginResult",
    "Session",
    "TokenPair",
    "User",
    "UserStatus",
]
