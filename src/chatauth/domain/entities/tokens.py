"""Token value types returned by the token issuer and identity service."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from chatauth.domain.entities.user import User


@dataclass(frozen=True)
class TokenPair:
    """Short-lived access token plus long-lived refresh token."""

    access_token: str
    refresh_token: str


class AccessClaims(BaseModel):
    """Identity claims carried by an access token."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(..., alias="userId", description="Unique identifier of the user")
    email: str = Field(..., description="User's email address")
    username: str = Field(..., description="User's username")
    is_verified: bool = Field(..., alias="isVerified", description="Email verification flag")
    issued_at: datetime | None = Field(None, alias="iat", description="When the token was issued")
    expires_at: datetime | None = Field(None, alias="exp", description="When the token expires")

    @classmethod
    def for_user(cls, user: User) -> "AccessClaims":
        """Build the claims for a user as currently stored."""
        return cls(
            user_id=user.id,
            email=user.email,
            username=user.username,
            is_verified=user.is_verified,
        )

    def to_payload(self) -> dict[str, object]:
        """Serialize the identity claims using the wire field names."""
        return self.model_dump(by_alias=True, include={"user_id", "email", "username", "is_verified"})


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    user: User
    tokens: TokenPair
