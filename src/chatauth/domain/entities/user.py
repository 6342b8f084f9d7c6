"""User entity for registration, verification and login.

Users are uniquely identified by email and by username. The password digest
and the stored token digests stay inside the persistence layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class UserStatus(str, Enum):
    """Presence status shown to other chat users."""

    ONLINE = "online"
    OFFLINE = "offline"
    AWAY = "away"


@dataclass
class User:
    """User entity.

    Attributes:
        id: Unique identifier (UUID string).
        email: Email address (globally unique).
        username: Username (globally unique).
        display_name: Name shown in chats; defaults to the username.
        avatar_url: Optional avatar location.
        bio: Optional profile text.
        status: Presence status.
        is_verified: Whether the email address has been verified.
        verification_token: Raw verification token. Only set on the user
            returned by registration; never loaded back from the store.
        created_at: Timestamp when the user was created.
        updated_at: Timestamp when the user was last updated.
        last_login: Timestamp of last successful login (nullable).
    """

    id: str
    email: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    status: UserStatus = UserStatus.OFFLINE
    is_verified: bool = False
    verification_token: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: datetime | None = None

    def __post_init__(self) -> None:
        """Validate user data after initialization."""
        if not self.id:
            raise ValueError("User ID is required")
        if not self.email:
            raise ValueError("Email is required")
        if not self.username:
            raise ValueError("Username is required")
        if isinstance(self.status, str) and not isinstance(self.status, UserStatus):
            self.status = UserStatus(self.status)
