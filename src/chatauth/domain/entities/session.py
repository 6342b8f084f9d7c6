"""Session entity binding a refresh token to a user."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class Session:
    """Server-side refresh-token session.

    A session is valid while ``now < expires_at``. A user may hold any number
    of sessions at once (one per device).

    Attributes:
        id: Unique identifier (UUID string).
        user_id: ID of the owning user.
        expires_at: When the session stops being accepted.
        device_info: Optional client-supplied device descriptor.
        ip_address: Optional origin address of the login.
        created_at: When the session was created.
    """

    id: str
    user_id: str
    expires_at: datetime
    device_info: dict[str, Any] | None = None
    ip_address: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_valid(self, now: datetime | None = None) -> bool:
        """Check whether the session has not yet expired."""
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now < expires_at
