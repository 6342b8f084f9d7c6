"""SQLAlchemy model for refresh-token sessions.

Each row binds one refresh token (stored as its SHA-256 digest) to a user
until ``expires_at``.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatauth.domain.entities.session import Session
from chatauth.infrastructure.persistence.database import Base


class UserSessionModel(Base):
    """Refresh-token session model."""

    __tablename__ = "user_sessions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Token hash (SHA-256) - indexed for fast lookup
    refresh_token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )
    device_info: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )

    user = relationship("UserModel", back_populates="sessions")

    def to_entity(self) -> Session:
        return Session(
            id=self.id,
            user_id=self.user_id,
            expires_at=self.expires_at,
            device_info=self.device_info,
            ip_address=self.ip_address,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"UserSessionModel(id={self.id!r}, user_id={self.user_id!r})"
