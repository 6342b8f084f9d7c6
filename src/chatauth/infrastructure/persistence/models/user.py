"""SQLAlchemy model for the users table.

Users are uniquely identified by email and by username.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatauth.domain.entities.user import User, UserStatus
from chatauth.infrastructure.persistence.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Attributes:
        id: Primary key (UUID string).
        email: Email address (unique).
        username: Username (unique).
        password_hash: Password digest.
        display_name: Name shown in chats.
        status: Presence status (online, offline, away).
        is_verified: Whether the email address has been verified.
        verification_token: SHA-256 digest of the pending verification token.
        reset_token: SHA-256 digest of the pending password reset token.
        reset_token_expires: When the pending reset token stops being accepted.
        last_login: Timestamp of last successful login.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="User ID (UUID)",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address",
    )
    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Password digest (argon2, legacy bcrypt)",
    )
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserStatus.OFFLINE.value,
        server_default=UserStatus.OFFLINE.value,
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    verification_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        comment="SHA-256 digest of the email verification token",
    )
    reset_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        comment="SHA-256 digest of the password reset token",
    )
    reset_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Timestamp of last successful login",
    )

    sessions: Mapped[list["UserSessionModel"]] = relationship(  # noqa: F821
        "UserSessionModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('online', 'offline', 'away')",
            name="ck_users_status",
        ),
    )

    def to_entity(self) -> User:
        """Convert to the domain entity, leaving out digests."""
        return User(
            id=self.id,
            email=self.email,
            username=self.username,
            display_name=self.display_name,
            avatar_url=self.avatar_url,
            bio=self.bio,
            status=UserStatus(self.status or UserStatus.OFFLINE.value),
            is_verified=bool(self.is_verified),
            created_at=self.created_at,
            updated_at=self.updated_at,
            last_login=self.last_login,
        )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
