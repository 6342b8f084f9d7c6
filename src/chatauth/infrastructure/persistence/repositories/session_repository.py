"""Session store: refresh-token session operations.

Refresh tokens are passed in raw and stored as SHA-256 digests.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatauth.infrastructure.persistence.models import UserSessionModel
from chatauth.infrastructure.persistence.repositories.token_digest import hash_token


class SessionRepository:
    """Repository for refresh-token session database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    async def insert_session(
        self,
        user_id: str,
        refresh_token: str,
        expires_at: datetime,
        device_info: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> UserSessionModel:
        """Store a new session for a refresh token.

        Args:
            user_id: Owning user's ID.
            refresh_token: The raw refresh token.
            expires_at: When the session expires.
            device_info: Optional device descriptor.
            ip_address: Optional origin address.

        Returns:
            The stored session model.
        """
        model = UserSessionModel(
            user_id=user_id,
            refresh_token_hash=hash_token(refresh_token),
            expires_at=expires_at,
            device_info=device_info,
            ip_address=ip_address,
        )
        self._session.add(model)
        await self._session.flush()
        return model

    async def find_by_refresh_token(self, refresh_token: str) -> UserSessionModel | None:
        """Look up a session that has not expired yet.

        Args:
            refresh_token: The raw refresh token.

        Returns:
            The session if found and unexpired, None otherwise.
        """
        stmt = select(UserSessionModel).where(
            UserSessionModel.refresh_token_hash == hash_token(refresh_token),
            UserSessionModel.expires_at > datetime.now(timezone.utc),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active_for_user(self, user_id: str) -> list[UserSessionModel]:
        stmt = (
            select(UserSessionModel)
            .where(
                UserSessionModel.user_id == user_id,
                UserSessionModel.expires_at > datetime.now(timezone.utc),
            )
            .order_by(UserSessionModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete_by_refresh_token(self, refresh_token: str) -> bool:
        """Delete the session for a refresh token.

        Returns:
            True if a session was deleted, False if none matched.
        """
        stmt = (
            delete(UserSessionModel)
            .where(UserSessionModel.refresh_token_hash == hash_token(refresh_token))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_all_for_user(self, user_id: str) -> int:
        """Delete every session of a user.

        Returns:
            Number of sessions deleted.
        """
        stmt = (
            delete(UserSessionModel)
            .where(UserSessionModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def delete_expired(self) -> int:
        stmt = (
            delete(UserSessionModel)
            .where(UserSessionModel.expires_at <= datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount
