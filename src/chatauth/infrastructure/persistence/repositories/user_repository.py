"""Credential store: user database operations.

Verification and reset tokens are passed in raw and stored as SHA-256
digests.
"""

from datetime import datetime, timezone

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chatauth.core.exceptions import ConflictError
from chatauth.domain.entities.user import UserStatus
from chatauth.infrastructure.persistence.models import UserModel
from chatauth.infrastructure.persistence.repositories.token_digest import hash_token


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def _update(self, user_id: str, **values: object) -> bool:
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def _get_one(self, *criteria) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel)
            .where(*criteria)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def insert_user(
        self,
        email: str,
        username: str,
        password_hash: str,
        verification_token: str,
        display_name: str | None = None,
    ) -> UserModel:
        """Create a new, unverified user.

        Args:
            email: Email address.
            username: Username.
            password_hash: Password digest.
            verification_token: Raw verification token; stored as a digest.
            display_name: Display name, defaults to the username.

        Returns:
            Created user model.

        Raises:
            ConflictError: If the email or username is already taken.
        """
        user = UserModel(
            email=email,
            username=username,
            password_hash=password_hash,
            display_name=display_name or username,
            verification_token=hash_token(verification_token),
            is_verified=False,
            status=UserStatus.OFFLINE.value,
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            message = str(e.orig).lower()
            field = "username" if "username" in message else "email" if "email" in message else None
            raise ConflictError(
                f"A user with this {field or 'email or username'} already exists",
                field=field,
            ) from e
        return user

    async def find_by_id(self, user_id: str) -> UserModel | None:
        return await self._get_one(UserModel.id == user_id)

    async def find_by_email(self, email: str) -> UserModel | None:
        return await self._get_one(UserModel.email == email)

    async def find_by_username(self, username: str) -> UserModel | None:
        return await self._get_one(UserModel.username == username)

    async def find_by_verification_token(self, token: str) -> UserModel | None:
        return await self._get_one(UserModel.verification_token == hash_token(token))

    async def find_by_reset_token(self, token: str) -> UserModel | None:
        """Find the user holding a reset token that has not expired yet."""
        return await self._get_one(
            UserModel.reset_token == hash_token(token),
            UserModel.reset_token_expires > datetime.now(timezone.utc),
        )

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(select(exists().where(UserModel.email == email)))
        return bool(result.scalar())

    async def username_exists(self, username: str) -> bool:
        result = await self.session.execute(
            select(exists().where(UserModel.username == username))
        )
        return bool(result.scalar())

    async def mark_verified(self, token: str) -> bool:
        """Verify the user holding ``token`` and clear the token.

        This is a single conditional UPDATE, so of two concurrent calls with
        the same token only one sees an affected row.

        Returns:
            True if a user was verified, False if no user holds the token.
        """
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.verification_token == hash_token(token))
            .values(is_verified=True, verification_token=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def update_password_digest(self, user_id: str, password_hash: str) -> bool:
        return await self._update(user_id, password_hash=password_hash)

    async def set_reset_token(self, email: str, token: str, expires_at: datetime) -> bool:
        """Store a reset token for the user with ``email``, replacing any previous one."""
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.email == email)
            .values(reset_token=hash_token(token), reset_token_expires=expires_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def clear_reset_token(self, user_id: str, token: str) -> bool:
        """Consume the reset token of a user if it is still the one stored.

        Like ``mark_verified`` this is a single conditional UPDATE, so of two
        concurrent resets with the same token only one sees an affected row.

        Returns:
            True if the token was consumed, False if it no longer matches.
        """
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.reset_token == hash_token(token))
            .values(reset_token=None, reset_token_expires=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def touch_last_login(self, user_id: str) -> bool:
        return await self._update(user_id, last_login=datetime.now(timezone.utc))

    async def update_status(self, user_id: str, status: UserStatus) -> bool:
        return await self._update(user_id, status=UserStatus(status).value)
