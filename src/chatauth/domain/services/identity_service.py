"""Identity workflows: registration, verification, login and password reset.

Each public method is one unit of work against the bound database session:
it commits on success and rolls back on any error. Emails are sent after the
commit and never fail the operation.
"""

import asyncio
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Awaitable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatauth.core.exceptions import (
    ChatAuthError,
    ConflictError,
    InfrastructureError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from chatauth.core.logging import get_logger, mask_email
from chatauth.domain.entities.session import Session
from chatauth.domain.entities.tokens import AccessClaims, LoginResult, TokenPair
from chatauth.domain.entities.user import User, UserStatus
from chatauth.infrastructure.auth.password_hasher import PasswordHasher
from chatauth.infrastructure.auth.token_issuer import TokenIssuer
from chatauth.infrastructure.persistence.models import UserModel
from chatauth.infrastructure.persistence.repositories.session_repository import (
    SessionRepository,
)
from chatauth.infrastructure.persistence.repositories.user_repository import UserRepository
from chatauth.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_token() -> str:
    """Generate an unguessable single-use token for email links."""
    return secrets.token_urlsafe(32)


class IdentityService:
    """Orchestrates the credential and session lifecycle of chat users."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        session_repo: SessionRepository,
        token_issuer: TokenIssuer,
        hasher: PasswordHasher,
        email_service: EmailService,
    ) -> None:
        """Initialize the identity service.

        Args:
            session: SQLAlchemy async session for this unit of work.
            user_repo: Credential store.
            session_repo: Session store.
            token_issuer: Signs and verifies access/refresh tokens.
            hasher: Password hashing capability.
            email_service: Notifier for account emails.
        """
        self.session = session
        self.user_repo = user_repo
        self.session_repo = session_repo
        self.token_issuer = token_issuer
        self.hasher = hasher
        self.email_service = email_service

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[None]:
        try:
            yield
            await self.session.commit()
        except ChatAuthError:
            await self.session.rollback()
            raise
        except (SQLAlchemyError, OSError) as e:
            await self.session.rollback()
            logger.error("Store operation failed", error=str(e))
            raise InfrastructureError("Store operation failed") from e

    async def _notify(self, send: Awaitable[bool], kind: str, user_id: str) -> None:
        try:
            sent = await send
        except Exception as e:
            logger.error("Notification failed", kind=kind, user_id=user_id, error=str(e))
            return
        if not sent:
            logger.warning("Notification not delivered", kind=kind, user_id=user_id)

    def _session_expiry(self) -> datetime:
        return datetime.now(timezone.utc) + self.token_issuer.refresh_ttl

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        display_name: str | None = None,
    ) -> User:
        """Create an unverified user and send the verification email.

        Args:
            email: Email address; stored lower-cased.
            username: Username.
            password: Plaintext password.
            display_name: Optional display name, defaults to the username.

        Returns:
            The new user, carrying the raw verification token.

        Raises:
            ConflictError: If the email or username is already taken.
            InfrastructureError: If the store fails.
        """
        email = normalize_email(email)
        username = username.strip()
        verification_token = generate_token()

        async with self._unit_of_work():
            if await self.user_repo.email_exists(email):
                raise ConflictError("Email is already registered", field="email")
            if await self.user_repo.username_exists(username):
                raise ConflictError("Username is already taken", field="username")

            password_hash = await asyncio.to_thread(self.hasher.hash, password)
            model = await self.user_repo.insert_user(
                email=email,
                username=username,
                password_hash=password_hash,
                verification_token=verification_token,
                display_name=display_name,
            )
            user = model.to_entity()

        user.verification_token = verification_token
        logger.info("User registered", user_id=user.id, email=mask_email(email))

        await self._notify(
            self.email_service.send_verification_email(user.email, user.username, verification_token),
            kind="verification",
            user_id=user.id,
        )
        return user

    async def verify_email(self, token: str) -> bool:
        """Consume a verification token.

        Returns:
            True the first time a valid token is used, False otherwise.
        """
        if not token:
            return False

        async with self._unit_of_work():
            model = await self.user_repo.find_by_verification_token(token)
            verified = model is not None and await self.user_repo.mark_verified(token)

        if not verified:
            logger.info("Email verification failed: token invalid or already used")
            return False

        logger.info("Email verified successfully", user_id=model.id)
        await self._notify(
            self.email_service.send_welcome_email(model.email, model.username),
            kind="welcome",
            user_id=model.id,
        )
        return True

    async def _find_login_user(self, identifier: str) -> UserModel | None:
        if "@" in identifier:
            return await self.user_repo.find_by_email(
                normalize_email(identifier)
            ) or await self.user_repo.find_by_username(identifier)
        return await self.user_repo.find_by_username(
            identifier
        ) or await self.user_repo.find_by_email(normalize_email(identifier))

    async def login(
        self,
        email_or_username: str,
        password: str,
        device_info: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> LoginResult:
        """Check credentials and open a new session.

        Email verification is not required to log in.

        Raises:
            InvalidCredentialsError: If the user is unknown or the password is
                wrong; the error does not say which.
            InfrastructureError: If the store fails.
        """
        identifier = email_or_username.strip()

        async with self._unit_of_work():
            model = await self._find_login_user(identifier)
            if model is None:
                await asyncio.to_thread(self.hasher.verify_dummy, password)
                logger.warning("Login failed", identifier=mask_email(identifier))
                raise InvalidCredentialsError()

            valid = await asyncio.to_thread(self.hasher.verify, password, model.password_hash)
            if not valid:
                logger.warning("Login failed", identifier=mask_email(identifier))
                raise InvalidCredentialsError()

            if self.hasher.needs_rehash(model.password_hash):
                upgraded = await asyncio.to_thread(self.hasher.hash, password)
                await self.user_repo.update_password_digest(model.id, upgraded)
                logger.info("Password digest upgraded", user_id=model.id)

            await self.user_repo.touch_last_login(model.id)
            model = await self.user_repo.find_by_id(model.id)
            user = model.to_entity()

            tokens = self.token_issuer.issue_token_pair(AccessClaims.for_user(user))
            await self.session_repo.insert_session(
                user_id=user.id,
                refresh_token=tokens.refresh_token,
                expires_at=self._session_expiry(),
                device_info=device_info,
                ip_address=ip_address,
            )

        logger.info("User logged in", user_id=user.id)
        return LoginResult(user=user, tokens=tokens)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new token pair.

        The presented token's session is replaced, so the same refresh token
        cannot be used twice.

        Raises:
            InvalidTokenError: If the token is invalid, expired, already
                rotated or revoked, or its user no longer exists.
        """
        self.token_issuer.verify_refresh_token(refresh_token)

        async with self._unit_of_work():
            current = await self.session_repo.find_by_refresh_token(refresh_token)
            if current is None:
                raise InvalidTokenError("Refresh token is not recognised or has expired")
            device_info, ip_address = current.device_info, current.ip_address

            model = await self.user_repo.find_by_id(current.user_id)
            if model is None:
                raise InvalidTokenError("Refresh token is not recognised or has expired")
            user = model.to_entity()

            if not await self.session_repo.delete_by_refresh_token(refresh_token):
                raise InvalidTokenError("Refresh token has already been used")

            tokens = self.token_issuer.issue_token_pair(AccessClaims.for_user(user))
            await self.session_repo.insert_session(
                user_id=user.id,
                refresh_token=tokens.refresh_token,
                expires_at=self._session_expiry(),
                device_info=device_info,
                ip_address=ip_address,
            )

        logger.info("Session refreshed", user_id=user.id)
        return tokens

    async def request_password_reset(self, email: str) -> None:
        """Send a password reset link if the email is registered.

        Returns the same way whether or not the email exists.
        """
        email = normalize_email(email)
        token = generate_token()

        async with self._unit_of_work():
            model = await self.user_repo.find_by_email(email)
            if model is not None:
                await self.user_repo.set_reset_token(
                    email, token, datetime.now(timezone.utc) + RESET_TOKEN_TTL
                )

        if model is None:
            logger.info("Password reset requested for unknown email", email=mask_email(email))
            return None

        logger.info("Password reset requested", user_id=model.id)
        await self._notify(
            self.email_service.send_password_reset_email(model.email, model.username, token),
            kind="password_reset",
            user_id=model.id,
        )
        return None

    async def reset_password(self, token: str, new_password: str) -> bool:
        """Set a new password and sign the user out everywhere.

        Raises:
            InvalidTokenError: If the reset token is unknown, used or expired.
        """
        if not token:
            raise InvalidTokenError("Reset token is required")

        async with self._unit_of_work():
            model = await self.user_repo.find_by_reset_token(token)
            if model is None:
                raise InvalidTokenError("Reset token is invalid or has expired")

            if not await self.user_repo.clear_reset_token(model.id, token):
                raise InvalidTokenError("Reset token has already been used")

            password_hash = await asyncio.to_thread(self.hasher.hash, new_password)
            await self.user_repo.update_password_digest(model.id, password_hash)
            revoked = await self.session_repo.delete_all_for_user(model.id)

        logger.info("Password reset successfully", user_id=model.id, sessions_revoked=revoked)
        return True

    async def logout(self, refresh_token: str) -> bool:
        """End the session of one refresh token.

        Returns:
            True if a session was ended, False if none matched.
        """
        async with self._unit_of_work():
            deleted = await self.session_repo.delete_by_refresh_token(refresh_token)
        if deleted:
            logger.info("User logged out")
        return deleted

    async def logout_all_devices(self, user_id: str) -> bool:
        """End every session of a user.

        Returns:
            True if at least one session was ended.
        """
        async with self._unit_of_work():
            count = await self.session_repo.delete_all_for_user(user_id)
        logger.info("User logged out from all devices", user_id=user_id, sessions_revoked=count)
        return count > 0

    async def list_sessions(self, user_id: str) -> list[Session]:
        """List the devices a user is signed in on, newest first."""
        async with self._unit_of_work():
            models = await self.session_repo.list_active_for_user(user_id)
        now = datetime.now(timezone.utc)
        return [s for s in (m.to_entity() for m in models) if s.is_valid(now)]

    async def get_user(self, user_id: str) -> User | None:
        async with self._unit_of_work():
            model = await self.user_repo.find_by_id(user_id)
        return model.to_entity() if model is not None else None

    def authenticate(self, authorization_header: str | None) -> AccessClaims:
        """Resolve the caller from an ``Authorization`` header.

        Raises:
            InvalidTokenError: If the header has no bearer token or the
                access token is invalid or expired.
        """
        token = self.token_issuer.extract_bearer_token(authorization_header)
        if token is None:
            raise InvalidTokenError("Missing bearer token")
        return self.token_issuer.verify_access_token(token)

    async def update_status(self, user_id: str, status: UserStatus | str) -> bool:
        """Set a user's presence status.

        Raises:
            ValueError: If ``status`` is not online, offline or away.
        """
        status = UserStatus(status)
        async with self._unit_of_work():
            updated = await self.user_repo.update_status(user_id, status)
        return updated
