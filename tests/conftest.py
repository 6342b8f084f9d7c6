"""Pytest configuration for all tests."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from chatauth.core.config import Settings, get_settings
from chatauth.domain.services.identity_service import IdentityService
from chatauth.infrastructure.auth.password_hasher import PasswordHasher
from chatauth.infrastructure.auth.token_issuer import TokenIssuer
from chatauth.infrastructure.persistence.database import DatabaseManager
from chatauth.infrastructure.persistence.repositories import SessionRepository, UserRepository
from chatauth.infrastructure.services.email_service import EmailService

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Make every test load settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings for tests, independent of the process environment."""
    return Settings(
        _env_file=None,
        environment="testing",
        database_url="sqlite+aiosqlite:///:memory:",
        redis_url="redis://localhost:6379/15",
        jwt_secret=ACCESS_SECRET,
        jwt_refresh_secret=REFRESH_SECRET,
        frontend_url="http://chat.test",
        bcrypt_rounds=1,
    )


@pytest.fixture
def token_issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Cheapest cost so hashing does not slow the suite down."""
    return PasswordHasher(cost=1)


@pytest.fixture
def email_service() -> AsyncMock:
    """Notifier double that reports every email as sent."""
    service = AsyncMock(spec=EmailService)
    service.send_verification_email.return_value = True
    service.send_password_reset_email.return_value = True
    service.send_welcome_email.return_value = True
    return service


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseManager, None]:
    """In-memory SQLite database with all tables created."""
    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await db.create_tables()
    yield db
    await db.drop_tables()
    await db.disconnect()


@pytest_asyncio.fixture
async def db_session(database: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture
def identity_service(
    db_session: AsyncSession,
    token_issuer: TokenIssuer,
    hasher: PasswordHasher,
    email_service: AsyncMock,
) -> IdentityService:
    """Identity service wired to the SQLite stores and the notifier double."""
    return IdentityService(
        session=db_session,
        user_repo=UserRepository(db_session),
        session_repo=SessionRepository(db_session),
        token_issuer=token_issuer,
        hasher=hasher,
        email_service=email_service,
    )
