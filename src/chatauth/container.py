"""Process-wide resources, built once at startup and closed at shutdown.

Example:
    container = Container.from_settings(get_settings())
    await container.startup()
    try:
        async with container.database.session() as session:
            service = container.identity_service(session)
            result = await service.login("alice", "Secret123!")
    finally:
        await container.shutdown()
"""

from sqlalchemy.ext.asyncio import AsyncSession

from chatauth.core.config import Settings
from chatauth.core.logging import get_logger
from chatauth.domain.services.identity_service import IdentityService
from chatauth.infrastructure.auth.password_hasher import PasswordHasher
from chatauth.infrastructure.auth.token_issuer import TokenIssuer
from chatauth.infrastructure.cache.redis_cache import CacheManager
from chatauth.infrastructure.persistence.database import DatabaseManager
from chatauth.infrastructure.persistence.repositories import SessionRepository, UserRepository
from chatauth.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)


class Container:
    """Owns the database and cache handles and the stateless collaborators."""

    def __init__(
        self,
        settings: Settings,
        database: DatabaseManager,
        cache: CacheManager,
        token_issuer: TokenIssuer,
        hasher: PasswordHasher,
        email_service: EmailService,
    ) -> None:
        self.settings = settings
        self.database = database
        self.cache = cache
        self.token_issuer = token_issuer
        self.hasher = hasher
        self.email_service = email_service

    @classmethod
    def from_settings(cls, settings: Settings) -> "Container":
        return cls(
            settings=settings,
            database=DatabaseManager(settings.database_url, echo=settings.db_echo),
            cache=CacheManager(settings.redis_url),
            token_issuer=TokenIssuer.from_settings(settings),
            hasher=PasswordHasher(cost=settings.bcrypt_rounds),
            email_service=EmailService.from_settings(settings),
        )

    async def startup(self) -> None:
        """Check the database and connect to Redis.

        Raises:
            InfrastructureError: If either store is unreachable.
        """
        await self.database.check_connection()
        await self.cache.connect()
        logger.info("chatauth started", environment=self.settings.environment)

    async def shutdown(self) -> None:
        """Close the Redis client and dispose of the database engine."""
        try:
            await self.cache.close()
        finally:
            await self.database.disconnect()
        logger.info("Connections closed")

    def identity_service(self, session: AsyncSession) -> IdentityService:
        """Build an identity service bound to one database session."""
        return IdentityService(
            session=session,
            user_repo=UserRepository(session),
            session_repo=SessionRepository(session),
            token_issuer=self.token_issuer,
            hasher=self.hasher,
            email_service=self.email_service,
        )
