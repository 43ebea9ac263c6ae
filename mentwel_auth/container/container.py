"""
Dependency injection container implementation.
Builds the service graph once from Settings and hands out the shared instances.
"""

from typing import Any, Dict, Optional, Type, TypeVar
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
import structlog

from ..core.config import Settings
from ..core.database import DatabaseHealthCheck, create_engine, create_session_factory, create_tables
from ..core.redis import RedisManager
from ..core.security import PasswordHasher, RateLimiter
from ..interfaces.messaging_interface import IMessageDispatcher
from ..interfaces.repository_interface import IAccountRepository
from ..interfaces.token_registry_interface import IRefreshTokenRegistry
from ..repositories.account_repository import AccountRepository
from ..services.auth.refresh_token_registry import RedisRefreshTokenRegistry
from ..services.auth.token_service import TokenIssuer
from ..services.auth.verification_flow import VerificationFlowController
from ..services.messaging.dispatcher import BestEffortDispatcher, create_message_dispatcher

logger = structlog.get_logger()

T = TypeVar('T')


class Container:
    """Dependency injection container."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._instances: Dict[str, Any] = {}
        self._redis_manager: Optional[RedisManager] = None
        self._owns_engine = False
        self._initialized = False

    def register_instance(self, interface: Type[T], instance: T) -> None:
        """
        Register a specific instance for an interface.

        Instances registered before ``initialize`` take precedence over the
        defaults built from settings.

        Args:
            interface: Interface type
            instance: Instance to register
        """
        key = interface.__name__
        self._instances[key] = instance
        logger.debug("Registered instance", interface=key, instance=type(instance).__name__)

    def has(self, interface: Type[Any]) -> bool:
        return interface.__name__ in self._instances

    def get(self, interface: Type[T]) -> T:
        """
        Get service instance by interface type.

        Raises:
            ValueError: If service is not registered
        """
        key = interface.__name__
        if key not in self._instances:
            raise ValueError(f"Service not registered: {key}")
        return self._instances[key]

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Build every service not already registered."""
        if self._initialized:
            return

        try:
            self.register_instance(Settings, self.settings)

            if not self.has(async_sessionmaker):
                engine = create_engine(self.settings)
                self._owns_engine = True
                self.register_instance(AsyncEngine, engine)
                if self.settings.DATABASE_CREATE_TABLES:
                    await create_tables(engine)
                self.register_instance(async_sessionmaker, create_session_factory(engine))

            if not self.has(Redis):
                self._redis_manager = RedisManager(self.settings)
                self.register_instance(Redis, await self._redis_manager.initialize())

            session_factory = self.get(async_sessionmaker)
            redis_client = self.get(Redis)

            if not self.has(IAccountRepository):
                self.register_instance(IAccountRepository, AccountRepository(session_factory))
            if not self.has(IRefreshTokenRegistry):
                self.register_instance(IRefreshTokenRegistry, RedisRefreshTokenRegistry(redis_client))
            if not self.has(IMessageDispatcher):
                self.register_instance(IMessageDispatcher, create_message_dispatcher(self.settings))

            self.register_instance(DatabaseHealthCheck, DatabaseHealthCheck(session_factory))
            self.register_instance(RateLimiter, RateLimiter(redis_client))
            self.register_instance(TokenIssuer, TokenIssuer(self.settings))
            self.register_instance(PasswordHasher, PasswordHasher(rounds=self.settings.BCRYPT_ROUNDS))
            self.register_instance(
                BestEffortDispatcher, BestEffortDispatcher(self.get(IMessageDispatcher))
            )
            self.register_instance(
                VerificationFlowController,
                VerificationFlowController(
                    settings=self.settings,
                    account_repository=self.get(IAccountRepository),
                    token_issuer=self.get(TokenIssuer),
                    token_registry=self.get(IRefreshTokenRegistry),
                    password_hasher=self.get(PasswordHasher),
                    dispatcher=self.get(BestEffortDispatcher),
                )
            )

            self._initialized = True
            logger.info("Dependency injection container initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize container", error=str(e))
            raise

    async def cleanup(self) -> None:
        """Drain background messages and release connections the container opened."""
        if self.has(BestEffortDispatcher):
            await self.get(BestEffortDispatcher).drain()

        if self._redis_manager:
            try:
                await self._redis_manager.close()
            except Exception as e:
                logger.error("Failed to close Redis", error=str(e))

        if self._owns_engine and self.has(AsyncEngine):
            await self.get(AsyncEngine).dispose()
            logger.info("Database engine disposed")

        self._initialized = False
        logger.info("Container cleanup completed")
