"""
Pytest configuration and fixtures for auth service testing.
Provides database, Redis, dispatcher and application fixtures with proper cleanup.
"""
import re
from typing import AsyncGenerator, List, Optional

import fakeredis
import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import async_sessionmaker

from mentwel_auth.container import Container
from mentwel_auth.core.config import Settings
from mentwel_auth.core.database import create_engine, create_session_factory, create_tables
from mentwel_auth.interfaces.messaging_interface import IMessageDispatcher
from mentwel_auth.main import create_app
from mentwel_auth.repositories.account_repository import AccountRepository
from mentwel_auth.services.auth.refresh_token_registry import RedisRefreshTokenRegistry
from mentwel_auth.services.auth.token_service import TokenIssuer
from mentwel_auth.services.auth.verification_flow import VerificationFlowController
from mentwel_auth.services.messaging.dispatcher import BestEffortDispatcher

TEST_SECRET_KEY = "k7Qm2vX9pL4rT8wZ1nB6cJ3hF5dG0sYa"
CLIENT_URL = "http://client.test"

VERIFY_LINK_RE = re.compile(r"/verify-email/([0-9a-f-]{36})")
RESET_LINK_RE = re.compile(r"reset-password\?token=([0-9a-f-]{36})")


class RecordingDispatcher:
    """In-memory transport that records every message it is asked to send."""

    def __init__(self):
        self.sent: List[dict] = []
        self.succeed = True
        self.raise_error: Optional[Exception] = None

    async def send(self, to, subject, html_body, text_body=None) -> bool:
        if self.raise_error is not None:
            raise self.raise_error
        if self.succeed:
            self.sent.append(
                {"to": to, "subject": subject, "html_body": html_body, "text_body": text_body}
            )
        return self.succeed

    def messages_to(self, address: str) -> List[dict]:
        return [m for m in self.sent if m["to"] == address]

    def last_verification_token(self, address: str) -> str:
        for message in reversed(self.messages_to(address)):
            match = VERIFY_LINK_RE.search(message["text_body"] or "")
            if match:
                return match.group(1)
        raise AssertionError(f"No verification message sent to {address}")

    def last_reset_token(self, address: str) -> str:
        for message in reversed(self.messages_to(address)):
            match = RESET_LINK_RE.search(message["text_body"] or "")
            if match:
                return match.group(1)
        raise AssertionError(f"No reset message sent to {address}")


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "SECRET_KEY": TEST_SECRET_KEY,
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path}/test.db",
        "REDIS_URL": "redis://localhost:6379/15",
        "ENVIRONMENT": "test",
        "DEBUG": False,
        "BCRYPT_ROUNDS": 4,
        "CLIENT_URL": CLIENT_URL,
        "REQUIRE_EMAIL_VERIFICATION": True,
        "RATE_LIMIT_ENABLED": True,
        "REGISTRATION_RATE_LIMIT_PER_HOUR": 20,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def test_engine(test_settings):
    """File-backed SQLite so each session gets its own connection."""
    engine = create_engine(test_settings)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def redis_client() -> AsyncGenerator[Redis, None]:
    client = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def recording_dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def account_repository(session_factory) -> AccountRepository:
    return AccountRepository(session_factory)


@pytest.fixture
def token_registry(redis_client) -> RedisRefreshTokenRegistry:
    return RedisRefreshTokenRegistry(redis_client)


@pytest.fixture
def token_issuer(test_settings) -> TokenIssuer:
    return TokenIssuer(test_settings)


@pytest_asyncio.fixture
async def container(test_settings, session_factory, redis_client, recording_dispatcher):
    """Container wired to the test database, fake Redis and recording transport."""
    container = Container(test_settings)
    container.register_instance(async_sessionmaker, session_factory)
    container.register_instance(Redis, redis_client)
    container.register_instance(IMessageDispatcher, recording_dispatcher)
    await container.initialize()
    yield container
    await container.cleanup()


@pytest.fixture
def flow_controller(container) -> VerificationFlowController:
    return container.get(VerificationFlowController)


@pytest.fixture
def best_effort_dispatcher(container) -> BestEffortDispatcher:
    return container.get(BestEffortDispatcher)


@pytest.fixture
def app(test_settings, container):
    return create_app(test_settings, container)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app without a network round trip."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
