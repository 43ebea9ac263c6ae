"""
Tests for the dependency injection container.
"""
import pytest
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import async_sessionmaker

from mentwel_auth.container import Container
from mentwel_auth.core.config import Settings
from mentwel_auth.interfaces import IAccountRepository, IMessageDispatcher, IRefreshTokenRegistry
from mentwel_auth.services.auth.verification_flow import VerificationFlowController
from mentwel_auth.services.messaging.dispatcher import BestEffortDispatcher

pytestmark = pytest.mark.unit


class TestContainer:

    def test_get_unregistered_raises(self, test_settings):
        container = Container(test_settings)

        with pytest.raises(ValueError, match="Service not registered"):
            container.get(VerificationFlowController)

    @pytest.mark.asyncio
    async def test_initialize_keeps_injected_instances(self, container, redis_client, session_factory, recording_dispatcher):
        assert container.initialized
        assert container.get(Redis) is redis_client
        assert container.get(async_sessionmaker) is session_factory
        assert container.get(IMessageDispatcher) is recording_dispatcher
        assert container.get(BestEffortDispatcher).transport is recording_dispatcher

    @pytest.mark.asyncio
    async def test_services_satisfy_their_protocols(self, container):
        assert isinstance(container.get(IAccountRepository), IAccountRepository)
        assert isinstance(container.get(IRefreshTokenRegistry), IRefreshTokenRegistry)
        assert isinstance(container.get(IMessageDispatcher), IMessageDispatcher)
        assert isinstance(container.get(Settings), Settings)

    @pytest.mark.asyncio
    async def test_controller_is_shared(self, container):
        assert container.get(VerificationFlowController) is container.get(VerificationFlowController)
