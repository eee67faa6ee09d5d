"""
Test fixtures and configuration.
"""

import random
from typing import AsyncGenerator, Callable, List

import pytest
import pytest_asyncio

from signaleur.application.use_cases import ConnectionLifecycleManager, MessageRouter
from signaleur.config.settings import Settings
from signaleur.domain.services import ChannelIdGenerator
from signaleur.infrastructure.reporting import SystemReporter
from signaleur.infrastructure.websocket import ChannelRegistry
from tests.helpers import FakeConnection


@pytest.fixture
def reporter() -> SystemReporter:
    """Quiet reporter: only critical messages."""
    return SystemReporter(name="signaleur-test", verbose=0)


@pytest.fixture
def test_settings() -> Settings:
    """Settings for in-process servers (ephemeral port, no sweep)."""
    return Settings(
        ENV="test",
        host="127.0.0.1",
        port=8000,
        verbose=0,
        log_level="warning",
        unclaimed_channel_ttl=0,
        close_flush_timeout=0.5,
        METRICS_ENABLED=False,
    )


@pytest.fixture
def registry(reporter: SystemReporter) -> ChannelRegistry:
    return ChannelRegistry(reporter=reporter)


@pytest.fixture
def generator() -> ChannelIdGenerator:
    """Deterministic generator."""
    return ChannelIdGenerator(rng=random.Random(1234))


@pytest.fixture
def router(
    registry: ChannelRegistry,
    generator: ChannelIdGenerator,
    reporter: SystemReporter,
) -> MessageRouter:
    return MessageRouter(registry, generator, reporter=reporter)


@pytest.fixture
def lifecycle(
    registry: ChannelRegistry,
    router: MessageRouter,
    reporter: SystemReporter,
) -> ConnectionLifecycleManager:
    return ConnectionLifecycleManager(
        registry, router, reporter=reporter, close_flush_timeout=0.5
    )


@pytest_asyncio.fixture
async def make_connection() -> AsyncGenerator[Callable[..., FakeConnection], None]:
    """
    Factory for started FakeConnections.

    Every connection created through the factory is closed on teardown.
    """
    created: List[FakeConnection] = []

    def _make(remote_address: str = None, **kwargs) -> FakeConnection:
        address = remote_address or f"127.0.0.1:{5000 + len(created)}"
        connection = FakeConnection(remote_address=address, **kwargs)
        connection.start()
        created.append(connection)
        return connection

    yield _make

    for connection in created:
        await connection.close(flush=False)
