"""Fixtures wiring the in-memory MongoDB fakes into the engine."""

from __future__ import annotations

import pytest

from fakes import FakeClient, FakeDatabase, make_products
from indexbench.config.settings import Settings
from indexbench.engine.indexes import IndexLifecycleManager
from indexbench.engine.orchestrator import ScenarioOrchestrator
from indexbench.storage.gateway import Endpoint, StorageGateway


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        mongodb_uri="mongodb://fake:27017",
        mongodb_database="bench",
    )


@pytest.fixture
def endpoint(settings: Settings) -> Endpoint:
    return settings.endpoint()


@pytest.fixture
def fake_database() -> FakeDatabase:
    return FakeDatabase(
        "bench",
        {
            "products_1m": make_products(240),
            "products_10m": make_products(480),
        },
    )


@pytest.fixture
def fake_client(fake_database: FakeDatabase) -> FakeClient:
    return FakeClient(databases={"bench": fake_database})


@pytest.fixture
def gateway(fake_client: FakeClient) -> StorageGateway:
    return StorageGateway(client_factory=lambda uri: fake_client)


@pytest.fixture
def instant_index_manager() -> IndexLifecycleManager:
    """Index manager whose sleeps return immediately."""

    async def no_sleep(seconds: float) -> None:
        return None

    return IndexLifecycleManager(settle_delay=0.5, ready_timeout=1.0, poll_interval=0.1, sleep=no_sleep)


@pytest.fixture
def orchestrator(
    gateway: StorageGateway,
    settings: Settings,
    instant_index_manager: IndexLifecycleManager,
) -> ScenarioOrchestrator:
    return ScenarioOrchestrator(gateway=gateway, settings=settings, indexes=instant_index_manager)
