"""
Integration test configuration.

Provides fixtures for integration tests that require a MongoDB connection.
The fixtures seed a throwaway database and drop it afterwards.
"""

import os

import pytest
from pymongo import AsyncMongoClient

from fakes import make_products
from indexbench.config import Settings
from indexbench.engine.orchestrator import ScenarioOrchestrator
from indexbench.storage import StorageGateway

TEST_DATABASE = "indexbench_integration"


@pytest.fixture
def skip_if_no_mongodb():
    """Skip test if MongoDB connection not available."""
    if not os.getenv("MONGODB_URI"):
        pytest.skip("MONGODB_URI not set - skipping integration test")


@pytest.fixture
def live_settings(skip_if_no_mongodb) -> Settings:
    return Settings(
        mongodb_database=TEST_DATABASE,
        index_settle_delay_ms=200,
        index_ready_timeout_ms=5000,
    )


@pytest.fixture
async def seeded(live_settings):
    """
    Seed both benchmark collections with product documents.

    Yields:
        The settings pointing at the seeded database
    """
    client = AsyncMongoClient(live_settings.mongodb_uri.get_secret_value())
    db = client[TEST_DATABASE]
    await db[live_settings.small_collection].insert_many(make_products(2000))
    await db[live_settings.large_collection].insert_many(make_products(4000))
    try:
        yield live_settings
    finally:
        await client.drop_database(TEST_DATABASE)
        await client.close()


@pytest.fixture
async def live_orchestrator(seeded):
    """Orchestrator bound to the seeded database."""
    gateway = StorageGateway(server_selection_timeout_ms=seeded.server_selection_timeout_ms)
    orchestrator = ScenarioOrchestrator(gateway=gateway, settings=seeded)
    yield orchestrator
    await gateway.close()
