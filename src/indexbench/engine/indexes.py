"""
Index lifecycle management between trial groups.

A trial group only says something about plan selection if the collection
carries exactly the indexes the scenario asked for. ``clear_indexes`` resets a
collection to its ``_id`` index; ``ensure_index`` builds one candidate index and
waits until it is listed as ready before handing control back.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pymongo.errors import OperationFailure, PyMongoError

from ..errors import IndexOperationError
from .shapes import IndexSpec

if TYPE_CHECKING:
    from pymongo.asynchronous.collection import AsyncCollection

logger = logging.getLogger("indexbench.indexes")

PRIMARY_INDEX_NAME = "_id_"

# NamespaceNotFound, IndexNotFound
NOTHING_TO_DROP_CODES = frozenset({26, 27})


def _nothing_to_drop(error: OperationFailure) -> bool:
    if error.code in NOTHING_TO_DROP_CODES:
        return True
    message = str(error).lower()
    return "ns not found" in message or "index not found" in message


def _still_building(index_info: dict[str, Any]) -> bool:
    return "buildUUID" in index_info or "indexBuildInfo" in index_info


class IndexLifecycleManager:
    """
    Applies and removes index definitions on a collection.

    Args:
        settle_delay: Seconds to wait when readiness cannot be observed
        ready_timeout: Upper bound in seconds on readiness polling
        poll_interval: Seconds between readiness polls
    """

    def __init__(
        self,
        settle_delay: float = 0.5,
        ready_timeout: float = 10.0,
        poll_interval: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settle_delay = settle_delay
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    async def clear_indexes(self, collection: AsyncCollection) -> None:
        """Drop every index except ``_id_``; a missing collection is a no-op."""
        try:
            await collection.drop_indexes()
        except OperationFailure as e:
            if _nothing_to_drop(e):
                logger.debug(f"[INDEX] Nothing to drop on {collection.name}: {e}")
                return
            raise IndexOperationError(f"Failed to drop indexes on {collection.name}: {e}") from e
        except PyMongoError as e:
            raise IndexOperationError(f"Failed to drop indexes on {collection.name}: {e}") from e

        logger.info(f"[INDEX] Cleared secondary indexes on {collection.name}")

    async def list_secondary_indexes(self, collection: AsyncCollection) -> list[dict[str, Any]]:
        """Return the index documents of every index other than ``_id_``."""
        try:
            cursor = await collection.list_indexes()
            indexes = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise IndexOperationError(f"Failed to list indexes on {collection.name}: {e}") from e
        return [idx for idx in indexes if idx.get("name") != PRIMARY_INDEX_NAME]

    async def ensure_index(self, collection: AsyncCollection, spec: IndexSpec) -> str:
        """
        Create ``spec`` on ``collection`` and wait until it can be relied on.

        Args:
            collection: Target collection
            spec: Index key pattern

        Returns:
            Name of the index

        Raises:
            IndexOperationError: If the server rejects the index build
        """
        logger.info(f"[INDEX] Creating index {{{spec}}} on {collection.name}")
        try:
            name = await collection.create_index(spec.to_pymongo())
        except PyMongoError as e:
            logger.error(f"[INDEX] Index creation failed on {collection.name}: {e}")
            raise IndexOperationError(f"Failed to create index {{{spec}}} on {collection.name}: {e}") from e

        if await self.wait_until_ready(collection, name):
            logger.info(f"[INDEX] Index '{name}' ready on {collection.name}")
        else:
            logger.warning(
                f"[INDEX] Readiness of '{name}' not confirmed, settling for {self.settle_delay:.3f}s"
            )
            await self._sleep(self.settle_delay)
        return name

    async def wait_until_ready(self, collection: AsyncCollection, name: str) -> bool:
        """
        Poll ``listIndexes`` until ``name`` is present and not still building.

        Returns:
            True once the index is ready, False on timeout or when the server
            does not allow index introspection
        """
        deadline = self._clock() + self.ready_timeout
        while True:
            try:
                cursor = await collection.list_indexes()
                indexes = await cursor.to_list(length=None)
            except PyMongoError as e:
                logger.debug(f"[INDEX] Index introspection unavailable on {collection.name}: {e}")
                return False

            info = next((idx for idx in indexes if idx.get("name") == name), None)
            if info is not None and not _still_building(info):
                return True

            if self._clock() >= deadline:
                return False
            await self._sleep(self.poll_interval)
