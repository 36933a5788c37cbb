"""
Storage gateway: owns the MongoDB client used by the benchmark engine.

The endpoint is passed explicitly on every call. The gateway keeps a single
client for the most recently requested URI and swaps it out when a different
URI arrives, so callers can retarget a running process without restarting it.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from ..errors import StoreConnectionError

if TYPE_CHECKING:
    from pymongo.asynchronous.database import AsyncDatabase

logger = logging.getLogger("indexbench.gateway")

_CREDENTIALS_RE = re.compile(r"(?<=://)[^@/]+@")


@dataclass(frozen=True)
class Endpoint:
    """Target data store: connection URI plus database name."""

    uri: str
    database: str

    def redacted(self) -> str:
        """URI with any user:password section masked, safe for logs."""
        return _CREDENTIALS_RE.sub("***@", self.uri)


def default_client_factory(uri: str, server_selection_timeout_ms: int = 5000) -> AsyncMongoClient:
    """Build an async client without connecting."""
    return AsyncMongoClient(uri, serverSelectionTimeoutMS=server_selection_timeout_ms)


class StorageGateway:
    """
    Lazily connected, endpoint-aware MongoDB client holder.

    Example:
        ```python
        gateway = StorageGateway()
        db = await gateway.acquire(Endpoint("mongodb://localhost:27017", "bench"))
        count = await db["products_1m"].count_documents({})
        await gateway.close()
        ```
    """

    def __init__(
        self,
        client_factory: Callable[[str], Any] | None = None,
        server_selection_timeout_ms: int = 5000,
    ):
        """
        Initialize the gateway.

        Args:
            client_factory: Callable building a client from a URI (defaults to AsyncMongoClient)
            server_selection_timeout_ms: Timeout passed to the default client factory
        """
        if client_factory is None:

            def client_factory(uri: str) -> AsyncMongoClient:
                return default_client_factory(uri, server_selection_timeout_ms)

        self._client_factory = client_factory
        self._client: Any | None = None
        self._uri: str | None = None
        self._leases = 0
        self._state = asyncio.Condition()

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def leases(self) -> int:
        return self._leases

    async def acquire(self, endpoint: Endpoint) -> AsyncDatabase:
        """
        Return a database handle for ``endpoint``, connecting if needed.

        Switching to a different URI waits until every outstanding lease on
        the current client has been returned.

        Raises:
            StoreConnectionError: If a new connection cannot be established
        """
        async with self._state:
            return await self._acquire_locked(endpoint)

    @asynccontextmanager
    async def lease(self, endpoint: Endpoint) -> AsyncIterator[AsyncDatabase]:
        """
        Hold the client for ``endpoint`` for the duration of the block.

        The client is not closed or swapped for another URI while any lease
        on it is outstanding.
        """
        async with self._state:
            database = await self._acquire_locked(endpoint)
            self._leases += 1
        try:
            yield database
        finally:
            async with self._state:
                self._leases -= 1
                self._state.notify_all()

    async def close(self) -> None:
        """Release the cached client once no lease is outstanding."""
        async with self._state:
            await self._state.wait_for(lambda: self._leases == 0)
            await self._release()

    async def _acquire_locked(self, endpoint: Endpoint) -> AsyncDatabase:
        if self._uri is not None and self._uri != endpoint.uri and self._leases:
            logger.info(f"[GATEWAY] Waiting for {self._leases} lease(s) before switching to {endpoint.redacted()}")
            await self._state.wait_for(lambda: self._leases == 0 or self._uri in (None, endpoint.uri))

        if self._uri is not None and self._uri != endpoint.uri:
            logger.info(f"[GATEWAY] Endpoint changed, reconnecting to {endpoint.redacted()}")
            await self._release()

        if self._client is None:
            await self._connect(endpoint)

        return self._client[endpoint.database]

    async def _connect(self, endpoint: Endpoint) -> None:
        client = None
        try:
            client = self._client_factory(endpoint.uri)
            await client.admin.command("ping")
        except PyMongoError as e:
            logger.error(f"[GATEWAY] Connection to {endpoint.redacted()} failed: {e}")
            self._client = None
            self._uri = None
            if client is not None:
                await self._close_quietly(client)
            raise StoreConnectionError(f"Could not connect to {endpoint.redacted()}: {e}") from e

        self._client = client
        self._uri = endpoint.uri
        logger.info(f"[GATEWAY] Connected to {endpoint.redacted()}")

    async def _release(self) -> None:
        client = self._client
        self._client = None
        self._uri = None
        if client is not None:
            await self._close_quietly(client)

    @staticmethod
    async def _close_quietly(client: Any) -> None:
        # A failed close must never block the next connection attempt.
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"[GATEWAY] Error closing old client: {e}")
