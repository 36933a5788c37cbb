"""Named mutual exclusion around shared collection and index state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger("indexbench.locks")


class CollectionLocks:
    """
    One ``asyncio.Lock`` per collection name.

    Index state is collection-global, so two scenarios against the same
    collection must not interleave. Scenarios against different collections
    still run concurrently.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def _lock_for(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    def names(self) -> list[str]:
        """Names currently held or waited for."""
        return list(self._locks)

    def locked(self, name: str) -> bool:
        lock = self._locks.get(name)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        """
        Hold the lock for ``name`` for the duration of the ``async with`` block.

        The lock is discarded once nobody holds or waits for it.
        """
        lock = self._lock_for(name)
        self._users[name] = self._users.get(name, 0) + 1
        if lock.locked():
            logger.info(f"[LOCK] Waiting for running benchmark on {name}")
        try:
            async with lock:
                yield
        finally:
            self._users[name] -= 1
            if not self._users[name]:
                del self._users[name]
                del self._locks[name]
