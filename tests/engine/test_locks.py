"""Tests for per-collection locking."""

import asyncio

import pytest

from indexbench.engine.locks import CollectionLocks


@pytest.mark.asyncio
async def test_same_name_serializes() -> None:
    """Two holders of one name never overlap."""
    locks = CollectionLocks()
    trace: list[str] = []

    async def worker(tag: str) -> None:
        async with locks.hold("bench.products_1m"):
            trace.append(f"{tag}-start")
            await asyncio.sleep(0.01)
            trace.append(f"{tag}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert trace in (["a-start", "a-end", "b-start", "b-end"], ["b-start", "b-end", "a-start", "a-end"])


@pytest.mark.asyncio
async def test_different_names_run_concurrently() -> None:
    """Holding one collection does not block another."""
    locks = CollectionLocks()
    inside = asyncio.Event()
    release = asyncio.Event()

    async def hold_small() -> None:
        async with locks.hold("bench.products_1m"):
            inside.set()
            await release.wait()

    task = asyncio.create_task(hold_small())
    await inside.wait()

    assert locks.locked("bench.products_1m")
    async with locks.hold("bench.products_10m"):
        assert locks.locked("bench.products_10m")

    release.set()
    await task
    assert not locks.locked("bench.products_1m")


def test_unknown_name_is_unlocked() -> None:
    assert CollectionLocks().locked("bench.nothing") is False


@pytest.mark.asyncio
async def test_idle_locks_are_discarded() -> None:
    """Locks exist only while held or waited for."""
    locks = CollectionLocks()
    entered = asyncio.Event()
    release = asyncio.Event()

    async def holder() -> None:
        async with locks.hold("bench.adhoc"):
            entered.set()
            await release.wait()

    async def waiter() -> None:
        async with locks.hold("bench.adhoc"):
            pass

    first = asyncio.create_task(holder())
    await entered.wait()
    second = asyncio.create_task(waiter())
    await asyncio.sleep(0)
    assert locks.names() == ["bench.adhoc"]

    release.set()
    await asyncio.gather(first, second)

    assert locks.names() == []
    assert locks.locked("bench.adhoc") is False


@pytest.mark.asyncio
async def test_lock_discarded_after_error() -> None:
    locks = CollectionLocks()

    with pytest.raises(ValueError):
        async with locks.hold("bench.products_1m"):
            raise ValueError("leg failed")

    assert locks.names() == []
