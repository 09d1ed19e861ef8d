import asyncio

import pytest

from tutorbackend.locks import AsyncKeyedLock, KeyedLock


def test_keyed_lock_forgets_keys_once_released():
    locks = KeyedLock()
    with locks.hold("a"):
        with locks.hold("b"):
            assert len(locks) == 2
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_async_lock_serializes_one_key():
    locks = AsyncKeyedLock()
    events = []

    async def worker(name):
        async with locks.hold("conv"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_async_lock_does_not_block_other_keys():
    locks = AsyncKeyedLock()
    release = asyncio.Event()
    entered_other = asyncio.Event()

    async def hold_first():
        async with locks.hold("one"):
            await release.wait()

    async def use_second():
        async with locks.hold("two"):
            entered_other.set()

    holder = asyncio.create_task(hold_first())
    await asyncio.sleep(0)
    await asyncio.wait_for(use_second(), timeout=1)

    assert entered_other.is_set()
    release.set()
    await holder
    assert len(locks) == 0
