from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from capp_placement.controller import ExponentialBackoff, QueueShutDownError, WorkQueue


def test_duplicate_adds_collapse() -> None:
    async def scenario() -> list[str]:
        queue: WorkQueue[str] = WorkQueue()
        queue.add("a")
        queue.add("b")
        queue.add("a")
        assert len(queue) == 2
        return [await queue.get(), await queue.get()]

    assert asyncio.run(scenario()) == ["a", "b"]


def test_key_added_while_processing_is_requeued_after_done() -> None:
    async def scenario() -> tuple[int, int, str]:
        queue: WorkQueue[str] = WorkQueue()
        queue.add("a")
        key = await queue.get()
        queue.add("a")
        while_processing = len(queue)
        queue.done(key)
        after_done = len(queue)
        return while_processing, after_done, await queue.get()

    assert asyncio.run(scenario()) == (0, 1, "a")


def test_same_key_is_never_handed_out_twice_concurrently() -> None:
    async def scenario() -> int:
        queue: WorkQueue[str] = WorkQueue()
        active: set[str] = set()
        peak = 0
        handled = 0

        async def worker() -> None:
            nonlocal peak, handled
            while True:
                try:
                    key = await queue.get()
                except QueueShutDownError:
                    return
                assert key not in active
                active.add(key)
                peak = max(peak, len(active))
                await asyncio.sleep(0.001)
                active.discard(key)
                handled += 1
                queue.done(key)

        workers = [asyncio.create_task(worker()) for _ in range(4)]
        for _ in range(5):
            for key in ("a", "b", "c"):
                queue.add(key)
            await asyncio.sleep(0.002)
        await asyncio.sleep(0.01)
        queue.shutdown()
        await asyncio.gather(*workers)
        assert handled >= 3
        return peak

    assert asyncio.run(scenario()) <= 3


def test_add_after_delivers_once_delay_elapses() -> None:
    async def scenario() -> tuple[int, str]:
        queue: WorkQueue[str] = WorkQueue()
        queue.add_after("a", timedelta(milliseconds=20))
        before = len(queue)
        key = await asyncio.wait_for(queue.get(), timeout=1)
        return before, key

    assert asyncio.run(scenario()) == (0, "a")


def test_add_after_keeps_earliest_deadline() -> None:
    async def scenario() -> str:
        queue: WorkQueue[str] = WorkQueue()
        queue.add_after("a", 10.0)
        queue.add_after("a", 0.01)
        return await asyncio.wait_for(queue.get(), timeout=1)

    assert asyncio.run(scenario()) == "a"


def test_non_positive_delay_adds_immediately() -> None:
    async def scenario() -> int:
        queue: WorkQueue[str] = WorkQueue()
        queue.add_after("a", 0)
        return len(queue)

    assert asyncio.run(scenario()) == 1


def test_rate_limited_adds_back_off_until_forgotten() -> None:
    async def scenario() -> tuple[int, int]:
        queue: WorkQueue[str] = WorkQueue(backoff=ExponentialBackoff(base_delay=0.001))
        queue.add_rate_limited("a")
        queue.add_rate_limited("a")
        failures = queue.num_requeues("a")
        queue.forget("a")
        await asyncio.wait_for(queue.get(), timeout=1)
        return failures, queue.num_requeues("a")

    assert asyncio.run(scenario()) == (2, 0)


def test_shutdown_wakes_waiting_getters_and_drops_new_work() -> None:
    async def scenario() -> int:
        queue: WorkQueue[str] = WorkQueue()
        waiter = asyncio.create_task(queue.get())
        await asyncio.sleep(0)
        queue.shutdown()
        with pytest.raises(QueueShutDownError):
            await waiter
        queue.add("a")
        queue.add_after("b", 0.01)
        return len(queue)

    assert asyncio.run(scenario()) == 0
