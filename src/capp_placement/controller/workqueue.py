"""Asyncio work queue with per-key serialization and delayed re-adds.

A key is held at most once in the queue. While a worker processes a key,
adding it again only marks it dirty; ``done`` puts it back so the next pass
sees the latest state. Different keys are handed to workers concurrently.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Hashable
from datetime import timedelta
from logging import getLogger

from .backoff import ExponentialBackoff

log = getLogger(__name__)


class QueueShutDownError(RuntimeError):
    """Raised by ``get`` once the queue is shut down and drained of waiters."""


class WorkQueue[K: Hashable]:
    def __init__(self, *, backoff: ExponentialBackoff[K] | None = None) -> None:
        self._backoff: ExponentialBackoff[K] = backoff or ExponentialBackoff()
        self._queue: deque[K] = deque()
        self._dirty: set[K] = set()
        self._processing: set[K] = set()
        self._timers: dict[K, asyncio.TimerHandle] = {}
        self._wakeup = asyncio.Event()
        self._shutting_down = False

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def add(self, key: K) -> None:
        if self._shutting_down or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            return
        self._queue.append(key)
        self._wakeup.set()

    def add_after(self, key: K, delay: timedelta | float) -> None:
        seconds = delay.total_seconds() if isinstance(delay, timedelta) else float(delay)
        if self._shutting_down:
            return
        if seconds <= 0:
            self.add(key)
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + seconds
        pending = self._timers.get(key)
        if pending is not None:
            if pending.when() <= deadline:
                return
            pending.cancel()
        self._timers[key] = loop.call_at(deadline, self._fire, key)

    def add_rate_limited(self, key: K) -> None:
        delay = self._backoff.when(key)
        log.debug("Retrying %s in %.3fs (failure #%d)", key, delay, self._backoff.failures(key))
        self.add_after(key, delay)

    def forget(self, key: K) -> None:
        self._backoff.forget(key)

    def num_requeues(self, key: K) -> int:
        return self._backoff.failures(key)

    async def get(self) -> K:
        while not self._queue:
            if self._shutting_down:
                raise QueueShutDownError("work queue is shut down")
            self._wakeup.clear()
            await self._wakeup.wait()
        key = self._queue.popleft()
        self._processing.add(key)
        self._dirty.discard(key)
        return key

    def done(self, key: K) -> None:
        self._processing.discard(key)
        if key in self._dirty:
            self._queue.append(key)
            self._wakeup.set()

    def shutdown(self) -> None:
        self._shutting_down = True
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._wakeup.set()

    def _fire(self, key: K) -> None:
        self._timers.pop(key, None)
        self.add(key)
