from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Protocol

from ipmonitor.core.errors import WriteFailure
from ipmonitor.models.record import Record

logger = logging.getLogger(__name__)


class Collector(Protocol):
    def collect(self) -> Record:
        ...


class Store(Protocol):
    def append(self, record: Record) -> Record:
        ...


class CheckScheduler:
    """Runs a check right away and then once per interval, one check at a time.

    A check that overruns the interval does not pile up work: the missed ticks
    collapse into a single immediate check, after which the loop goes back to
    its original tick grid.
    """

    def __init__(
        self,
        collector: Collector,
        store: Store,
        *,
        interval_seconds: float = 30.0,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._collector = collector
        self._store = store
        self._interval_seconds = interval_seconds
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._running = False

    async def step(self) -> Optional[Record]:
        """Run one check and persist its record; returns the stored record, if any."""

        logger.info("Performing network check...")
        try:
            record = await asyncio.to_thread(self._collector.collect)
        except Exception:  # pragma: no cover - collect() does not raise
            logger.exception("Network check failed")
            return None

        try:
            stored = await asyncio.to_thread(self._store.append, record)
        except WriteFailure:
            logger.exception("Failed to save record to database")
            return None
        except Exception:
            logger.exception("Network check failed")
            return None

        logger.info("Saved record %s (error=%r)", stored.id, stored.error)
        return stored

    async def run_forever(self) -> None:
        self._running = True
        logger.info("Checking network status every %gs", self._interval_seconds)
        next_tick = self._clock()
        while self._running:
            await self.step()
            if not self._running:
                break
            next_tick = self._next_tick(next_tick, self._clock())
            delay = next_tick - self._clock()
            if delay > 0:
                await self._sleep(delay)

    def stop(self) -> None:
        self._running = False

    def _next_tick(self, previous_tick: float, now: float) -> float:
        tick = previous_tick + self._interval_seconds
        if tick > now:
            return tick
        missed = int((now - tick) // self._interval_seconds)
        if missed:
            logger.warning("Check overran its interval; skipping %d tick(s)", missed)
        return tick + missed * self._interval_seconds


def start_scheduler(scheduler: CheckScheduler) -> asyncio.Task:
    return asyncio.create_task(scheduler.run_forever())
