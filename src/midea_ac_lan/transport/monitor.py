"""Cancellable periodic keep-alive job."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from midea_ac_lan.const import MIDEA_MONITOR_DELAY, MIDEA_MONITOR_PERIOD
from midea_ac_lan.correlation import correlation_context
from midea_ac_lan.logging_abstraction import get_logger

logger = get_logger(__name__)


class MonitorJob:
    """Runs ``tick`` after ``delay`` seconds and then every ``period`` seconds.

    Cancellation is cooperative. A job waiting for its next tick stops at
    once; a job in the middle of a tick lets that tick finish and then
    stops. This also covers a job cancelled from inside its own tick.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[None]],
        delay: float = MIDEA_MONITOR_DELAY,
        period: float = MIDEA_MONITOR_PERIOD,
        name: str = "midea-monitor",
    ) -> None:
        self.delay = delay
        self.period = period
        self.name = name
        self._tick = tick
        self._task: asyncio.Task[None] | None = None
        self._stop_requested = False
        self._in_tick = False
        self.ticks = 0

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._task

    @property
    def in_tick(self) -> bool:
        return self._in_tick

    @property
    def cancelled(self) -> bool:
        return self._stop_requested

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        """Request the job to stop. Never interrupts a tick in progress."""
        self._stop_requested = True
        if self._task is not None and not self._in_tick and not self._task.done():
            _ = self._task.cancel()

    async def wait(self) -> None:
        """Wait until the job has stopped."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        while not self._stop_requested:
            self._in_tick = True
            try:
                with correlation_context():
                    await self._tick()
            except Exception:
                logger.exception("Monitor tick failed", extra={"job": self.name, "tick": self.ticks})
            finally:
                self._in_tick = False
                self.ticks += 1
            if self._stop_requested:
                break
            await asyncio.sleep(self.period)
        logger.debug("Monitor job stopped", extra={"job": self.name, "ticks": self.ticks})

    def __repr__(self) -> str:
        state = "in_tick" if self._in_tick else ("running" if self.running else "stopped")
        return f"MonitorJob({self.name}, delay={self.delay}, period={self.period}, {state})"
