from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickContext:
    """Timing handed to the tick callback.

    Attributes:
    - delta_time: ms since the previous tick started (0 on the first tick)
    - elapsed_time: ms since the ticker started
    - tick: 0-based tick index
    """

    delta_time: float
    elapsed_time: float
    tick: int = 0


OnTick = Callable[[TickContext], Union[Awaitable[Any], Any]]


class TickerError(Exception):
    """Raised when the ticker is misused (e.g. started twice)."""

    pass


class Ticker:
    """Fixed-rate scheduler calling a tick callback until stopped.

    - Runs one tick at a time; the callback (sync or async) completes before
      the next deadline is awaited
    - Deadlines advance by one interval from the previous deadline, so sleep
      jitter does not accumulate
    - A tick that overruns its slot pushes the next deadline to its own
      completion time; missed ticks are not replayed
    """

    def __init__(self, fps: float):
        if fps <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")
        self._fps = float(fps)
        self._interval = 1.0 / self._fps
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self.tick_count = 0
        self.overrun_count = 0

    @property
    def fps(self) -> float:
        return self._fps

    @property
    def interval(self) -> float:
        """Tick interval in seconds."""
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, on_tick: OnTick) -> asyncio.Task:
        """Start the tick loop on the running event loop."""
        if self._task is not None:
            raise TickerError("Ticker already started")
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(on_tick))
        logger.info(f"Ticker started at {self._fps:g} fps")
        return self._task

    def request_stop(self) -> None:
        """Ask the loop to stop after the current tick. Safe from signal handlers."""
        if self._stop_event is not None:
            self._stop_event.set()

    async def stop(self) -> None:
        """Stop the loop and wait for the in-flight tick to complete.

        No tick callback runs after this returns. Called from inside a tick
        it only requests the stop.
        """
        if self._task is None:
            return
        self.request_stop()
        if asyncio.current_task() is self._task:
            return
        await self.wait()

    async def wait(self) -> None:
        """Wait for the tick loop to finish; re-raises a callback failure."""
        if self._task is not None:
            await self._task

    async def _sleep_until(self, deadline: float) -> bool:
        """Wait for the deadline or a stop request. Returns True if stop was requested."""
        assert self._stop_event is not None
        delay = deadline - time.perf_counter()
        if delay > 0:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        return self._stop_event.is_set()

    async def _run(self, on_tick: OnTick) -> None:
        assert self._stop_event is not None
        start = time.perf_counter()
        prev_tick = start
        next_deadline = start
        try:
            while not await self._sleep_until(next_deadline):
                now = time.perf_counter()
                ctx = TickContext(
                    delta_time=(now - prev_tick) * 1000.0 if self.tick_count else 0.0,
                    elapsed_time=(now - start) * 1000.0,
                    tick=self.tick_count,
                )
                prev_tick = now

                result = on_tick(ctx)
                if inspect.isawaitable(result):
                    await result
                self.tick_count += 1

                next_deadline += self._interval
                finished = time.perf_counter()
                if finished > next_deadline:
                    self.overrun_count += 1
                    logger.warning(
                        "Tick %d overran by %.1f ms; rescheduling from completion",
                        ctx.tick,
                        (finished - next_deadline) * 1000.0,
                    )
                    next_deadline = finished
        except Exception:
            logger.exception("Tick callback failed; ticker stopped")
            raise
        finally:
            logger.info(f"Ticker stopped after {self.tick_count} ticks")
