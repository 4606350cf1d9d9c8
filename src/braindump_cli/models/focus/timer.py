"""Countdown engine for a single focus session.

The engine is a small state machine (running, paused, finished) driven by
one-second ticks. ``tick()`` is the only thing that moves time forward, so the
engine can be stepped by hand in tests or driven by the asyncio ticker started
with ``start()``. Sessions are never persisted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Literal

TimerStatus = Literal["running", "paused", "finished"]

DEFAULT_SESSION_MINUTES = 25

logger = logging.getLogger(__name__)


class TimerEngine:
    """Countdown state machine for one focus session."""

    def __init__(
        self,
        task_label: str,
        total_seconds: int = DEFAULT_SESSION_MINUTES * 60,
        on_finish: Callable[[TimerEngine], None] | None = None,
        on_tick: Callable[[TimerEngine], None] | None = None,
        tick_seconds: float = 1.0,
    ):
        if total_seconds <= 0:
            raise ValueError("Session length must be positive")
        self.task_label = task_label
        self.total_seconds = total_seconds
        self.remaining_seconds = total_seconds
        self.status: TimerStatus = "running"
        self.closed = False
        self.tick_seconds = tick_seconds
        self.on_finish = on_finish
        self.on_tick = on_tick
        self._finish_fired = False
        self._ticker: asyncio.Task | None = None
        self._done: asyncio.Event | None = None

    @property
    def elapsed_fraction(self) -> float:
        """Share of the session already spent, for progress bars only."""
        return 1 - self.remaining_seconds / self.total_seconds

    @property
    def is_ticking(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def tick(self) -> None:
        """Advance the countdown by one second."""
        if self.closed or self.status != "running":
            return
        if self.remaining_seconds > 0:
            self.remaining_seconds -= 1
        if self.on_tick is not None:
            self.on_tick(self)
        if self.remaining_seconds == 0:
            self._finish()

    def _finish(self) -> None:
        self.status = "finished"
        if self._finish_fired:
            return
        self._finish_fired = True
        logger.info("Focus session finished: %s", self.task_label)
        if self.on_finish is not None:
            self.on_finish(self)
        if self._done is not None:
            self._done.set()

    def pause(self) -> None:
        """Pause a running session."""
        if self.closed or self.status != "running":
            raise ValueError("Can only pause running sessions")
        self.status = "paused"

    def resume(self) -> None:
        """Resume a paused session."""
        if self.closed or self.status != "paused":
            raise ValueError("Can only resume paused sessions")
        self.status = "running"

    def restart(self) -> None:
        """Start a finished session over with the full length."""
        if self.closed or self.status != "finished":
            raise ValueError("Can only restart finished sessions")
        self.remaining_seconds = self.total_seconds
        self.status = "running"
        self._finish_fired = False
        if self._done is not None:
            self._done.clear()

    def close(self) -> None:
        """Discard the session. The ticker is stopped and nothing is kept."""
        self.cancel()
        self.closed = True
        if self._done is not None:
            self._done.set()

    # -- asyncio ticker ----------------------------------------------------

    def start(self) -> asyncio.Task:
        """Start ticking on the running event loop.

        Must be called from a coroutine. Calling it while already ticking
        returns the existing task; after a cancel it starts a new one.
        """
        if self.closed:
            raise ValueError("Session is closed")
        if not self.is_ticking:
            self._done = asyncio.Event()
            if self.status == "finished":
                self._done.set()
            self._ticker = asyncio.get_running_loop().create_task(self._run())
        return self._ticker

    async def _run(self) -> None:
        while not self.closed and self.status != "finished":
            await asyncio.sleep(self.tick_seconds)
            self.tick()

    def cancel(self) -> None:
        """Stop the periodic tick. The session state is left as it is."""
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def wait(self) -> TimerStatus:
        """Wait until the session finishes or is closed."""
        if self._done is None:
            self._done = asyncio.Event()
            if self.status == "finished" or self.closed:
                self._done.set()
        await self._done.wait()
        return self.status
