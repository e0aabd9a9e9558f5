"""Repeating timers on the asyncio event loop."""

import asyncio
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Creates repeating timers; injected so tests can drive time by hand."""

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class RepeatingTimer:
    """Calls a callback every `interval` seconds until cancelled.

    Deadlines are computed from the start time, so a slow callback does not
    make the timer drift.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._deadline = loop.time() + interval
        self._handle: Optional[asyncio.TimerHandle] = loop.call_at(self._deadline, self._fire)

    @property
    def active(self) -> bool:
        return self._handle is not None

    def _fire(self) -> None:
        if self._handle is None:
            return
        self._deadline += self._interval
        self._handle = self._loop.call_at(self._deadline, self._fire)
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class LoopScheduler:
    """Scheduler backed by the running event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_every(self, interval: float, callback: Callable[[], None]) -> RepeatingTimer:
        loop = self._loop or asyncio.get_running_loop()
        logger.debug(f"Starting repeating timer every {interval}s")
        return RepeatingTimer(loop, interval, callback)
