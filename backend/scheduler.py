"""
Timers for the session event loop.

PeriodicTimer drives production and save ticks, OneShotTimer drives
click-feedback expiry. Callbacks may be plain functions or coroutine
functions; coroutines are awaited inside the timer's own task so slow
store calls never hold up click handling.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


async def _invoke(callback: Callable[[], Any], name: str) -> None:
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(f"Timer {name} callback failed: {e}")


class PeriodicTimer:
    """Calls `callback` every `interval` seconds while running."""

    def __init__(self, interval: float, callback: Callable[[], Any], name: str = "periodic"):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug(f"Timer {self.name} started ({self.interval}s)")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug(f"Timer {self.name} stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await _invoke(self.callback, self.name)


class OneShotTimer:
    """Fires `callback` once, `delay` seconds after the latest arm()."""

    def __init__(self, delay: float, callback: Callable[[], Any], name: str = "one-shot"):
        if delay <= 0:
            raise ValueError(f"delay must be positive, got {delay}")
        self.delay = delay
        self.callback = callback
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self) -> None:
        """(Re)start the countdown, replacing any pending one."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire(), name=self.name)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _fire(self) -> None:
        await asyncio.sleep(self.delay)
        await _invoke(self.callback, self.name)
