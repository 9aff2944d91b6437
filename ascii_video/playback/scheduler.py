#!/usr/bin/env python3
# ascii_video/playback/scheduler.py
"""
Tick schedulers for the render loop.

The loop only ever calls schedule(callback) and cancel(handle), so it can be
driven by an asyncio event loop (the terminal player and headless recorder)
or stepped synchronously by ManualScheduler in tests.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import OrderedDict
from typing import Any, Callable, Optional

__all__ = ["Scheduler", "ManualScheduler", "AsyncioScheduler"]

Tick = Callable[[], None]


class Scheduler:
    """Interface: run a callback once on the next display tick."""

    def schedule(self, callback: Tick) -> Any:
        raise NotImplementedError

    def cancel(self, handle: Any) -> None:
        raise NotImplementedError


class ManualScheduler(Scheduler):
    """Queues callbacks until step() or run() is called."""

    def __init__(self):
        self._pending: "OrderedDict[int, Tick]" = OrderedDict()
        self._ids = itertools.count(1)

    def schedule(self, callback: Tick) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: Any) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def step(self) -> bool:
        """Run the oldest pending callback. False when nothing was queued."""
        if not self._pending:
            return False
        _, callback = self._pending.popitem(last=False)
        callback()
        return True

    def run(self, max_ticks: int = 1000) -> int:
        """Step until idle or max_ticks; returns ticks run."""
        n = 0
        while n < max_ticks and self.step():
            n += 1
        return n


class AsyncioScheduler(Scheduler):
    """Fires callbacks on an asyncio loop at a fixed refresh rate."""

    def __init__(self, fps: float = 60.0, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.interval = 1.0 / max(1.0, float(fps))
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, callback: Tick) -> asyncio.TimerHandle:
        return self.loop.call_later(self.interval, callback)

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()
