"""
Tick loop — drives StudyTimer.tick() from an asyncio task.

The cadence is re-read from settings before every sleep, so toggling
development mode takes effect on the next tick without a restart.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .clock import StudyTimer

logger = logging.getLogger(__name__)


async def _tick_loop(timer: StudyTimer) -> None:
    while True:
        await asyncio.sleep(timer.tick_interval_ms() / 1000.0)
        try:
            timer.tick()
        except Exception:
            logger.exception("Timer tick failed")


class TimerRunner:
    """Owns the single ticking task for one StudyTimer."""

    def __init__(self, timer: StudyTimer):
        self._timer = timer
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(_tick_loop(self._timer))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
