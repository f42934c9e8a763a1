"""Fail-safe that kills the check when it overruns its time limit.

The watcher runs as a background asyncio task next to the main flow. If the
limit elapses before disarm() is called, it logs and exits the process with
status 1 without reporting anything; Kuberhealthy records the missing report
as a timeout on its side.
"""

from __future__ import annotations

import asyncio
import os
from datetime import timedelta
from typing import Callable

from shared.durations import format_duration
from shared.log import get_logger

logger = get_logger("test-check.watcher")

TIMEOUT_EXIT_CODE = 1


class TimeoutWatcher:
    """One-shot timer that exits the process unless disarmed first."""

    def __init__(self, exit_fn: Callable[[int], object] = os._exit) -> None:
        self._exit_fn = exit_fn
        self._task: asyncio.Task | None = None
        self._completed = False
        self.fired = False

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self, time_limit: timedelta) -> None:
        """Schedule the forced exit after *time_limit*. Must run inside a loop."""
        if time_limit <= timedelta(0):
            logger.warning("time_limit_non_positive", time_limit=str(time_limit))
            return
        if self.armed:
            raise RuntimeError("timeout watcher is already armed")

        logger.info("check_time_limit_set", time_limit=format_duration(time_limit))
        self._task = asyncio.create_task(
            self._expire(time_limit.total_seconds()),
            name="timeout-watcher",
        )

    def disarm(self) -> None:
        """Mark the run completed and cancel the pending timer."""
        self._completed = True
        if self._task and not self._task.done():
            self._task.cancel()

    async def _expire(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
        if self._completed:
            return
        self.fired = True
        logger.error("check_timed_out", time_limit_seconds=seconds)
        self._exit_fn(TIMEOUT_EXIT_CODE)
