"""In-process scheduling of the maintenance sweeps."""

from __future__ import annotations

from datetime import timedelta
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from mindo.obs import logging as obs_logging

logger = obs_logging.get_logger("mindo.scheduler")

Sweep = Callable[[], Awaitable[object]]


class SweepScheduler:
    """Runs each registered sweep on a fixed interval, one instance at a time."""

    def __init__(self) -> None:
        self._scheduler = AsyncIOScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def add_sweep(self, name: str, sweep: Sweep, *, every: timedelta) -> None:
        self._scheduler.add_job(
            sweep,
            trigger=IntervalTrigger(seconds=int(every.total_seconds())),
            id=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("sweep_scheduled", extra={"sweep": name, "interval_seconds": every.total_seconds()})

    def sweep_names(self) -> list[str]:
        return sorted(job.id for job in self._scheduler.get_jobs())

    def start(self) -> None:
        if not self.running:
            self._scheduler.start()

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
