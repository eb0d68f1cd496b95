"""Scheduler that drives the monitoring cycle and shuts it down cleanly."""
from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Optional

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from dotenv import load_dotenv

from config import settings
from services.monitor import PriceMonitor

logger = logging.getLogger(__name__)

MONITOR_JOB_ID = "price-monitor"


class MonitorScheduler:
    """Runs ``PriceMonitor.run_cycle`` on a fixed interval.

    Overlapping ticks are dropped (``max_instances=1``, ``coalesce=True``).
    ``stopped`` is set once :meth:`shutdown` has finished.
    """

    def __init__(
        self,
        monitor: PriceMonitor,
        interval_seconds: int,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Interval must be positive")
        self.monitor = monitor
        self.interval_seconds = interval_seconds
        self.scheduler = scheduler or AsyncIOScheduler(timezone=UTC)
        self.stopped = asyncio.Event()
        self._job: Optional[Job] = None

    @property
    def job(self) -> Optional[Job]:
        return self._job

    def start(self, run_immediately: bool = True) -> Job:
        """Register the monitor job and start the scheduler."""
        if self._job is not None:
            raise RuntimeError("Scheduler already started")
        self.stopped.clear()
        kwargs = {}
        if run_immediately:
            # an explicit None would add the job paused
            kwargs["next_run_time"] = datetime.now(UTC)
        self._job = self.scheduler.add_job(
            self.monitor.run_cycle,
            IntervalTrigger(seconds=self.interval_seconds),
            id=MONITOR_JOB_ID,
            max_instances=1,
            coalesce=True,
            **kwargs,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info("Monitoring scheduled every %s seconds", self.interval_seconds)
        return self._job

    def reschedule(self, interval_seconds: int) -> None:
        """Update the monitor job interval."""
        if interval_seconds <= 0:
            raise ValueError("Interval must be positive")
        self.interval_seconds = interval_seconds
        if self._job is None:
            return
        self._job.reschedule(trigger=IntervalTrigger(seconds=interval_seconds))
        logger.info("Monitoring interval changed to %s seconds", interval_seconds)

    def reload_interval(self) -> None:
        """Re-read the environment and apply a changed check interval."""
        load_dotenv(override=True)
        try:
            settings.reload()
        except ValueError as exc:
            logger.error("Ignoring configuration reload: %s", exc)
            return
        if settings.CHECK_INTERVAL_SECONDS != self.interval_seconds:
            self.reschedule(settings.CHECK_INTERVAL_SECONDS)

    async def shutdown(self, grace_seconds: float = 30.0) -> None:
        """Stop scheduling, let an in-flight cycle finish, then signal ``stopped``."""
        # the executor cancels running job tasks on shutdown, so drain first
        if self.scheduler.running:
            self.scheduler.pause()
        self.monitor.request_stop()

        if self.monitor.is_running:
            logger.info("Waiting up to %ss for the running monitoring cycle", grace_seconds)
            try:
                await asyncio.wait_for(self.monitor.wait_idle(), timeout=grace_seconds)
            except asyncio.TimeoutError:
                logger.warning("Monitoring cycle did not finish within %ss", grace_seconds)

        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self._job = None
        self.stopped.set()
        logger.info("Monitoring scheduler stopped")


__all__ = ["MONITOR_JOB_ID", "MonitorScheduler"]
