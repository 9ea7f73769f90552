"""
Periodic Escalation
===================

Runs the escalation check on a fixed interval with APScheduler's asyncio
scheduler, inside the service's event loop.
"""

from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from warning_tracker.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

JOB_ID = "escalation_check"


class EscalationScheduler:
    """
    Interval job for the periodic escalation check.

    A single job instance at a time: if a check overruns the interval the
    next one is skipped, and runs missed while the loop was blocked collapse
    into one.
    """

    def __init__(self, interval_seconds: int = 300):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def start(self, check: Callable[[], Awaitable[object]]) -> None:
        """Schedule `check`; the first run is one interval from now."""
        if self.is_running:
            logger.warning("Escalation scheduler already running")
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            check,
            "interval",
            seconds=self.interval_seconds,
            id=JOB_ID,
            name="Periodic warning escalation",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.interval_seconds,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(
            "Escalation scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        if not self.is_running:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Escalation scheduler stopped")
