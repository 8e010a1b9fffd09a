"""Process-wide owner of the recurring booking sweep.

The FastAPI lifespan starts the scheduler on startup and stops it on
shutdown. APScheduler fires the sweep on a cron trigger at minute 0 of
every hour; at most one sweep runs at a time and missed firings coalesce
into one.
"""

import logging
from datetime import datetime

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stayfinder.clock import Clock, utcnow
from stayfinder.services.sweep import SweepResult, run_booking_sweep

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "booking-sweep"


def sweep_trigger() -> CronTrigger:
    """Top of every hour, UTC."""
    return CronTrigger(minute=0, timezone="UTC")


class BookingSweepScheduler:
    """Run the booking sweep at minute 0 of every hour.

    Args:
        session_factory: Produces a fresh session per sweep pass.
        clock: Source of the instant the sweep evaluates against.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self.runs = 0
        self.last_result: SweepResult | None = None

    @property
    def running(self) -> bool:
        return self._scheduler.running

    @property
    def job(self) -> Job | None:
        return self._scheduler.get_job(SWEEP_JOB_ID)

    @property
    def next_run_time(self) -> datetime | None:
        job = self.job
        return job.next_run_time if job is not None else None

    def start(self) -> None:
        """Register the hourly job and start the scheduler. Calling it twice is a no-op.

        Must be called from within a running event loop.
        """
        if self.running:
            return
        self._scheduler.add_job(
            self._run_job,
            sweep_trigger(),
            id=SWEEP_JOB_ID,
            name="Booking expiry sweep",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Booking sweep scheduler started, next run at %s", self.next_run_time)

    async def stop(self) -> None:
        """Shut the scheduler down without waiting for a running sweep."""
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("Booking sweep scheduler stopped after %d runs", self.runs)

    async def run_once(self) -> SweepResult:
        """Run one sweep immediately."""
        self.last_result = await run_booking_sweep(self._session_factory, self._clock)
        self.runs += 1
        return self.last_result

    async def _run_job(self) -> None:
        try:
            await self.run_once()
        except Exception:
            # run_booking_sweep isolates its passes; this only guards the job
            logger.exception("Booking sweep run failed")
