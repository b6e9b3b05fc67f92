"""
Background job scheduling for the site backend.

Wraps an APScheduler AsyncIOScheduler that runs on the application's event
loop. One instance is created per application in create_app; nothing here is
module-level state.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from datetime import datetime, timezone
import logging

# Set up logger
logger = logging.getLogger(__name__)

JOB_DEFAULTS = {
    'coalesce': True,      # Skip missed runs instead of executing all
    'max_instances': 1     # One pass at a time, so a record is never mailed twice
}


class JobScheduler:
    """Owns the AsyncIOScheduler and the jobs registered on it."""

    def __init__(self):
        self.scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults=JOB_DEFAULTS,
            timezone='UTC'
        )

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self):
        """Start the scheduler if it's not already running."""
        if self.scheduler.running:
            logger.info("Scheduler is already running")
            return
        self.scheduler.start()
        logger.info(f"Scheduler started at {datetime.now(timezone.utc).isoformat()}")

    def add_interval_job(self, job_id: str, func, minutes: int, **job_kwargs) -> bool:
        """
        Register (or replace) a job that runs every `minutes` minutes.

        Returns:
            bool: True if the job was registered
        """
        try:
            self.scheduler.add_job(
                func=func,
                trigger="interval",
                id=job_id,
                replace_existing=True,
                minutes=minutes,
                **job_kwargs
            )
        except ValueError as e:
            logger.error(f"Failed to add job {job_id}: {str(e)}")
            return False
        logger.info(f"Job {job_id} registered (every {minutes} minutes)")
        return True

    def has_job(self, job_id: str) -> bool:
        return self.scheduler.get_job(job_id) is not None

    def shutdown(self):
        """Shutdown the scheduler without waiting for running jobs."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shut down successfully")
