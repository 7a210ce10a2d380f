"""
Pending Assignment Sweep

Background job that periodically runs automatic doctor assignment over every
pending appointment. Appointments that found no candidate on one run are
retried on the next.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .doctor_matcher import DoctorMatcher

logger = logging.getLogger(__name__)


class PendingAssignmentSweep:
    """
    Scheduled wrapper around DoctorMatcher.assign_all_pending.
    """

    def __init__(self, matcher: DoctorMatcher, interval_minutes: int = 5):
        """
        Initialize the sweep.

        Args:
            matcher: Matcher whose store supplies pending appointments
            interval_minutes: How often to run (default 5 minutes)
        """
        self.matcher = matcher
        self.scheduler = AsyncIOScheduler()
        self.interval_minutes = interval_minutes
        self.is_running = False

        logger.info(f"Initialized PendingAssignmentSweep with {interval_minutes} minute interval")

    async def sweep(self) -> Dict[str, Any]:
        """
        Assign doctors to all pending appointments.

        Returns:
            Dictionary with sweep statistics
        """
        started = datetime.now()
        try:
            logger.info("Starting pending assignment sweep")
            summary = await self.matcher.assign_all_pending()

            stats = summary.model_dump()
            stats["start_time"] = started.isoformat()
            stats["duration_seconds"] = (datetime.now() - started).total_seconds()

            logger.info(
                f"Pending assignment sweep completed. Assigned {summary.successful} of "
                f"{summary.total}, {summary.failed} left pending"
            )
            return stats

        except Exception as e:
            logger.error(f"Error in pending assignment sweep: {str(e)}")
            return {
                "error": str(e),
                "total": 0,
                "successful": 0,
                "failed": 0,
                "details": [],
                "start_time": started.isoformat(),
            }

    def start(self):
        """
        Start the scheduled sweep. Must be called with a running event loop.
        """
        if self.is_running:
            return

        self.scheduler.add_job(
            self.sweep,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="pending_assignment_sweep",
            name="Pending Appointment Assignment",
            misfire_grace_time=60,
            coalesce=True,
            max_instances=1
        )

        # First pass shortly after startup
        self.scheduler.add_job(
            self.sweep,
            trigger="date",
            run_date=datetime.now() + timedelta(seconds=10),
            id="pending_assignment_sweep_startup",
            name="Pending Appointment Assignment (Startup)"
        )

        self.scheduler.start()
        self.is_running = True
        logger.info(f"Pending assignment sweep started (runs every {self.interval_minutes} minutes)")

    def stop(self):
        """
        Stop the scheduled sweep.
        """
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Pending assignment sweep stopped")

    async def run_once(self) -> Dict[str, Any]:
        """
        Run the sweep once (for testing or manual execution).

        Returns:
            Sweep statistics
        """
        return await self.sweep()
