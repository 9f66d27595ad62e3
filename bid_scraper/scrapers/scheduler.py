"""
Scheduler - periodic and manual scraper runs.

Both paths go through Orchestrator.run_scraper(), so at most one run is ever
active. A periodic cycle that fires while a run is still going is skipped,
not queued.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..config import SchedulerConfig
from ..utils.logging import get_logger
from .exceptions import AlreadyRunningError
from .models import RunResult
from .orchestrator import Orchestrator

logger = get_logger(__name__)

JOB_ID = "bid_scraper"


def describe_interval(minutes: int) -> str:
    if minutes == 1:
        return "Every minute"
    if minutes % 60 == 0:
        hours = minutes // 60
        return "Every hour" if hours == 1 else f"Every {hours} hours"
    return f"Every {minutes} minutes"


class Scheduler:
    """Triggers the orchestrator on a fixed interval and on demand."""

    def __init__(self, orchestrator: Orchestrator, config: Optional[SchedulerConfig] = None):
        self.orchestrator = orchestrator
        self.config = config or SchedulerConfig()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def is_scheduled(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self):
        """Register the periodic job. Does nothing if already started."""
        if self.is_scheduled:
            logger.info("Scheduler already started")
            return

        scheduler = BackgroundScheduler()
        job_options = {
            "id": JOB_ID,
            "minutes": self.config.interval_minutes,
            "max_instances": 1,
            "coalesce": True,
        }
        if self.config.run_on_start:
            job_options["next_run_time"] = datetime.now()

        scheduler.add_job(self.run_cycle, "interval", **job_options)
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "Scheduler started",
            schedule=describe_interval(self.config.interval_minutes),
        )

    def stop(self):
        """Cancel the periodic job. Safe to call when not started."""
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def run_cycle(self) -> Optional[RunResult]:
        """Body of the periodic job; returns None when the cycle is skipped."""
        if self.orchestrator.is_running:
            logger.info("Scraper is already running, skipping this cycle")
            return None

        try:
            logger.info("Scheduled scraper execution started")
            result = self.orchestrator.run_scraper()
        except AlreadyRunningError:
            logger.info("Scraper is already running, skipping this cycle")
            return None

        logger.info("Scheduled scraper execution completed", success=result.success)
        return result

    def run_manual(self) -> RunResult:
        """
        Run the scraper now, outside the periodic cadence.

        Raises:
            AlreadyRunningError: if a run is in progress
        """
        logger.info("Manual scraper execution started")
        result = self.orchestrator.run_scraper()
        logger.info("Manual scraper execution completed", success=result.success)
        return result

    def get_status(self) -> Dict[str, Any]:
        next_run = None
        if self.is_scheduled:
            job = self._scheduler.get_job(JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()

        last_result = self.orchestrator.last_result
        return {
            "is_running": self.orchestrator.is_running,
            "schedule": describe_interval(self.config.interval_minutes),
            "scheduled": self.is_scheduled,
            "next_run": next_run,
            "last_result": last_result.to_dict() if last_result else None,
        }
