"""Scheduler service for periodic background jobs."""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from targeting.logging import get_logger

logger = get_logger(__name__, component="scheduler")


class SchedulerService:
    """
    Wraps APScheduler to run one job at a fixed interval.

    Uses BackgroundScheduler to run the job in a separate thread while
    allowing the main thread to handle signals and coordinate shutdown.
    """

    def __init__(
        self,
        job_callable: Callable[[], Any],
        interval_seconds: int,
        job_id: str = "zero-audience-retry",
        job_name: str = "Zero-audience retry",
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the scheduler service.

        Args:
            job_callable: Function to call on each scheduled run
            interval_seconds: Interval between runs in seconds
            job_id: Scheduler job identifier
            job_name: Human-readable job name
            shutdown_event: Optional event to set on shutdown for coordination
        """
        self.job_callable = job_callable
        self.interval_seconds = interval_seconds
        self.job_id = job_id
        self.job_name = job_name
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """
        Start the scheduler and register the job.

        The first run executes immediately; later runs follow the interval.
        """
        trigger = IntervalTrigger(
            seconds=self.interval_seconds,
            timezone=timezone.utc,
        )

        next_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self.job_callable,
            trigger=trigger,
            id=self.job_id,
            name=self.job_name,
            replace_existing=True,
            next_run_time=next_run,
        )

        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "job_id": self.job_id,
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler.

        Args:
            wait: If True, wait for a running job to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> Any:
        """Run the job synchronously in the current thread."""
        logger.info(
            "Triggering immediate job run",
            extra={"event": "scheduler.trigger_now", "job_id": self.job_id},
        )
        return self.job_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """Next scheduled run time, or None if the job is not scheduled."""
        job = self.scheduler.get_job(self.job_id)
        return job.next_run_time if job else None
