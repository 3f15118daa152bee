"""Interval scheduling of fetch runs."""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.events import EVENT_JOB_ERROR, JobExecutionEvent
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobwizard.logging import get_logger

logger = get_logger(__name__, component="scheduler")

JOB_ID = "job-fetch"


class SchedulerService:
    """
    Runs a fetch callable on a fixed interval in a background thread.

    The first run starts immediately. Runs never overlap, late runs are
    coalesced into one, and a failing run is logged without stopping the
    schedule.
    """

    def __init__(
        self,
        fetch_callable: Callable[[], Any],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """
        Args:
            fetch_callable: Called on each run (e.g. JobFetchService.fetch_all)
            interval_seconds: Seconds between runs
            shutdown_event: Set on shutdown so the main thread can stop waiting
            scheduler: Preconfigured scheduler, mainly for tests
        """
        self.fetch_callable = fetch_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event

        self.scheduler = scheduler or BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    def _run(self) -> None:
        try:
            self.fetch_callable()
        except Exception as e:
            logger.error(
                f"Scheduled fetch failed: {e}",
                extra={"event": "scheduler.run.failed", "error_type": type(e).__name__},
                exc_info=True,
            )

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        logger.error(
            f"Scheduler job {event.job_id} raised {event.exception!r}",
            extra={"event": "scheduler.job.error", "job_id": event.job_id},
        )

    def start(self) -> None:
        """Register the fetch job with an immediate first run and start the scheduler."""
        next_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self._run,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=JOB_ID,
            name="Job board fetch",
            replace_existing=True,
            next_run_time=next_run,
        )
        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Stop the scheduler.

        Args:
            wait: Wait for a running fetch to finish before returning
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

    def trigger_now(self) -> None:
        """Run one fetch synchronously in the calling thread."""
        logger.info("Triggering immediate fetch", extra={"event": "scheduler.trigger_now"})
        self._run()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
