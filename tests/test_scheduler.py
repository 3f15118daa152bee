"""Unit tests for the scheduler service.

Tests the SchedulerService including:
- Job registration with correct configuration
- Immediate first run (next_run_time set to now)
- Prevents overlapping runs (max_instances=1)
- Start/shutdown lifecycle
- Trigger now functionality
"""

import threading
import time
from datetime import datetime, timedelta
from unittest.mock import Mock

from apscheduler.triggers.interval import IntervalTrigger

from jobwizard.scheduler import SchedulerService
from jobwizard.scheduler.service import JOB_ID


class TestSchedulerService:
    """Test suite for SchedulerService."""

    def test_scheduler_initialization(self):
        """Test that scheduler initializes with correct parameters."""
        mock_callable = Mock()
        shutdown_event = threading.Event()

        scheduler = SchedulerService(
            fetch_callable=mock_callable,
            interval_seconds=60,
            shutdown_event=shutdown_event,
        )

        assert scheduler.interval_seconds == 60
        assert scheduler.fetch_callable == mock_callable
        assert scheduler.shutdown_event == shutdown_event
        assert not scheduler.is_running()

    def test_scheduler_start_and_shutdown(self):
        """Test scheduler start and shutdown lifecycle."""
        shutdown_event = threading.Event()
        scheduler = SchedulerService(
            fetch_callable=Mock(),
            interval_seconds=300,
            shutdown_event=shutdown_event,
        )

        scheduler.start()
        assert scheduler.is_running()

        time.sleep(0.1)

        scheduler.shutdown(wait=False)
        assert not scheduler.is_running()
        assert shutdown_event.is_set()

    def test_scheduler_registers_job_with_correct_config(self):
        """Test that jobs default to max_instances=1 and coalesce=True."""
        scheduler = SchedulerService(fetch_callable=Mock(), interval_seconds=21600)

        assert scheduler.scheduler._job_defaults["max_instances"] == 1
        assert scheduler.scheduler._job_defaults["coalesce"] is True
        assert scheduler.scheduler._job_defaults["misfire_grace_time"] == 21600

    def test_start_adds_interval_job(self):
        """The fetch job uses an interval trigger and runs right away."""
        scheduler = SchedulerService(fetch_callable=Mock(), interval_seconds=3600)

        scheduler.start()
        try:
            job = scheduler.scheduler.get_job(JOB_ID)
            assert isinstance(job.trigger, IntervalTrigger)
            assert job.trigger.interval == timedelta(hours=1)
        finally:
            scheduler.shutdown(wait=True)

    def test_scheduler_immediate_first_run(self):
        """Test that first run is scheduled immediately."""
        ran = threading.Event()

        scheduler = SchedulerService(fetch_callable=ran.set, interval_seconds=3600)
        scheduler.start()

        assert ran.wait(timeout=3)

        scheduler.shutdown(wait=True)

    def test_scheduler_prevents_concurrent_runs(self):
        """Test that max_instances=1 prevents concurrent executions."""
        active = []
        overlaps = []
        lock = threading.Lock()

        def slow_callable():
            with lock:
                if active:
                    overlaps.append(True)
                active.append(True)
            time.sleep(0.5)
            with lock:
                active.pop()

        scheduler = SchedulerService(fetch_callable=slow_callable, interval_seconds=1)

        scheduler.start()
        time.sleep(2.5)
        scheduler.shutdown(wait=True)

        assert overlaps == []

    def test_trigger_now_executes_immediately(self):
        """Test that trigger_now executes the callable synchronously."""
        mock_callable = Mock()
        scheduler = SchedulerService(fetch_callable=mock_callable, interval_seconds=3600)

        # Scheduler is not started, trigger manually
        scheduler.trigger_now()

        mock_callable.assert_called_once_with()

    def test_trigger_now_logs_failures(self):
        """A failing fetch does not propagate out of trigger_now."""
        mock_callable = Mock(side_effect=RuntimeError("database is locked"))
        scheduler = SchedulerService(fetch_callable=mock_callable, interval_seconds=3600)

        scheduler.trigger_now()

        assert mock_callable.call_count == 1

    def test_get_next_run_time(self):
        """Test getting the next scheduled run time."""
        scheduler = SchedulerService(fetch_callable=Mock(), interval_seconds=60)

        # Before starting, no job is registered
        assert scheduler.get_next_run_time() is None

        scheduler.start()
        time.sleep(0.1)

        next_run = scheduler.get_next_run_time()
        assert next_run is not None
        assert isinstance(next_run, datetime)

        scheduler.shutdown(wait=False)

    def test_scheduler_with_no_shutdown_event(self):
        """Test that scheduler works without a shutdown event."""
        scheduler = SchedulerService(fetch_callable=Mock(), interval_seconds=60, shutdown_event=None)

        scheduler.start()
        assert scheduler.is_running()

        scheduler.shutdown(wait=False)
        assert not scheduler.is_running()

    def test_shutdown_before_start(self):
        shutdown_event = threading.Event()
        scheduler = SchedulerService(
            fetch_callable=Mock(), interval_seconds=60, shutdown_event=shutdown_event
        )

        scheduler.shutdown()

        assert shutdown_event.is_set()

    def test_scheduler_shutdown_with_wait(self):
        """Test shutdown with wait=True waits for running jobs."""
        execution_started = threading.Event()
        execution_completed = threading.Event()

        def slow_callable():
            execution_started.set()
            time.sleep(0.5)
            execution_completed.set()

        scheduler = SchedulerService(fetch_callable=slow_callable, interval_seconds=10)

        scheduler.start()
        execution_started.wait(timeout=2)

        scheduler.shutdown(wait=True)

        assert execution_completed.is_set()

    def test_scheduler_callable_exceptions_dont_stop_scheduler(self):
        """Test that exceptions in callable don't stop the scheduler."""
        call_count = [0]

        def failing_callable():
            call_count[0] += 1
            if call_count[0] == 1:
                raise Exception("Intentional error")

        scheduler = SchedulerService(fetch_callable=failing_callable, interval_seconds=1)

        scheduler.start()
        time.sleep(2.5)
        scheduler.shutdown(wait=True)

        # Should have been called multiple times despite first failure
        assert call_count[0] >= 2
