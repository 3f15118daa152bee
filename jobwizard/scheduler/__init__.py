"""Periodic execution of fetch runs."""

from .service import SchedulerService

__all__ = [
    "SchedulerService",
]
