"""Fetch orchestration across job board sources and its run statistics."""

from .fetch_service import JobFetchService
from .models import FetchRunResult, SourceRunStats

__all__ = [
    "JobFetchService",
    "FetchRunResult",
    "SourceRunStats",
]
