"""Data models for fetch run tracking and reporting."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class SourceRunStats:
    """
    Statistics for one source within a fetch run.

    Attributes:
        name: Display name of the source
        provider: Provider name (greenhouse, lever, ...)
        slug: Board identifier at the provider
        fetched: Jobs returned by the fetcher after screening
        added: New postings inserted
        updated: Existing postings refreshed
        skipped_by_status: Postings left alone because the user acted on them
        duplicates: Postings already seen within the last hour
        invalid: Records rejected by the database and not stored
        error: Error message if the source failed
        duration_seconds: Time spent on this source
    """

    name: str
    provider: str
    slug: Optional[str] = None
    fetched: int = 0
    added: int = 0
    updated: int = 0
    skipped_by_status: int = 0
    duplicates: int = 0
    invalid: int = 0
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return self.added + self.updated

    @property
    def had_errors(self) -> bool:
        return self.error is not None


@dataclass
class FetchRunResult:
    """
    Aggregate results of one JobFetchService.fetch_all() run.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        by_source: Per-source statistics keyed by source name
        errors: One message per failed source
        skipped: Whether the run was skipped because another run held the lock
    """

    run_started_at: datetime
    run_finished_at: datetime
    by_source: Dict[str, SourceRunStats] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def added(self) -> int:
        return sum(stats.added for stats in self.by_source.values())

    @property
    def updated(self) -> int:
        return sum(stats.updated for stats in self.by_source.values())

    @property
    def skipped_by_status(self) -> int:
        return sum(stats.skipped_by_status for stats in self.by_source.values())

    @property
    def duplicates(self) -> int:
        return sum(stats.duplicates for stats in self.by_source.values())

    @property
    def invalid(self) -> int:
        return sum(stats.invalid for stats in self.by_source.values())

    @property
    def total(self) -> int:
        """Postings added or updated."""
        return self.added + self.updated

    @property
    def by_provider(self) -> Dict[str, int]:
        """Added plus updated postings per provider."""
        counts = Counter()
        for stats in self.by_source.values():
            if stats.total:
                counts[stats.provider] += stats.total
        return dict(counts)

    @property
    def had_errors(self) -> bool:
        return bool(self.errors)

    @property
    def total_duration_seconds(self) -> float:
        return (self.run_finished_at - self.run_started_at).total_seconds()

    def to_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "added": self.added,
            "updated": self.updated,
            "skipped_by_status": self.skipped_by_status,
            "duplicates": self.duplicates,
            "invalid": self.invalid,
            "by_provider": self.by_provider,
            "by_source": {
                name: {
                    "provider": stats.provider,
                    "fetched": stats.fetched,
                    "added": stats.added,
                    "updated": stats.updated,
                    "skipped_by_status": stats.skipped_by_status,
                    "duplicates": stats.duplicates,
                    "invalid": stats.invalid,
                    "error": stats.error,
                }
                for name, stats in self.by_source.items()
            },
            "errors": list(self.errors),
            "skipped": self.skipped,
        }
