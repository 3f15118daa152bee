"""Fetch orchestration: every active source, screened and deduplicated into the database."""

import threading
import time
from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from jobwizard.config.environment import EnvironmentConfig
from jobwizard.config.loader import load_sources
from jobwizard.config.models import SourceEntry, SourcesConfig
from jobwizard.domain.models import BlockedCompany, JobRecord
from jobwizard.fetchers.exceptions import FetcherConfigurationError, FetcherError
from jobwizard.fetchers.factory import get_fetcher
from jobwizard.logging import get_logger
from jobwizard.logging.context import log_context
from jobwizard.matching.screener import JobScreener
from jobwizard.persistence import (
    CREATED,
    DUPLICATE,
    SKIPPED_BY_STATUS,
    UPDATED,
    BlockedCompanyRepository,
    DataIntegrityError,
    JobPostingRepository,
    PersistenceError,
    get_session,
)
from jobwizard.rules.rules import Rules, RulesProvider
from jobwizard.utils.timestamps import utc_now

from .models import FetchRunResult, SourceRunStats

logger = get_logger(__name__, component="pipeline")


class JobFetchService:
    """
    Runs one fetch across all active sources.

    Each source is fetched, screened by its fetcher and persisted in its own
    transaction. A failing source is recorded in the result and the run
    moves on to the next one.
    """

    def __init__(
        self,
        env: EnvironmentConfig,
        sources: Optional[SourcesConfig] = None,
        session_factory: Callable[[], AbstractContextManager] = get_session,
        rules: Optional[Rules] = None,
        fetcher_factory: Callable = get_fetcher,
    ):
        """
        Args:
            env: Environment configuration (sources path, HTTP settings)
            sources: Fixed source list; sources.yml is re-read each run when omitted
            session_factory: Context manager factory yielding a database session
            rules: Rules to screen with (defaults to the current rules)
            fetcher_factory: Callable(provider, advanced_config, screener) returning a fetcher
        """
        self.env = env
        self._sources = sources
        self._session_factory = session_factory
        self._rules = rules
        self._fetcher_factory = fetcher_factory
        self._lock = threading.Lock()
        self._last_screener: Optional[JobScreener] = None

    def _active_sources(self) -> List[SourceEntry]:
        sources = self._sources if self._sources is not None else load_sources(self.env.sources_path)
        return sources.active_sources()

    def _blocked_companies(self) -> List[BlockedCompany]:
        with self._session_factory() as session:
            return BlockedCompanyRepository(session).list_all()

    def _build_screener(self) -> JobScreener:
        rules = self._rules if self._rules is not None else RulesProvider.current()
        blocked = self._blocked_companies()
        return JobScreener.from_rules(rules, blocked_companies=lambda: blocked)

    def recent_rejections(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Rules engine rejections from the most recent run, oldest first."""
        if self._last_screener is None:
            return []
        return self._last_screener.engine.recent_rejections(limit)

    def fetch_all(self) -> FetchRunResult:
        """
        Fetch every active source and persist the results.

        Returns:
            FetchRunResult with totals, per-provider and per-source counts and
            one error message per failed source. Runs that find another run
            in progress return immediately with ``skipped`` set.
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Fetch run skipped: previous run still in progress",
                    extra={"event": "fetch.run.skipped", "reason": "lock_held"},
                )
            return FetchRunResult(run_started_at=run_started_at, run_finished_at=utc_now(), skipped=True)

        try:
            with log_context(run_id=run_id):
                sources = self._active_sources()
                if not sources:
                    logger.warning(
                        "No active sources configured",
                        extra={"event": "fetch.run.no_sources", "path": str(self.env.sources_path)},
                    )
                    return FetchRunResult(run_started_at=run_started_at, run_finished_at=utc_now())

                logger.info(
                    f"Fetch run started for {len(sources)} sources",
                    extra={"event": "fetch.run.started", "source_count": len(sources)},
                )

                screener = self._build_screener()
                self._last_screener = screener
                result = FetchRunResult(run_started_at=run_started_at, run_finished_at=run_started_at)
                for source in sources:
                    stats = self._process_source(source, screener, run_id)
                    result.by_source[source.name] = stats
                    if stats.error:
                        result.errors.append(stats.error)

                result.run_finished_at = utc_now()
                logger.info(
                    "Fetch run completed",
                    extra={
                        "event": "fetch.run.completed",
                        "duration_ms": int(result.total_duration_seconds * 1000),
                        "total": result.total,
                        "added": result.added,
                        "updated": result.updated,
                        "skipped_by_status": result.skipped_by_status,
                        "duplicates": result.duplicates,
                        "invalid": result.invalid,
                        "error_count": len(result.errors),
                    },
                )
                return result
        finally:
            self._lock.release()

    def _process_source(self, source: SourceEntry, screener: JobScreener, run_id: str) -> SourceRunStats:
        source_start = time.time()
        stats = SourceRunStats(name=source.name, provider=source.provider, slug=source.slug)

        with log_context(run_id=run_id, source_id=f"{source.provider}:{source.slug or source.name}"):
            logger.info(
                f"Processing source: {source.name}",
                extra={"event": "fetch.source.started", "provider": source.provider},
            )

            try:
                fetcher = self._fetcher_factory(source.provider, self.env.advanced, screener)
                records = fetcher.fetch(source.slug)
                stats.fetched = len(records)
                self._persist(records, stats)
            except FetcherConfigurationError as e:
                stats.error = f"Unknown provider: {source.provider} for {source.name}"
                logger.error(
                    stats.error,
                    extra={"event": "fetch.source.failed", "error_type": type(e).__name__},
                )
            except (FetcherError, PersistenceError) as e:
                stats.error = f"Error fetching from {source.name} ({source.provider}): {e}"
                logger.error(
                    stats.error,
                    extra={"event": "fetch.source.failed", "error_type": type(e).__name__},
                    exc_info=True,
                )

            stats.duration_seconds = time.time() - source_start
            logger.info(
                f"Source {source.name} completed",
                extra={
                    "event": "fetch.source.completed",
                    "fetched": stats.fetched,
                    "added": stats.added,
                    "updated": stats.updated,
                    "skipped_by_status": stats.skipped_by_status,
                    "duplicates": stats.duplicates,
                    "invalid": stats.invalid,
                    "had_errors": stats.had_errors,
                    "duration_ms": int(stats.duration_seconds * 1000),
                },
            )
        return stats

    def _persist(self, records: List[JobRecord], stats: SourceRunStats) -> None:
        """Store each record in its own savepoint so one bad record only loses itself."""
        now = utc_now()
        with self._session_factory() as session:
            repo = JobPostingRepository(session)
            for record in records:
                try:
                    with session.begin_nested():
                        _, outcome = repo.upsert_fetched(record, now=now)
                except DataIntegrityError as e:
                    stats.invalid += 1
                    logger.warning(
                        f"Skipping job {record.url}: {e}",
                        extra={"event": "fetch.record.failed", "url": record.url, "error_type": type(e).__name__},
                    )
                    continue

                if outcome == CREATED:
                    stats.added += 1
                elif outcome == UPDATED:
                    stats.updated += 1
                elif outcome == SKIPPED_BY_STATUS:
                    stats.skipped_by_status += 1
                elif outcome == DUPLICATE:
                    stats.duplicates += 1
