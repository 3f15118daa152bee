"""Unit tests for the fetch service.

Covers the JobFetchService orchestration:
- Fetching, screening and persisting per source
- Deduplication across runs
- Error isolation (one failing source doesn't stop the others)
- Lock behavior (prevents concurrent runs)
- Run statistics and their aggregation
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from jobwizard.config.environment import EnvironmentConfig
from jobwizard.config.models import SourceEntry, SourcesConfig
from jobwizard.domain.models import BlockedCompany
from jobwizard.fetchers.exceptions import FetcherHTTPError, FetcherTimeoutError
from jobwizard.persistence import (
    BlockedCompanyRepository,
    JobPostingRepository,
    close_database,
    get_session,
    init_database,
)
from jobwizard.pipeline import FetchRunResult, JobFetchService, SourceRunStats
from jobwizard.rules.rules import Rules
from jobwizard.utils.timestamps import utc_now
from tests.helpers import CONFIG_FIXTURES, FixtureFetcher, make_posting, make_record

FETCH_FIXTURE = CONFIG_FIXTURES / "fetch_jobs.yml"


@pytest.fixture
def env(tmp_path):
    """Environment backed by a temporary SQLite database."""
    init_database(f"sqlite:///{tmp_path / 'fetch.db'}")
    yield EnvironmentConfig(config_dir=CONFIG_FIXTURES)
    close_database()


@pytest.fixture
def rules():
    return Rules.load(CONFIG_FIXTURES / "rules.yml")


@pytest.fixture
def sources():
    return SourcesConfig(
        sources=[
            SourceEntry(provider="greenhouse", slug="acme", name="Acme"),
            SourceEntry(provider="lever", slug="globex"),
        ]
    )


def fixture_factory(provider, advanced_config, screener):
    return FixtureFetcher(FETCH_FIXTURE, provider=getattr(provider, "value", provider), screener=screener)


def build_service(env, sources, rules, fetcher_factory=fixture_factory):
    return JobFetchService(env, sources=sources, rules=rules, fetcher_factory=fetcher_factory)


class TestJobFetchService:
    """Tests for JobFetchService.fetch_all()."""

    def test_fetch_all_basic_flow(self, env, sources, rules):
        service = build_service(env, sources, rules)

        result = service.fetch_all()

        assert result.skipped is False
        assert result.errors == []
        assert result.added == 2
        assert result.total == 2
        assert result.by_provider == {"greenhouse": 1, "lever": 1}

        acme = result.by_source["Acme"]
        assert acme.fetched == 1
        assert acme.added == 1
        assert acme.slug == "acme"
        assert result.by_source["Globex"].provider == "lever"

        with get_session() as session:
            postings = JobPostingRepository(session).list()
        assert sorted(posting.external_id for posting in postings) == ["gh-1", "lv-1"]
        assert all(posting.status == "suggested" for posting in postings)

    def test_second_run_counts_duplicates(self, env, sources, rules):
        service = build_service(env, sources, rules)
        service.fetch_all()

        result = service.fetch_all()

        assert result.added == 0
        assert result.duplicates == 2
        assert result.total == 0

    def test_recent_rejections(self, env, sources, rules):
        service = build_service(env, sources, rules)
        assert service.recent_rejections() == []

        service.fetch_all()

        rejections = service.recent_rejections()
        assert [(entry["company"], entry["title"]) for entry in rejections] == [
            ("Acme", "PHP Developer"),
            ("Evil Corp", "Rails Engineer"),
        ]
        assert "Company 'Evil Corp' is blocked" in rejections[1]["reasons"]
        assert len(service.recent_rejections(limit=1)) == 1

    def test_blocked_companies_from_database(self, env, sources, rules):
        with get_session() as session:
            BlockedCompanyRepository(session).add(BlockedCompany(name="Globex", reason="Ghosted"))
        service = build_service(env, sources, rules)

        result = service.fetch_all()

        assert result.by_source["Globex"].fetched == 0
        assert result.added == 1

    def test_fetcher_errors_are_isolated(self, env, sources, rules):
        def factory(provider, advanced_config, screener):
            if provider == "greenhouse":
                fetcher = Mock()
                fetcher.fetch.side_effect = FetcherTimeoutError(
                    "Request to https://boards-api.greenhouse.io timed out", url="https://boards-api.greenhouse.io"
                )
                return fetcher
            return fixture_factory(provider, advanced_config, screener)

        result = build_service(env, sources, rules, fetcher_factory=factory).fetch_all()

        assert result.had_errors is True
        assert result.errors == [
            "Error fetching from Acme (greenhouse): Request to https://boards-api.greenhouse.io timed out"
        ]
        assert result.by_source["Acme"].had_errors is True
        assert result.by_source["Globex"].added == 1

    def test_http_error_message(self, env, rules):
        sources = SourcesConfig(sources=[SourceEntry(provider="lever", slug="acme")])
        fetcher = Mock()
        fetcher.fetch.side_effect = FetcherHTTPError("HTTP 403: Forbidden", status_code=403, url="x")

        result = build_service(env, sources, rules, fetcher_factory=lambda *args: fetcher).fetch_all()

        assert result.errors == ["Error fetching from Acme (lever): HTTP 403: Forbidden"]

    def test_unknown_provider(self, env, rules):
        source = SourceEntry.model_construct(provider="workday", slug="acme", name="Acme", active=True)
        service = JobFetchService(env, sources=SourcesConfig(sources=[source]), rules=rules)

        result = service.fetch_all()

        assert result.errors == ["Unknown provider: workday for Acme"]
        assert result.by_source["Acme"].fetched == 0

    def test_fetch_all_prevents_concurrent_runs(self, env, sources, rules):
        service = build_service(env, sources, rules)

        service._lock.acquire()
        try:
            result = service.fetch_all()
        finally:
            service._lock.release()

        assert result.skipped is True
        assert result.by_source == {}

        # Lock is free again afterwards
        assert service.fetch_all().skipped is False

    def test_lock_released_after_failure(self, env, sources, rules):
        def factory(*args):
            raise RuntimeError("unexpected")

        service = build_service(env, sources, rules, fetcher_factory=factory)

        with pytest.raises(RuntimeError):
            service.fetch_all()

        assert service._lock.acquire(blocking=False) is True
        service._lock.release()

    def test_no_active_sources(self, env, rules):
        sources = SourcesConfig(sources=[SourceEntry(provider="lever", slug="acme", active=False)])
        factory = Mock()

        result = build_service(env, sources, rules, fetcher_factory=factory).fetch_all()

        assert result.total == 0
        assert result.by_source == {}
        factory.assert_not_called()

    def test_sources_are_read_from_file(self, env, rules):
        service = JobFetchService(env, rules=rules, fetcher_factory=fixture_factory)

        result = service.fetch_all()

        assert list(result.by_source) == ["Acme", "Globex Corp", "Initech"]
        assert result.added == 1


class TestPersistRecords:
    """Per-record persistence inside one source."""

    def test_constraint_failure_only_loses_that_record(self, env, rules):
        aged = utc_now() - timedelta(hours=2)
        with get_session() as session:
            repo = JobPostingRepository(session)
            repo.add(make_posting(external_id="1", url="https://boards.greenhouse.io/acme/jobs/1", last_seen_at=aged))
            repo.add(make_posting(external_id="2", url="https://boards.greenhouse.io/acme/jobs/2", last_seen_at=aged))

        records = [
            make_record(external_id="3", url="https://boards.greenhouse.io/acme/jobs/3"),
            # Moves onto the url already held by job 2
            make_record(external_id="1", url="https://boards.greenhouse.io/acme/jobs/2"),
            make_record(external_id="4", url="https://boards.greenhouse.io/acme/jobs/4"),
        ]
        stats = SourceRunStats(name="Acme", provider="greenhouse")
        service = build_service(env, SourcesConfig(sources=[]), rules)

        service._persist(records, stats)

        assert stats.added == 2
        assert stats.updated == 0
        assert stats.invalid == 1

        with get_session() as session:
            stored = {posting.external_id: posting for posting in JobPostingRepository(session).list()}
        assert sorted(stored) == ["1", "2", "3", "4"]
        assert stored["1"].url == "https://boards.greenhouse.io/acme/jobs/1"

    def test_invalid_records_are_reported_per_run(self):
        start = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)
        result = FetchRunResult(run_started_at=start, run_finished_at=start)
        result.by_source["Acme"] = SourceRunStats(name="Acme", provider="greenhouse", added=2, invalid=1)

        assert result.invalid == 1
        assert result.to_dict()["invalid"] == 1
        assert result.total == 2


class TestFetchRunResult:
    """Tests for FetchRunResult aggregation."""

    def test_aggregation(self):
        start = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)
        result = FetchRunResult(run_started_at=start, run_finished_at=start + timedelta(seconds=90))
        result.by_source["Acme"] = SourceRunStats(
            name="Acme", provider="greenhouse", added=3, updated=1, duplicates=2
        )
        result.by_source["Globex"] = SourceRunStats(
            name="Globex", provider="greenhouse", added=1, skipped_by_status=4
        )
        result.by_source["Initech"] = SourceRunStats(
            name="Initech", provider="lever", error="Error fetching from Initech (lever): boom"
        )
        result.errors.append(result.by_source["Initech"].error)

        assert result.added == 4
        assert result.updated == 1
        assert result.total == 5
        assert result.skipped_by_status == 4
        assert result.duplicates == 2
        assert result.by_provider == {"greenhouse": 5}
        assert result.total_duration_seconds == 90.0
        assert result.had_errors is True

    def test_to_dict(self):
        start = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)
        result = FetchRunResult(run_started_at=start, run_finished_at=start)
        result.by_source["Acme"] = SourceRunStats(name="Acme", provider="lever", fetched=2, added=2)

        data = result.to_dict()

        assert data["total"] == 2
        assert data["by_source"]["Acme"] == {
            "provider": "lever",
            "fetched": 2,
            "added": 2,
            "updated": 0,
            "skipped_by_status": 0,
            "duplicates": 0,
            "invalid": 0,
            "error": None,
        }
        assert data["skipped"] is False


class TestSourceRunStats:
    def test_defaults(self):
        stats = SourceRunStats(name="Acme", provider="greenhouse")

        assert stats.fetched == 0
        assert stats.total == 0
        assert stats.had_errors is False
        assert stats.duration_seconds == 0.0
