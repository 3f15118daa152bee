"""Tests for AI cost estimation, usage recording and the usage report."""

from contextlib import contextmanager
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from jobwizard.ai import MODEL_PRICES, UsageRecorder, UsageStats, estimate_cents, prices_for
from jobwizard.domain.models import AiUsage
from jobwizard.persistence import (
    AiUsageRepository,
    DatabaseConnectionError,
    close_database,
    get_session,
    init_database,
)


@pytest.fixture
def database(tmp_path):
    init_database(f"sqlite:///{tmp_path / 'ai.db'}")
    yield
    close_database()


class TestPricing:
    def test_known_model(self):
        assert prices_for("gpt-4") is MODEL_PRICES["gpt-4"]

    def test_unknown_model_uses_default_fallback(self):
        prices = prices_for("claude-3-5-sonnet")

        assert (prices.input, prices.cached_input, prices.output) == (0.15, 0.075, 0.60)

    def test_unknown_model_uses_given_fallback(self):
        prices = prices_for("custom", {"input": 10.0, "cached_input": 5.0, "output": 20.0})

        assert prices.output == 20.0

    def test_estimate_cents(self):
        assert estimate_cents("gpt-4", 1000, 500) == 6

    def test_cached_tokens_are_priced_separately(self):
        assert estimate_cents("gpt-4", 0, 0, cached_input_tokens=100_000) == 150

    def test_estimate_with_fallback(self):
        fallback = {"input": 10.0, "cached_input": 5.0, "output": 20.0}

        assert estimate_cents("custom", 100_000, 50_000, fallback=fallback) == 200

    @pytest.mark.parametrize("prompt_tokens,expected", [(166, 0), (167, 1), (250, 1)])
    def test_rounds_half_up(self, prompt_tokens, expected):
        assert estimate_cents("gpt-4", prompt_tokens, 0) == expected

    def test_cheap_call_rounds_to_zero(self):
        assert estimate_cents("gpt-4o-mini", 1200, 300) == 0


class TestUsageRecorder:
    def test_log_from_mapping(self, database):
        recorder = UsageRecorder()

        stored = recorder.log(
            "gpt-4",
            "cover_letter",
            {"prompt_tokens": 1000, "completion_tokens": 500},
            meta={"application_id": 7},
        )

        assert stored.id is not None
        assert stored.cost_cents == 6
        assert stored.total_tokens == 1500
        assert stored.meta == {"application_id": 7}
        assert stored.created_at is not None

    def test_log_from_sdk_object(self, database):
        usage = SimpleNamespace(prompt_tokens=2000, completion_tokens=100, cached_input_tokens=None)

        stored = UsageRecorder().log("gpt-4o-mini", "resume", usage)

        assert stored.prompt_tokens == 2000
        assert stored.cached_input_tokens == 0

    def test_missing_usage_is_flagged(self, database):
        stored = UsageRecorder().log("gpt-4o-mini", "resume", None)

        assert stored.cost_cents == 0
        assert stored.meta == {"missing_usage": True}

    def test_fallback_prices(self, database):
        recorder = UsageRecorder(fallback_prices={"input": 10.0, "cached_input": 5.0, "output": 20.0})

        stored = recorder.log("claude-3-5-haiku", "cover_letter", {"prompt_tokens": 100_000})

        assert stored.cost_cents == 100

    def test_persistence_failure_returns_none(self):
        @contextmanager
        def broken_session():
            raise DatabaseConnectionError("database is locked")
            yield  # pragma: no cover

        recorder = UsageRecorder(session_factory=broken_session)

        assert recorder.log("gpt-4", "resume", {"prompt_tokens": 10}) is None

    def test_invalid_record_returns_none(self, database):
        assert UsageRecorder().log("gpt-4", "  ", {"prompt_tokens": 10}) is None


class TestUsageStats:
    @staticmethod
    def add_usage(feature, cost_cents, created_at):
        with get_session() as session:
            AiUsageRepository(session).add(
                AiUsage(model="gpt-4", feature=feature, cost_cents=cost_cents, created_at=created_at)
            )

    def test_month_to_date(self, database):
        self.add_usage("cover_letter", 40, datetime(2025, 10, 31, 23, 0, tzinfo=timezone.utc))
        self.add_usage("cover_letter", 25, datetime(2025, 11, 2, 9, 0, tzinfo=timezone.utc))
        self.add_usage("resume", 10, datetime(2025, 11, 3, 9, 0, tzinfo=timezone.utc))
        self.add_usage("cover_letter", 15, datetime(2025, 11, 4, 9, 0, tzinfo=timezone.utc))

        with get_session() as session:
            report = UsageStats(session).month_to_date(datetime(2025, 11, 20, tzinfo=timezone.utc))

        assert report["total_cents"] == 50
        assert report["total_dollars"] == 0.5
        assert report["by_feature"] == {"cover_letter": 40, "resume": 10}
        assert report["count"] == 3
        assert [usage.cost_cents for usage in report["recent"]] == [15, 10, 25]

    def test_recent_is_limited_to_ten(self, database):
        for day in range(1, 13):
            self.add_usage("resume", 1, datetime(2025, 11, day, tzinfo=timezone.utc))

        with get_session() as session:
            report = UsageStats(session).month_to_date(datetime(2025, 11, 20, tzinfo=timezone.utc))

        assert report["count"] == 12
        assert len(report["recent"]) == 10

    def test_empty_month(self, database):
        with get_session() as session:
            report = UsageStats(session).month_to_date()

        assert report == {
            "total_cents": 0,
            "total_dollars": 0.0,
            "by_feature": {},
            "count": 0,
            "recent": [],
        }
