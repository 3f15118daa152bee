"""Test helper utilities for Job Wizard tests."""

from .data import (
    CONFIG_FIXTURES,
    PROVIDER_FIXTURES,
    load_provider_response,
    make_posting,
    make_record,
    ruby_rules,
)
from .fixture_fetcher import FixtureFetcher, load_fixture_jobs

__all__ = [
    "FixtureFetcher",
    "load_fixture_jobs",
    "CONFIG_FIXTURES",
    "PROVIDER_FIXTURES",
    "load_provider_response",
    "make_posting",
    "make_record",
    "ruby_rules",
]
