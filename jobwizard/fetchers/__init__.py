"""Fetchers for public job boards and aggregators.

Use the factory function to instantiate fetchers:
    from jobwizard.fetchers import get_fetcher
    fetcher = get_fetcher("lever", advanced_config, screener)
    jobs = fetcher.fetch("acme")

Every fetcher returns screened ``JobRecord`` objects with their score.
"""

from .base import BaseFetcher
from .exceptions import (
    FetcherConfigurationError,
    FetcherError,
    FetcherHTTPError,
    FetcherResponseError,
    FetcherTimeoutError,
)
from .factory import FETCHERS, get_fetcher
from .greenhouse import GreenhouseFetcher
from .lever import LeverFetcher
from .personio import PersonioFetcher
from .remoteok import RemoteOkFetcher
from .remotive import RemotiveFetcher
from .smartrecruiters import SmartRecruitersFetcher

__all__ = [
    # Base and factory
    "BaseFetcher",
    "get_fetcher",
    "FETCHERS",
    # Fetchers
    "GreenhouseFetcher",
    "LeverFetcher",
    "PersonioFetcher",
    "RemoteOkFetcher",
    "RemotiveFetcher",
    "SmartRecruitersFetcher",
    # Exceptions
    "FetcherError",
    "FetcherHTTPError",
    "FetcherTimeoutError",
    "FetcherResponseError",
    "FetcherConfigurationError",
]
