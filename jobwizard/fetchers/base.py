"""Base fetcher class with shared functionality for all job board fetchers.

Subclasses only know their provider: where the jobs live and how one
provider item maps to a ``JobRecord``. The base class owns the HTTP
session, error mapping and the screening pass every fetched job goes
through.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from jobwizard.domain.models import JobRecord
from jobwizard.logging import get_logger
from jobwizard.matching.screener import JobScreener
from jobwizard.utils.html import clean_html
from jobwizard.utils.text import titleize
from jobwizard.utils.timestamps import parse_timestamp

from .exceptions import (
    FetcherConfigurationError,
    FetcherHTTPError,
    FetcherResponseError,
    FetcherTimeoutError,
)

logger = get_logger(__name__, component="fetcher")

NOT_SPECIFIED = "Not specified"


class BaseFetcher(ABC):
    """Base class for all job board fetchers.

    Attributes:
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
        max_jobs: Maximum provider items to process per fetch (0 = unlimited)
        screener: Rules engine, filter and ranker pass; built from the
            current rules on first use when not given
    """

    PROVIDER: str = ""

    def __init__(
        self,
        timeout: int = 30,
        user_agent: str = "JobWizard/1.0",
        max_jobs: int = 500,
        screener: Optional[JobScreener] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Raises:
            FetcherConfigurationError: If timeout is outside 5-300 seconds or
                user_agent is empty
        """
        if not 5 <= timeout <= 300:
            raise FetcherConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise FetcherConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()
        self.max_jobs = max_jobs
        self._screener = screener

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    @property
    def screener(self) -> JobScreener:
        if self._screener is None:
            self._screener = JobScreener.from_rules()
        return self._screener

    def fetch(self, slug: Optional[str] = None) -> List[JobRecord]:
        """Fetch, normalize and screen the jobs of one board.

        Args:
            slug: Board identifier at the provider (ignored by aggregators)

        Returns:
            Kept jobs with their score. Empty when the board does not exist
            (404) or the provider is having trouble (5xx).

        Raises:
            FetcherError: On timeouts, connection failures, other HTTP
                errors and unparseable responses
        """
        label = slug or self.PROVIDER
        try:
            items = self._fetch_items(slug)
        except FetcherHTTPError as e:
            if not e.is_transient:
                raise
            logger.warning(
                f"{self.PROVIDER} returned HTTP {e.status_code} for {label}",
                extra={
                    "event": "fetcher.fetch.skipped",
                    "provider": self.PROVIDER,
                    "slug": label,
                    "status_code": e.status_code,
                },
            )
            return []

        items = self._truncate_jobs(items, label)

        kept = []
        dropped = {"rules": 0, "filter": 0, "score": 0, "invalid": 0}
        for item in items:
            try:
                record = self._to_record(item, slug)
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                dropped["invalid"] += 1
                logger.warning(
                    f"Skipping malformed {self.PROVIDER} job",
                    extra={
                        "event": "fetcher.job.invalid",
                        "provider": self.PROVIDER,
                        "slug": label,
                        "error": str(e),
                    },
                )
                continue

            if record is None:
                continue

            result = self.screener.screen(record)
            if not result.kept:
                dropped[result.stage] += 1
                if result.reasons:
                    logger.info(
                        f"Rejected job '{record.title}' at {record.company}: "
                        f"{', '.join(result.reasons)}",
                        extra={"event": "fetcher.job.rejected", "provider": self.PROVIDER},
                    )
                continue

            kept.append(record.model_copy(update={"score": result.score}))

        logger.info(
            f"Fetched {len(kept)} of {len(items)} {self.PROVIDER} jobs for {label}",
            extra={
                "event": "fetcher.fetch.completed",
                "provider": self.PROVIDER,
                "slug": label,
                "fetched": len(items),
                "kept": len(kept),
                "dropped_by_rules": dropped["rules"],
                "dropped_by_filter": dropped["filter"],
                "dropped_by_score": dropped["score"],
                "invalid": dropped["invalid"],
            },
        )
        return kept

    @abstractmethod
    def _fetch_items(self, slug: Optional[str]) -> List[Any]:
        """Return the raw provider items (dicts or XML elements) for a board."""

    @abstractmethod
    def _to_record(self, item: Any, slug: Optional[str]) -> Optional[JobRecord]:
        """Map one provider item to a JobRecord, or None to skip it."""

    def _make_request(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        as_text: bool = False,
    ) -> Any:
        """GET a provider URL and return parsed JSON (or the body text).

        Raises:
            FetcherHTTPError: On 4xx/5xx status or connection failure
            FetcherTimeoutError: On request timeout
            FetcherResponseError: On invalid JSON
        """
        logger.debug(
            f"HTTP GET {url}",
            extra={
                "event": "fetcher.request",
                "provider": self.PROVIDER,
                "url": url,
                "timeout": self.timeout,
            },
        )

        try:
            response = self._session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "fetcher.request.timeout", "provider": self.PROVIDER, "url": url},
            )
            raise FetcherTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "fetcher.request.failed",
                    "provider": self.PROVIDER,
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise FetcherHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            transient = response.status_code == 404 or response.status_code >= 500
            logger.log(
                logging.WARNING if transient else logging.ERROR,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "fetcher.request.http_error",
                    "provider": self.PROVIDER,
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise FetcherHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        if as_text:
            return response.text

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={"event": "fetcher.response.invalid", "provider": self.PROVIDER, "url": url},
            )
            raise FetcherResponseError(f"Failed to parse JSON response from {url}: {e}") from e

    def _truncate_jobs(self, items: List[Any], label: str) -> List[Any]:
        if self.max_jobs > 0 and len(items) > self.max_jobs:
            logger.warning(
                "Truncating jobs to max_jobs limit",
                extra={
                    "event": "fetcher.fetch.truncated",
                    "provider": self.PROVIDER,
                    "slug": label,
                    "total": len(items),
                    "max": self.max_jobs,
                },
            )
            return items[: self.max_jobs]
        return items

    @staticmethod
    def _clean(html_text: Optional[str]) -> str:
        return clean_html(html_text or "")

    @staticmethod
    def _company_from_slug(slug: Optional[str]) -> str:
        return titleize(slug or "")

    def _parse_date(self, value: Any, milliseconds: bool = False):
        parsed = parse_timestamp(value, milliseconds=milliseconds)
        if parsed is None and value not in (None, ""):
            logger.debug(
                "Unparseable timestamp",
                extra={"event": "fetcher.timestamp.invalid", "provider": self.PROVIDER, "value": str(value)},
            )
        return parsed
