"""Factory function for instantiating job board fetchers."""

from typing import Dict, Optional, Type

from jobwizard.config.models import AdvancedConfig
from jobwizard.logging import get_logger
from jobwizard.matching.screener import JobScreener

from .base import BaseFetcher
from .exceptions import FetcherConfigurationError
from .greenhouse import GreenhouseFetcher
from .lever import LeverFetcher
from .personio import PersonioFetcher
from .remoteok import RemoteOkFetcher
from .remotive import RemotiveFetcher
from .smartrecruiters import SmartRecruitersFetcher

logger = get_logger(__name__, component="fetcher")

FETCHERS: Dict[str, Type[BaseFetcher]] = {
    "greenhouse": GreenhouseFetcher,
    "lever": LeverFetcher,
    "personio": PersonioFetcher,
    "remoteok": RemoteOkFetcher,
    "remotive": RemotiveFetcher,
    "smartrecruiters": SmartRecruitersFetcher,
}


def get_fetcher(
    provider: str,
    advanced_config: Optional[AdvancedConfig] = None,
    screener: Optional[JobScreener] = None,
) -> BaseFetcher:
    """Instantiate the fetcher for a provider name.

    Args:
        provider: One of the supported provider names (case-insensitive)
        advanced_config: Timeout, user-agent and max_jobs settings
        screener: Shared screening pass; built from the current rules when omitted

    Raises:
        FetcherConfigurationError: If the provider is unknown or the settings are invalid

    Example:
        >>> fetcher = get_fetcher("greenhouse")
        >>> jobs = fetcher.fetch("acme")
    """
    key = getattr(provider, "value", provider)
    key = str(key or "").strip().lower()
    fetcher_class = FETCHERS.get(key)

    if fetcher_class is None:
        supported = ", ".join(sorted(FETCHERS))
        raise FetcherConfigurationError(
            f"Unknown provider: {provider}. Supported providers: {supported}"
        )

    advanced_config = advanced_config or AdvancedConfig()
    logger.debug(
        "Creating fetcher instance",
        extra={"event": "fetcher.created", "provider": key, "fetcher_class": fetcher_class.__name__},
    )
    return fetcher_class(
        timeout=advanced_config.http_request_timeout,
        user_agent=advanced_config.user_agent,
        max_jobs=advanced_config.max_jobs_per_source,
        screener=screener,
    )
