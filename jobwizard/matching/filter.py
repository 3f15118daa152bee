"""Keyword and location filter for fetched postings."""

import re
from typing import Any, Dict, Optional

from .text import matches_any, normalize_keywords, normalize_text, word_pattern

_US_LOCATION = re.compile(r"\b(usa|us|united states|america)\b")
_OPEN_LOCATION = re.compile(r"\b(remote|anywhere|worldwide|global|flexible|world wide)\b")
_COUNTRY_QUALIFIER = re.compile(r"\b(country|countries)\b")

NON_US_COUNTRIES = [
    "afghanistan", "albania", "algeria", "argentina", "australia", "austria",
    "bangladesh", "belgium", "brazil", "bulgaria", "cambodia", "canada", "chile",
    "china", "colombia", "croatia", "cuba", "denmark", "egypt", "estonia",
    "finland", "france", "germany", "ghana", "greece", "hungary", "iceland",
    "india", "indonesia", "iran", "iraq", "ireland", "israel", "italy", "japan",
    "jordan", "kenya", "korea", "kuwait", "latvia", "lebanon", "lithuania",
    "luxembourg", "malaysia", "mexico", "morocco", "myanmar", "netherlands",
    "new zealand", "nigeria", "norway", "pakistan", "philippines", "poland",
    "portugal", "qatar", "romania", "russia", "saudi arabia", "singapore",
    "slovakia", "south africa", "spain", "sri lanka", "sweden", "switzerland",
    "taiwan", "thailand", "turkey", "ukraine", "united kingdom", "uk",
    "venezuela", "vietnam", "yemen", "zimbabwe",
]

_RESTRICTED_LOCATIONS = frozenset(
    variant
    for country in NON_US_COUNTRIES
    for variant in (country, f"{country} remote", f"remote {country}")
)


def location_restricted(location: Optional[str]) -> bool:
    """
    True when a location names a single non-US country.

    US locations and open remote locations ("Remote", "Worldwide") are
    allowed unless they mention specific countries.
    """
    if not location or not str(location).strip():
        return False

    loc = normalize_text(location)
    if _US_LOCATION.search(loc):
        return False
    if _OPEN_LOCATION.search(loc) and not _COUNTRY_QUALIFIER.search(loc):
        return False
    return loc in _RESTRICTED_LOCATIONS


class JobFilter:
    """
    Keeps developer roles that match include keywords and avoid exclude keywords.

    Args:
        job_filters: ``job_filters`` section (include_keywords, exclude_keywords,
            optional require_include_match)
        ranking: ``ranking`` section, consulted for require_include_match when
            job_filters does not set it

    Example:
        >>> job_filter = JobFilter({"include_keywords": ["rails"]})
        >>> job_filter.keep("Rails Engineer", "Build with Rails")
        True
        >>> job_filter.keep("Tax Analyst", "Process returns")
        False
    """

    def __init__(self, job_filters: Dict[str, Any], ranking: Optional[Dict[str, Any]] = None):
        job_filters = job_filters or {}
        self.include_keywords = normalize_keywords(job_filters.get("include_keywords"))
        self.exclude_keywords = normalize_keywords(job_filters.get("exclude_keywords"))
        self._include_patterns = [word_pattern(keyword) for keyword in self.include_keywords]
        self._exclude_patterns = [word_pattern(keyword) for keyword in self.exclude_keywords]

        if "require_include_match" in job_filters:
            require = job_filters["require_include_match"]
        else:
            require = (ranking or {}).get("require_include_match")
        self.require_include_match = True if require is None else bool(require)

    def keep(self, title: str, description: str, location: Optional[str] = None) -> bool:
        """Return True if the posting passes location, exclude and include checks."""
        if location_restricted(location):
            return False

        text = normalize_text(f"{title or ''} {description or ''} {location or ''}")

        if matches_any(text, self._exclude_patterns):
            return False

        if self.require_include_match and not matches_any(text, self._include_patterns):
            return False

        return True
