"""Keyword filtering, relevance scoring and combined screening of postings."""

from .filter import NON_US_COUNTRIES, JobFilter, location_restricted
from .ranker import DEFAULT_MIN_KEEP_SCORE, JobRanker
from .screener import JobScreener, ScreeningResult
from .text import normalize_keywords, normalize_text, normalize_weights

__all__ = [
    "JobFilter",
    "JobRanker",
    "JobScreener",
    "ScreeningResult",
    "location_restricted",
    "normalize_text",
    "normalize_keywords",
    "normalize_weights",
    "NON_US_COUNTRIES",
    "DEFAULT_MIN_KEEP_SCORE",
]
