"""Utility functions for time handling, HTML cleaning and text helpers."""

from .html import clean_html
from .text import slugify, titleize, truncate, unique
from .timestamps import (
    ensure_utc,
    format_date,
    format_timestamp,
    parse_iso_datetime,
    parse_timestamp,
    unix_to_timestamp,
    utc_now,
)

__all__ = [
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "parse_timestamp",
    "unix_to_timestamp",
    "format_timestamp",
    "format_date",
    # HTML
    "clean_html",
    # Text
    "titleize",
    "slugify",
    "truncate",
    "unique",
]
