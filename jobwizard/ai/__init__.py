"""AI cost accounting: price table, usage recorder and usage report."""

from .pricing import MODEL_PRICES, estimate_cents, prices_for
from .recorder import UsageRecorder
from .stats import UsageStats

__all__ = [
    "MODEL_PRICES",
    "prices_for",
    "estimate_cents",
    "UsageRecorder",
    "UsageStats",
]
