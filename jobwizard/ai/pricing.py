"""Model price table and cost estimation.

Prices are USD per one million tokens.
"""

import math
from typing import Dict, Mapping, Optional

from jobwizard.config.models import ModelPrice

MODEL_PRICES: Dict[str, ModelPrice] = {
    "gpt-4o-mini": ModelPrice(input=0.15, cached_input=0.075, output=0.60),
    "gpt-4": ModelPrice(input=30.0, cached_input=15.0, output=60.0),
    "gpt-4-turbo": ModelPrice(input=10.0, cached_input=5.0, output=30.0),
    "gpt-3.5-turbo": ModelPrice(input=0.50, cached_input=0.25, output=1.50),
}

DEFAULT_FALLBACK = {"input": 0.15, "cached_input": 0.075, "output": 0.60}

_PER_TOKEN = 1_000_000.0


def prices_for(model: str, fallback: Optional[Mapping[str, float]] = None) -> ModelPrice:
    """Price of a known model, else the fallback (env) prices."""
    if model in MODEL_PRICES:
        return MODEL_PRICES[model]
    return ModelPrice(**(fallback or DEFAULT_FALLBACK))


def estimate_cents(
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
    cached_input_tokens: int = 0,
    fallback: Optional[Mapping[str, float]] = None,
) -> int:
    """Estimate the cost of a call in cents, rounded half up.

    Example:
        >>> estimate_cents("gpt-4", prompt_tokens=1000, completion_tokens=500)
        6
    """
    prices = prices_for(model, fallback)
    total_usd = (
        prompt_tokens / _PER_TOKEN * prices.input
        + cached_input_tokens / _PER_TOKEN * prices.cached_input
        + completion_tokens / _PER_TOKEN * prices.output
    )
    return int(math.floor(total_usd * 100 + 0.5))
