"""Persist token usage and cost of AI calls."""

from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from jobwizard.domain.models import AiUsage
from jobwizard.logging import get_logger
from jobwizard.persistence import AiUsageRepository, PersistenceError, get_session

from .pricing import estimate_cents

logger = get_logger(__name__, component="ai")


def _token_count(usage: Any, name: str) -> int:
    """Read a token count from a dict or an SDK usage object."""
    if usage is None:
        return 0
    value = usage.get(name) if isinstance(usage, Mapping) else getattr(usage, name, None)
    return int(value or 0)


class UsageRecorder:
    """Writes one ``AiUsage`` row per AI call.

    Accounting must never break generation, so failures are logged and
    ``log()`` returns None.
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractContextManager] = get_session,
        fallback_prices: Optional[Mapping[str, float]] = None,
    ):
        self._session_factory = session_factory
        self.fallback_prices = fallback_prices

    def log(
        self,
        model: str,
        feature: str,
        usage: Any,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Optional[AiUsage]:
        """Record usage of one call.

        Args:
            model: Model name used for pricing
            feature: What the call was for, e.g. "cover_letter"
            usage: Mapping or SDK object with prompt_tokens, completion_tokens
                and optionally cached_input_tokens
            meta: Extra details stored as JSON

        Returns:
            The stored AiUsage, or None when recording failed
        """
        prompt_tokens = _token_count(usage, "prompt_tokens")
        completion_tokens = _token_count(usage, "completion_tokens")
        cached_input_tokens = _token_count(usage, "cached_input_tokens")

        meta = dict(meta or {})
        if prompt_tokens == 0 and completion_tokens == 0:
            meta["missing_usage"] = True

        try:
            record = AiUsage(
                model=model,
                feature=feature,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                cached_input_tokens=cached_input_tokens,
                cost_cents=estimate_cents(
                    model,
                    prompt_tokens,
                    completion_tokens,
                    cached_input_tokens,
                    fallback=self.fallback_prices,
                ),
                meta=meta,
            )
            with self._session_factory() as session:
                stored = AiUsageRepository(session).add(record)
        except (PersistenceError, ValidationError, ValueError) as e:
            logger.error(
                f"Failed to record AI usage: {e}",
                extra={"event": "ai.usage.failed", "model": model, "feature": feature},
            )
            return None

        logger.info(
            f"Recorded AI usage for {feature}",
            extra={
                "event": "ai.usage.recorded",
                "model": model,
                "feature": feature,
                "total_tokens": stored.total_tokens,
                "cost_cents": stored.cost_cents,
            },
        )
        return stored
