"""Structured logging helpers shared by every Job Wizard component."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges a fixed component field into each call's extra."""

    def process(self, msg, kwargs):
        """Merge adapter fields with the call's extra (call values win)."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Return a logger, optionally tagging every record with a component.

    Args:
        name: Logger name (typically __name__)
        component: Optional component label such as "fetcher" or "rules"

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="pipeline")
        >>> logger.info("Fetch started", extra={"event": "fetch.run.started"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
