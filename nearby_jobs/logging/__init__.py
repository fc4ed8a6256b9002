"""Structured logging helpers for Nearby Jobs.

Modules log through ``get_logger(__name__, component=...)`` and attach an
``event`` name plus structured fields via ``extra``. configure_logging() in
``nearby_jobs.logging.config`` decides how records are rendered.
"""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """Adds a fixed ``component`` field to every record.

    Fields passed in a call's ``extra`` take precedence over the adapter's.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return the named logger, wrapped to tag records with ``component`` if given.

    Example:
        >>> logger = get_logger(__name__, component="matching")
        >>> logger.info("Ranking finished", extra={"event": "matching.completed"})
    """
    logger = logging.getLogger(name)
    if not component:
        return logger
    return ComponentLoggerAdapter(logger, {"component": component})
