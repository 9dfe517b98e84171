"""Logging configuration for the responsive images service.

Engine modules log structlog events named ``images.<stage>.<outcome>``
(``images.cache.miss``, ``images.scaling.rejected``) with the request path
as keyword context. Every request that falls back to the origin is logged
once, under the event of the error that caused it. ``debug`` lowers the
``src.responsive_images`` logger to DEBUG so cache hits and eligibility
decisions become visible.
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(*, debug: bool = False) -> None:
    """Configure stdlib logging and route structlog through it."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    logging.getLogger("src.responsive_images").setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
