"""Logging infrastructure.

Basic usage:
    import logging

    from keyset_pagination.infra.logging import get_lazy_logger, setup_logging

    setup_logging()  # once, at process start
    logger = logging.getLogger(__name__)
    logger.info("Page served", extra={"sort_key": "newest"})

    # Lazy evaluation for expensive debug output
    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Seek: {render(predicate)}")  # Only runs if DEBUG enabled
"""

from keyset_pagination.infra.logging.config import configure_logging, setup_logging
from keyset_pagination.infra.logging.formatters import JSONFormatter
from keyset_pagination.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "configure_logging",
    "get_lazy_logger",
    "setup_logging",
]
