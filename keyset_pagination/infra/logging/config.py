"""Logging configuration setup.

All handlers sit on the root logger and library loggers propagate to it,
so configuring once at process start is enough.
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from keyset_pagination.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(log_settings: LoggingSettings | None = None, *, force: bool = False) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from keyset_pagination.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(
        log_level=log_settings.level,
        json_logs=log_settings.json_logs,
        service_name=log_settings.service_name,
    )
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    *,
    json_logs: bool = True,
    service_name: str | None = None,
    capture_warnings: bool = True,
) -> None:
    """Configure the root logger with dictConfig.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Emit JSON Lines instead of plain text.
        service_name: Added as ``service`` to every JSON record.
        capture_warnings: Forward Python warnings to logging system.
    """
    if capture_warnings:
        logging.captureWarnings(True)

    formatter: dict[str, Any]
    if json_logs:
        formatter = {
            "()": "keyset_pagination.infra.logging.formatters.JSONFormatter",
            "static": {"service": service_name} if service_name else {},
        }
    else:
        formatter = {"format": TEXT_FORMAT}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {"level": log_level, "handlers": ["console"]},
        }
    )
    logger.debug("Logging configured", extra={"level": log_level, "json": json_logs})
