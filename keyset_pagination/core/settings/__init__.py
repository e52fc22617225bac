"""Pydantic Settings v2 configuration.

Settings are read from the environment (and an optional ``.env`` file),
validated once and cached:

    from keyset_pagination.core.settings import get_pagination_settings

    settings = get_pagination_settings()
    print(settings.max_limit)

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .loader import get_logging_settings, get_pagination_settings
from .logs import LoggingSettings
from .pagination import PaginationSettings

__all__ = [
    "LoggingSettings",
    "PaginationSettings",
    "get_logging_settings",
    "get_pagination_settings",
]
