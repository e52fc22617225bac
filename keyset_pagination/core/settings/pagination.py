"""Pagination settings.

Environment variables use PAGINATION_ prefix.
Example: PAGINATION_DEFAULT_LIMIT=25, PAGINATION_MAX_LIMIT=200
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationSettings(BaseSettings):
    """Cursor pagination defaults.

    Attributes:
        default_limit: Page size when a request gives neither ``first`` nor ``last``.
        max_limit: Largest page size a request may ask for.
        default_sort_key: Sort key used when a request names none and the
            registry declares no default of its own.
        include_total_count: Whether fully resolved connections run the
            count query.
    """

    default_limit: int = Field(
        default=10,
        ge=0,
        le=10000,
        description="Default page size when limit not specified",
    )
    max_limit: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum allowed page size (hard limit)",
    )
    default_sort_key: str | None = Field(
        default=None,
        description="Fallback sort key name",
    )
    include_total_count: bool = Field(
        default=True,
        description="Run the count query when resolving a full connection",
    )

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _default_within_max(self) -> PaginationSettings:
        if self.default_limit > self.max_limit:
            raise ValueError(
                f"default_limit ({self.default_limit}) must not exceed max_limit ({self.max_limit})"
            )
        return self
