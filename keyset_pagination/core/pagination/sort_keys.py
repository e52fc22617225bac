"""Sort key registry.

A sort key is a named, ordered list of columns that together define a
total order over the paginated table. The column order is both the
``ORDER BY`` order and the order of values inside a cursor.

Usage:
    registry = SortKeyRegistry(
        {
            "newest": [
                ("created_at", "desc", True, TimestampValue()),
                ("id", "desc", True),
            ],
            "title": [
                ColumnSpec("title", SortDirection.ASC, reversible=True, value_kind=CastValue("text")),
                ColumnSpec("id", SortDirection.ASC, reversible=True),
            ],
        },
        default="newest",
    )
    spec = registry.resolve("title")

The last column of every sort key should be unique per row (usually the
primary key), otherwise rows sharing all sort values may be skipped or
repeated across pages. The registry cannot check this.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from keyset_pagination.core.pagination.exceptions import (
    SortKeyConfigError,
    SortKeyNotFoundError,
    SortKeyUndefinedError,
)
from keyset_pagination.core.pagination.expressions import SortDirection, TimestampPrecision

_PRECISIONS: tuple[TimestampPrecision, ...] = ("seconds", "milliseconds", "microseconds")


@dataclass(frozen=True, slots=True)
class PlainValue:
    """Column compared as-is."""


@dataclass(frozen=True, slots=True)
class TimestampValue:
    """Timestamp column, truncated to ``precision`` on both sides of a seek."""

    precision: TimestampPrecision = "milliseconds"

    def __post_init__(self) -> None:
        if self.precision not in _PRECISIONS:
            raise SortKeyConfigError(f"Unknown timestamp precision {self.precision!r}")


@dataclass(frozen=True, slots=True)
class CastValue:
    """Column cast to ``type_name`` before comparison."""

    type_name: str


ValueKind = PlainValue | TimestampValue | CastValue


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """One column of a sort key.

    Attributes:
        column: Attribute/column name on the paginated model.
        direction: Forward sort direction.
        reversible: Whether direction and seek operator flip on backward pages.
        value_kind: How the column is compared.
    """

    column: str
    direction: SortDirection = SortDirection.ASC
    reversible: bool = False
    value_kind: ValueKind = field(default_factory=PlainValue)

    @classmethod
    def parse(cls, value: ColumnSpec | Sequence[Any]) -> ColumnSpec:
        """Build from a ``ColumnSpec`` or a ``(column, direction[, reversible[, kind]])`` tuple."""
        if isinstance(value, ColumnSpec):
            return value
        if isinstance(value, str) or not 1 <= len(value) <= 4:
            raise SortKeyConfigError(f"Invalid column declaration {value!r}")

        column, *rest = value
        direction = SortDirection.ASC
        if rest:
            try:
                direction = SortDirection.parse(rest[0])
            except ValueError as e:
                raise SortKeyConfigError(f"Invalid direction {rest[0]!r} for {column!r}") from e
        reversible = bool(rest[1]) if len(rest) > 1 else False
        value_kind = rest[2] if len(rest) > 2 else PlainValue()
        if not isinstance(value_kind, PlainValue | TimestampValue | CastValue):
            raise SortKeyConfigError(f"Invalid value kind {value_kind!r} for {column!r}")
        return cls(column, direction, reversible, value_kind)


@dataclass(frozen=True, slots=True)
class SortKeySpec:
    """Resolved sort key: name plus ordered, non-empty column list."""

    name: str
    columns: tuple[ColumnSpec, ...]

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self.columns)

    @property
    def column_names(self) -> list[str]:
        return [spec.column for spec in self.columns]

    @property
    def has_reversible(self) -> bool:
        return any(spec.reversible for spec in self.columns)


class SortKeyRegistry:
    """Immutable name -> ``SortKeySpec`` mapping, validated on construction."""

    __slots__ = ("_default", "_specs")

    def __init__(
        self,
        sort_keys: Mapping[str, Sequence[ColumnSpec | Sequence[Any]]],
        *,
        default: str | None = None,
    ) -> None:
        if not sort_keys:
            raise SortKeyConfigError("sortKeys are not defined")

        specs: dict[str, SortKeySpec] = {}
        for name, declared in sort_keys.items():
            if not name:
                raise SortKeyConfigError("Sort key name must not be empty")
            columns = tuple(ColumnSpec.parse(item) for item in declared)
            if not columns:
                raise SortKeyConfigError(f"Sort key {name} has no columns")
            names = [spec.column for spec in columns]
            if len(set(names)) != len(names):
                raise SortKeyConfigError(f"Sort key {name} lists a column more than once")
            specs[name] = SortKeySpec(name=name, columns=columns)

        if default is not None and default not in specs:
            raise SortKeyConfigError(f"Default sort key {default} is not defined")

        self._specs: Mapping[str, SortKeySpec] = MappingProxyType(specs)
        self._default = default

    @property
    def default(self) -> str | None:
        return self._default

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def resolve(self, name: str | None = None) -> SortKeySpec:
        """Look up a sort key, falling back to the registry default.

        Raises:
            SortKeyUndefinedError: Neither ``name`` nor a default is set.
            SortKeyNotFoundError: ``name`` is not registered.
        """
        name = name or self._default
        if not name:
            raise SortKeyUndefinedError
        try:
            return self._specs[name]
        except KeyError:
            raise SortKeyNotFoundError(name) from None

    def with_default(self, default: str | None) -> SortKeyRegistry:
        """Return a registry sharing these specs with a different default."""
        if default is not None and default not in self._specs:
            raise SortKeyConfigError(f"Default sort key {default} is not defined")
        clone = object.__new__(SortKeyRegistry)
        clone._specs = self._specs
        clone._default = default
        return clone


__all__ = [
    "CastValue",
    "ColumnSpec",
    "PlainValue",
    "SortKeyRegistry",
    "SortKeySpec",
    "TimestampValue",
    "ValueKind",
]
