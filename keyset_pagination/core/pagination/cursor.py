"""Cursor encoding and decoding for keyset pagination.

A cursor is the tuple of sort-key values of one row, in sort key order,
serialized as a compact JSON array and URL-safe base64 encoded. Cursors
are opaque to clients; they only round-trip them.

Example, for sort key ``[(created_at, desc), (id, desc)]``:
    values:  ["2025-01-15T10:30:00.000+00:00", 42]
    encoded: WyIyMDI1LTAxLTE1VDEwOjMwOjAwLjAwMCswMDowMCIsNDJd

Values JSON cannot carry natively are wrapped in a one-key tag object
(``{"$dec": "10.50"}``, ``{"$uuid": ...}``, ``{"$date": ...}``, ``{"$dt": ...}``)
so they decode to the same Python type. Timestamp columns stay plain ISO
strings at the configured precision.

Decoding is always checked against the resolved sort key, so a cursor
minted for one sort key cannot be replayed against another of different
arity.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from keyset_pagination.core.pagination.exceptions import InvalidCursorError
from keyset_pagination.core.pagination.sort_keys import ColumnSpec, SortKeySpec, TimestampValue

_DATETIME_TAG = "$dt"
_DATE_TAG = "$date"
_DECIMAL_TAG = "$dec"
_UUID_TAG = "$uuid"


class CursorCodec:
    """Encode rows to cursors and decode cursors to value tuples.

    Usage:
        cursor = CursorCodec.encode(post, spec)
        values = CursorCodec.decode(cursor, spec)  # (created_at, id)
    """

    @staticmethod
    def encode(row: Any, spec: SortKeySpec) -> str:
        """Project ``row`` over ``spec`` and serialize the tuple.

        Args:
            row: ORM instance, row object or mapping holding every sort column.
            spec: Resolved sort key.

        Returns:
            URL-safe base64 encoded string.
        """
        values = [
            CursorCodec._serialize_value(column, CursorCodec.read_value(row, column.column))
            for column in spec
        ]
        json_str = json.dumps(values, separators=(",", ":"))
        return base64.urlsafe_b64encode(json_str.encode()).decode()

    @staticmethod
    def decode(token: str, spec: SortKeySpec) -> tuple[Any, ...]:
        """Decode a cursor into the value tuple for ``spec``.

        Raises:
            InvalidCursorError: If the token is corrupted or its arity
                differs from the sort key.
        """
        if not isinstance(token, str) or not token:
            raise InvalidCursorError("cursor must be a non-empty string")

        try:
            json_str = base64.urlsafe_b64decode(token.encode()).decode()
            payload = json.loads(json_str)
        except ValueError as e:
            raise InvalidCursorError("cursor is not decodable") from e

        if not isinstance(payload, list):
            raise InvalidCursorError("cursor payload is not an array")
        if len(payload) != len(spec):
            raise InvalidCursorError(
                f"expected {len(spec)} values for sort key {spec.name}, got {len(payload)}"
            )

        return tuple(
            CursorCodec._deserialize_value(column, value)
            for column, value in zip(spec, payload, strict=True)
        )

    @staticmethod
    def read_value(row: Any, column: str) -> Any:
        """Read one sort column from a mapping or an attribute-style row."""
        if isinstance(row, Mapping):
            return row[column]
        return getattr(row, column)

    @staticmethod
    def _serialize_value(column: ColumnSpec, value: Any) -> Any:
        if isinstance(value, datetime):
            if isinstance(column.value_kind, TimestampValue):
                return value.isoformat(timespec=column.value_kind.precision)
            return {_DATETIME_TAG: value.isoformat()}
        if isinstance(value, date):
            return {_DATE_TAG: value.isoformat()}
        if isinstance(value, Decimal):
            return {_DECIMAL_TAG: str(value)}
        if isinstance(value, UUID):
            return {_UUID_TAG: str(value)}
        return value

    @staticmethod
    def _deserialize_value(column: ColumnSpec, value: Any) -> Any:
        if isinstance(value, dict):
            return CursorCodec._deserialize_tagged(column, value)
        if value is None or not isinstance(column.value_kind, TimestampValue):
            return value
        try:
            return datetime.fromisoformat(value)
        except (TypeError, ValueError) as e:
            raise InvalidCursorError(f"invalid timestamp for {column.column}") from e

    @staticmethod
    def _deserialize_tagged(column: ColumnSpec, value: dict[str, Any]) -> Any:
        if len(value) != 1:
            raise InvalidCursorError(f"invalid value for {column.column}")
        ((tag, raw),) = value.items()
        parse = _TAG_PARSERS.get(tag)
        if parse is None or not isinstance(raw, str):
            raise InvalidCursorError(f"invalid value for {column.column}")
        try:
            return parse(raw)
        except (ArithmeticError, ValueError) as e:
            raise InvalidCursorError(f"invalid value for {column.column}") from e


_TAG_PARSERS: dict[str, Callable[[str], Any]] = {
    _DATETIME_TAG: datetime.fromisoformat,
    _DATE_TAG: date.fromisoformat,
    _DECIMAL_TAG: Decimal,
    _UUID_TAG: UUID,
}


__all__ = ["CursorCodec"]
