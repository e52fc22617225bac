"""Unit tests for the sort key registry."""
from __future__ import annotations

import pytest

from keyset_pagination.core.pagination.exceptions import (
    SortKeyConfigError,
    SortKeyNotFoundError,
    SortKeyUndefinedError,
)
from keyset_pagination.core.pagination.expressions import SortDirection
from keyset_pagination.core.pagination.sort_keys import (
    CastValue,
    ColumnSpec,
    PlainValue,
    SortKeyRegistry,
    TimestampValue,
)


@pytest.mark.unit
class TestColumnSpec:
    def test_parse_shorthand_tuple(self):
        spec = ColumnSpec.parse(("created_at", "DESC", True, TimestampValue("seconds")))

        assert spec.column == "created_at"
        assert spec.direction is SortDirection.DESC
        assert spec.reversible is True
        assert spec.value_kind == TimestampValue("seconds")

    def test_parse_defaults(self):
        spec = ColumnSpec.parse(("id",))

        assert spec.direction is SortDirection.ASC
        assert spec.reversible is False
        assert spec.value_kind == PlainValue()

    def test_parse_passes_column_spec_through(self):
        original = ColumnSpec("title", SortDirection.ASC, value_kind=CastValue("text"))

        assert ColumnSpec.parse(original) is original

    @pytest.mark.parametrize(
        "declaration",
        [
            "id",
            (),
            ("id", "sideways"),
            ("id", "asc", True, "timestamp"),
            ("id", "asc", True, PlainValue(), "extra"),
        ],
    )
    def test_parse_rejects_invalid_declarations(self, declaration):
        with pytest.raises(SortKeyConfigError):
            ColumnSpec.parse(declaration)

    def test_unknown_timestamp_precision_rejected(self):
        with pytest.raises(SortKeyConfigError):
            TimestampValue("minutes")  # type: ignore[arg-type]


@pytest.mark.unit
class TestSortKeyRegistry:
    @pytest.fixture
    def registry(self) -> SortKeyRegistry:
        return SortKeyRegistry(
            {
                "newest": [("created_at", "desc", True), ("id", "desc", True)],
                "oldest": [ColumnSpec("created_at"), ColumnSpec("id")],
            },
            default="newest",
        )

    def test_resolve_by_name(self, registry):
        spec = registry.resolve("oldest")

        assert spec.name == "oldest"
        assert spec.column_names == ["created_at", "id"]
        assert len(spec) == 2

    def test_resolve_falls_back_to_default(self, registry):
        assert registry.resolve(None).name == "newest"
        assert registry.resolve("").name == "newest"

    def test_resolve_without_name_or_default(self):
        registry = SortKeyRegistry({"oldest": [("id", "asc")]})

        with pytest.raises(SortKeyUndefinedError):
            registry.resolve(None)

    def test_resolve_unknown_name(self, registry):
        with pytest.raises(SortKeyNotFoundError) as exc_info:
            registry.resolve("rank")

        assert exc_info.value.name == "rank"
        assert exc_info.value.extra == {"sort_key": "rank"}

    def test_has_reversible(self, registry):
        assert registry.resolve("newest").has_reversible is True
        assert registry.resolve("oldest").has_reversible is False

    def test_registry_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry._specs["extra"] = registry.resolve("oldest")  # type: ignore[index]

    def test_with_default_shares_specs(self, registry):
        other = registry.with_default("oldest")

        assert other.resolve(None).name == "oldest"
        assert registry.resolve(None).name == "newest"
        assert other.resolve("newest") is registry.resolve("newest")

    def test_names_and_membership(self, registry):
        assert registry.names == ["newest", "oldest"]
        assert "oldest" in registry
        assert "rank" not in registry

    @pytest.mark.parametrize(
        ("sort_keys", "default"),
        [
            ({}, None),
            ({"empty": []}, None),
            ({"dupe": [("id", "asc"), ("id", "desc")]}, None),
            ({"ok": [("id", "asc")]}, "missing"),
        ],
    )
    def test_invalid_configuration(self, sort_keys, default):
        with pytest.raises(SortKeyConfigError):
            SortKeyRegistry(sort_keys, default=default)

    def test_with_default_rejects_unknown(self, registry):
        with pytest.raises(SortKeyConfigError):
            registry.with_default("missing")
