"""Unit tests for seek predicate and ordering construction."""
from __future__ import annotations

from datetime import UTC, datetime

import pytest

from keyset_pagination.core.pagination.comparison import ComparisonTreeBuilder
from keyset_pagination.core.pagination.expressions import (
    And,
    Cast,
    Column,
    Compare,
    ComparisonOperator,
    Or,
    OrderTerm,
    SortDirection,
    TruncateTimestamp,
    render,
)
from keyset_pagination.core.pagination.sort_keys import (
    CastValue,
    SortKeyRegistry,
    TimestampValue,
)

GT = ComparisonOperator.GT
LT = ComparisonOperator.LT
EQ = ComparisonOperator.EQ
ASC = SortDirection.ASC
DESC = SortDirection.DESC


@pytest.fixture
def registry() -> SortKeyRegistry:
    return SortKeyRegistry(
        {
            "single": [("id", "asc", True)],
            "pair": [("created_at", "asc", True), ("id", "asc")],
            "mixed": [("score", "desc", True), ("name", "asc", True), ("id", "asc", True)],
            "kinds": [
                ("created_at", "desc", True, TimestampValue("milliseconds")),
                ("title", "asc", True, CastValue("text")),
                ("id", "asc", True),
            ],
        }
    )


@pytest.mark.unit
class TestOrderBy:
    def test_forward_keeps_declared_directions(self, registry):
        plan = ComparisonTreeBuilder.build(registry.resolve("mixed"), (), is_backward=False)

        assert plan.predicate is None
        assert plan.order_by == (
            OrderTerm(Column("score"), DESC),
            OrderTerm(Column("name"), ASC),
            OrderTerm(Column("id"), ASC),
        )

    def test_backward_inverts_reversible_columns_only(self, registry):
        plan = ComparisonTreeBuilder.build(registry.resolve("pair"), (), is_backward=True)

        assert plan.order_by == (
            OrderTerm(Column("created_at"), DESC),
            OrderTerm(Column("id"), ASC),
        )

    def test_order_uses_compared_expressions_for_wrapped_kinds(self, registry):
        plan = ComparisonTreeBuilder.build(registry.resolve("kinds"), (), is_backward=False)

        assert [term.expression for term in plan.order_by] == [
            TruncateTimestamp(Column("created_at"), "milliseconds"),
            Cast(Column("title"), "text"),
            Column("id"),
        ]


@pytest.mark.unit
class TestPredicate:
    def test_single_column(self, registry):
        predicate = ComparisonTreeBuilder.predicate(registry.resolve("single"), (5,), False)

        assert predicate == Compare(Column("id"), GT, 5)

    def test_single_column_backward(self, registry):
        predicate = ComparisonTreeBuilder.predicate(registry.resolve("single"), (5,), True)

        assert predicate == Compare(Column("id"), LT, 5)

    def test_three_column_tie_break_tree(self, registry):
        predicate = ComparisonTreeBuilder.predicate(
            registry.resolve("mixed"), (90, "bob", 12), is_backward=False
        )

        assert predicate == Or(
            (
                Compare(Column("score"), LT, 90),
                And(
                    (
                        Compare(Column("score"), EQ, 90),
                        Or(
                            (
                                Compare(Column("name"), GT, "bob"),
                                And(
                                    (
                                        Compare(Column("name"), EQ, "bob"),
                                        Compare(Column("id"), GT, 12),
                                    )
                                ),
                            )
                        ),
                    )
                ),
            )
        )

    def test_backward_flips_every_reversible_operator(self, registry):
        predicate = ComparisonTreeBuilder.predicate(
            registry.resolve("mixed"), (90, "bob", 12), is_backward=True
        )

        assert render(predicate) == (
            "(score > 90 OR (score = 90 AND (name < 'bob' OR (name = 'bob' AND id < 12))))"
        )

    def test_non_reversible_keeps_forward_operator(self, registry):
        predicate = ComparisonTreeBuilder.predicate(
            registry.resolve("pair"), ("t", 3), is_backward=True
        )

        assert render(predicate) == "(created_at < 't' OR (created_at = 't' AND id > 3))"

    def test_value_kinds_wrap_column_expressions(self, registry):
        created = datetime(2025, 1, 1, tzinfo=UTC)

        predicate = ComparisonTreeBuilder.predicate(
            registry.resolve("kinds"), (created, "Zed", 4), is_backward=False
        )

        truncated = TruncateTimestamp(Column("created_at"), "milliseconds")
        cast = Cast(Column("title"), "text")
        assert predicate.operands[0] == Compare(truncated, LT, created)
        tie = predicate.operands[1]
        assert tie.operands[0] == Compare(truncated, EQ, created)
        assert tie.operands[1].operands[0] == Compare(cast, GT, "Zed")

    @pytest.mark.parametrize("values", [(), (1, 2), (1, 2, 3, 4)])
    def test_arity_mismatch_rejected(self, registry, values):
        with pytest.raises(ValueError):
            ComparisonTreeBuilder.predicate(registry.resolve("mixed"), values, False)

    def test_build_with_cursor_values(self, registry):
        plan = ComparisonTreeBuilder.build(registry.resolve("single"), (1,), is_backward=False)

        assert plan.predicate == Compare(Column("id"), GT, 1)
        assert plan.order_by == (OrderTerm(Column("id"), ASC),)
