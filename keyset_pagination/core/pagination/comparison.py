"""Seek predicate and ordering for keyset pagination.

For a sort key ``(c1, ..., cn)`` and a cursor ``(v1, ..., vn)`` the rows
strictly after the cursor in the effective ordering are selected by:

    (c1 op1 v1) OR (c1 = v1 AND ((c2 op2 v2) OR (c2 = v2 AND (... cn opn vn))))

where ``op`` is ``>`` for an ascending effective direction and ``<`` for a
descending one. On backward pages, reversible columns have both their
direction and their operator inverted; non-reversible columns keep their
forward semantics.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from keyset_pagination.core.pagination.expressions import (
    And,
    Cast,
    Column,
    ColumnExpression,
    Compare,
    ComparisonOperator,
    Or,
    OrderTerm,
    Predicate,
    SortDirection,
    TruncateTimestamp,
)
from keyset_pagination.core.pagination.sort_keys import (
    CastValue,
    ColumnSpec,
    SortKeySpec,
    TimestampValue,
)


@dataclass(frozen=True, slots=True)
class SeekPlan:
    """What a query collaborator needs to fetch one page.

    Attributes:
        predicate: Seek condition, ``None`` when there is no cursor.
        order_by: Literal ``ORDER BY`` terms in sort key order.
    """

    predicate: Predicate | None
    order_by: tuple[OrderTerm, ...]


class ComparisonTreeBuilder:
    """Build seek predicates and orderings from a resolved sort key."""

    @staticmethod
    def effective_direction(column: ColumnSpec, is_backward: bool) -> SortDirection:
        if is_backward and column.reversible:
            return column.direction.invert()
        return column.direction

    @staticmethod
    def operator_for(direction: SortDirection) -> ComparisonOperator:
        """Operator pointing further along ``direction``."""
        return ComparisonOperator.GT if direction is SortDirection.ASC else ComparisonOperator.LT

    @staticmethod
    def column_expression(column: ColumnSpec) -> ColumnExpression:
        ref = Column(column.column)
        kind = column.value_kind
        if isinstance(kind, TimestampValue):
            return TruncateTimestamp(ref, kind.precision)
        if isinstance(kind, CastValue):
            return Cast(ref, kind.type_name)
        return ref

    @classmethod
    def order_by(cls, spec: SortKeySpec, is_backward: bool) -> tuple[OrderTerm, ...]:
        """Order on the same expressions the seek predicate compares."""
        return tuple(
            OrderTerm(cls.column_expression(column), cls.effective_direction(column, is_backward))
            for column in spec
        )

    @classmethod
    def predicate(
        cls,
        spec: SortKeySpec,
        values: Sequence[Any],
        is_backward: bool,
    ) -> Predicate:
        """Build the tie-break tree for ``values``.

        Raises:
            ValueError: If ``values`` does not match the sort key arity.
        """
        if len(values) != len(spec) or not values:
            raise ValueError(
                f"Sort key {spec.name} needs {len(spec)} cursor values, got {len(values)}"
            )

        parts = list(zip(spec.columns, values, strict=True))
        # Folded from the last column outwards.
        column, value = parts[-1]
        tree: Predicate = cls._strictly_after(column, value, is_backward)
        for column, value in reversed(parts[:-1]):
            expression = cls.column_expression(column)
            tree = Or(
                (
                    cls._strictly_after(column, value, is_backward),
                    And((Compare(expression, ComparisonOperator.EQ, value), tree)),
                )
            )
        return tree

    @classmethod
    def build(
        cls,
        spec: SortKeySpec,
        values: Sequence[Any],
        is_backward: bool,
    ) -> SeekPlan:
        """Build the seek plan; an empty ``values`` means the first page."""
        predicate = cls.predicate(spec, values, is_backward) if values else None
        return SeekPlan(predicate=predicate, order_by=cls.order_by(spec, is_backward))

    @classmethod
    def _strictly_after(cls, column: ColumnSpec, value: Any, is_backward: bool) -> Compare:
        operator = cls.operator_for(cls.effective_direction(column, is_backward))
        return Compare(cls.column_expression(column), operator, value)


__all__ = ["ComparisonTreeBuilder", "SeekPlan"]
