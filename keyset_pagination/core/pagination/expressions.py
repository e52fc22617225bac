"""Backend-neutral predicate and ordering tree for keyset seeks.

The comparison builder produces these nodes; a query collaborator
(see ``keyset_pagination.core.database.query``) interprets them. Keeping
the tree as plain frozen data means the seek logic can be tested without
a database and reused with any query backend.

Example tree for ``ORDER BY created_at ASC, id ASC`` after ``(t1, 7)``:

    Or((
        Compare(Column("created_at"), GT, t1),
        And((
            Compare(Column("created_at"), EQ, t1),
            Compare(Column("id"), GT, 7),
        )),
    ))
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal

TimestampPrecision = Literal["seconds", "milliseconds", "microseconds"]


class SortDirection(StrEnum):
    """Sort direction of a single ORDER BY term."""

    ASC = "asc"
    DESC = "desc"

    def invert(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC

    @classmethod
    def parse(cls, value: str | SortDirection) -> SortDirection:
        """Accept ``"ASC"``, ``"asc"`` or an enum member."""
        if isinstance(value, SortDirection):
            return value
        return cls(str(value).lower())


class ComparisonOperator(StrEnum):
    GT = ">"
    LT = "<"
    EQ = "="


@dataclass(frozen=True, slots=True)
class Column:
    """Raw reference to a column of the paginated table."""

    name: str


@dataclass(frozen=True, slots=True)
class Cast:
    """Column cast to ``type_name`` before comparison."""

    column: Column
    type_name: str


@dataclass(frozen=True, slots=True)
class TruncateTimestamp:
    """Timestamp column truncated to the precision stored in cursors.

    Interpreters apply the same truncation to the literal side of the
    comparison.
    """

    column: Column
    precision: TimestampPrecision


ColumnExpression = Column | Cast | TruncateTimestamp


@dataclass(frozen=True, slots=True)
class Compare:
    expression: ColumnExpression
    operator: ComparisonOperator
    value: Any


@dataclass(frozen=True, slots=True)
class And:
    operands: tuple[Predicate, ...]


@dataclass(frozen=True, slots=True)
class Or:
    operands: tuple[Predicate, ...]


Predicate = Compare | And | Or


@dataclass(frozen=True, slots=True)
class OrderTerm:
    """One ``ORDER BY`` entry."""

    expression: ColumnExpression
    direction: SortDirection


def column_of(expression: ColumnExpression) -> Column:
    """Return the underlying column of a (possibly wrapped) expression."""
    if isinstance(expression, Column):
        return expression
    return expression.column


def render(predicate: Predicate) -> str:
    """Render a predicate as SQL-like text for logs and debugging."""
    if isinstance(predicate, Compare):
        expression = _render_expression(predicate.expression)
        return f"{expression} {predicate.operator} {predicate.value!r}"
    joiner = " AND " if isinstance(predicate, And) else " OR "
    return "(" + joiner.join(render(operand) for operand in predicate.operands) + ")"


def _render_expression(expression: ColumnExpression) -> str:
    if isinstance(expression, Cast):
        return f"CAST({expression.column.name} AS {expression.type_name})"
    if isinstance(expression, TruncateTimestamp):
        return f"TRUNC_{expression.precision.upper()}({expression.column.name})"
    return expression.name


__all__ = [
    "And",
    "Cast",
    "Column",
    "ColumnExpression",
    "Compare",
    "ComparisonOperator",
    "Or",
    "OrderTerm",
    "Predicate",
    "SortDirection",
    "TimestampPrecision",
    "TruncateTimestamp",
    "column_of",
    "render",
]
