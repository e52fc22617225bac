"""SQLAlchemy implementation of the page query collaborator.

Interprets the backend-neutral predicate tree from
``keyset_pagination.core.pagination.expressions`` as SQLAlchemy Core
expressions over a mapped model:

    query = SqlAlchemyPageQuery(session, Post)
    query.apply_filter(lambda stmt: stmt.where(Post.published.is_(True)))
    query.apply_where(plan.seek.predicate)
    query.apply_order_by(plan.seek.order_by)
    query.apply_limit(11)
    posts = await query.execute()

Timestamp truncation is dialect specific:
    PostgreSQL: date_trunc('milliseconds', created_at)
    SQLite:     substr(created_at, 1, 23)   -- 'YYYY-MM-DD HH:MM:SS.fff'
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Self
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    and_,
    cast,
    func,
    literal,
    or_,
    select,
)
from sqlalchemy.orm import InstrumentedAttribute

from keyset_pagination.core.database.exceptions import InvalidFilterError, NotFoundError
from keyset_pagination.core.pagination.exceptions import InvalidCursorError
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
    TimestampPrecision,
    TruncateTimestamp,
    column_of,
)
from keyset_pagination.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.types import TypeEngine

    from keyset_pagination.core.pagination.protocol import FilterCallback

CAST_TYPES: dict[str, type[TypeEngine[Any]]] = {
    "text": Text,
    "string": String,
    "varchar": String,
    "integer": Integer,
    "bigint": BigInteger,
    "numeric": Numeric,
    "float": Float,
    "date": Date,
    "datetime": DateTime,
    "uuid": Uuid,
    "boolean": Boolean,
}

_PG_TRUNC_UNITS: dict[TimestampPrecision, str] = {
    "seconds": "second",
    "milliseconds": "milliseconds",
    "microseconds": "microseconds",
}

# Prefix length of SQLAlchemy's SQLite datetime storage format.
_SQLITE_TRUNC_LENGTHS: dict[TimestampPrecision, int] = {
    "seconds": 19,
    "milliseconds": 23,
    "microseconds": 26,
}


class SqlAlchemyPageQuery:
    """One-shot page or count query over a mapped model.

    Args:
        session: Async session the query runs in.
        model: Mapped class whose rows are paginated.
        id_column: Primary identifier counted by ``execute_count``.
        dialect: Dialect name; read from the session bind when omitted.
        no_result_error: Factory for the error raised when the count
            aggregate returns no row.
    """

    __slots__ = (
        "_dialect",
        "_lazy",
        "_no_result_error",
        "_session",
        "id_column",
        "model",
        "statement",
    )

    def __init__(
        self,
        session: AsyncSession,
        model: type[Any],
        *,
        id_column: str = "id",
        dialect: str | None = None,
        no_result_error: Callable[[], Exception] | None = None,
    ) -> None:
        self._session = session
        self.model = model
        self.id_column = id_column
        self._dialect = dialect
        self._no_result_error = no_result_error or (
            lambda: NotFoundError(model.__name__, {"aggregate": f"count({id_column})"})
        )
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")
        self.statement: Select[Any] = select(model)

    @property
    def dialect(self) -> str:
        if self._dialect is None:
            bind = self._session.bind
            self._dialect = bind.dialect.name if bind is not None else "default"
        return self._dialect

    def apply_filter(self, callback: FilterCallback | None) -> Self:
        if callback is not None:
            self.statement = callback(self.statement)
        return self

    def apply_where(self, predicate: Predicate) -> Self:
        self.statement = self.statement.where(self.compile_predicate(predicate))
        return self

    def apply_order_by(self, order_by: Sequence[OrderTerm]) -> Self:
        clauses = []
        for term in order_by:
            expression = self.compile_expression(term.expression)
            clauses.append(
                expression.desc() if term.direction is SortDirection.DESC else expression.asc()
            )
        self.statement = self.statement.order_by(*clauses)
        return self

    def apply_limit(self, limit: int) -> Self:
        self.statement = self.statement.limit(limit)
        return self

    async def execute(self) -> Sequence[Any]:
        result = await self._session.execute(self.statement)
        rows = result.scalars().all()
        self._lazy.debug(lambda: f"db.page: {self.model.__name__} -> {len(rows)} rows")
        return rows

    async def execute_count(self, callback: FilterCallback | None) -> int:
        statement: Select[Any] = select(func.count(self.column(self.id_column))).select_from(
            self.model
        )
        if callback is not None:
            statement = callback(statement)

        result = await self._session.execute(statement)
        count = result.scalar_one_or_none()
        if count is None:
            raise self._no_result_error()
        self._lazy.debug(lambda: f"db.count: {self.model.__name__} -> {count}")
        return int(count)

    def column(self, name: str) -> InstrumentedAttribute[Any]:
        """Resolve a column name to the model attribute.

        Raises:
            InvalidFilterError: If the model has no such column.
        """
        attr = getattr(self.model, name, None)
        if not isinstance(attr, InstrumentedAttribute):
            raise InvalidFilterError(
                f"{self.model.__name__} has no column {name!r}", filter_name=name
            )
        return attr

    def compile_predicate(self, predicate: Predicate) -> ColumnElement[bool]:
        """Translate a predicate tree into a SQLAlchemy boolean expression."""
        if isinstance(predicate, And):
            return and_(*(self.compile_predicate(operand) for operand in predicate.operands))
        if isinstance(predicate, Or):
            return or_(*(self.compile_predicate(operand) for operand in predicate.operands))
        return self._compile_compare(predicate)

    def compile_expression(self, expression: ColumnExpression) -> ColumnElement[Any]:
        attr = self.column(column_of(expression).name)
        if isinstance(expression, Cast):
            return cast(attr, self._cast_type(expression.type_name))
        if isinstance(expression, TruncateTimestamp):
            return self._truncate(attr, expression.precision)
        return attr

    def _compile_compare(self, compare: Compare) -> ColumnElement[bool]:
        left = self.compile_expression(compare.expression)
        right = self._compile_value(compare.expression, compare.value)
        if compare.operator is ComparisonOperator.GT:
            return left > right
        if compare.operator is ComparisonOperator.LT:
            return left < right
        return left == right

    def _compile_value(self, expression: ColumnExpression, value: Any) -> Any:
        if isinstance(expression, Cast):
            # Bound with the cast type by SQLAlchemy's coercion.
            return value
        attr = self.column(column_of(expression).name)
        value = self._convert_cursor_value(attr, value)
        if isinstance(expression, TruncateTimestamp):
            return self._truncate(literal(value, attr.type), expression.precision)
        return value

    def _truncate(self, expression: Any, precision: TimestampPrecision) -> ColumnElement[Any]:
        dialect = self.dialect
        if dialect == "postgresql":
            return func.date_trunc(_PG_TRUNC_UNITS[precision], expression)
        if dialect == "sqlite":
            return func.substr(expression, 1, _SQLITE_TRUNC_LENGTHS[precision])
        raise InvalidFilterError(
            f"Timestamp truncation is not supported on dialect {dialect!r}",
            filter_name="truncate_timestamp",
        )

    @staticmethod
    def _cast_type(type_name: str) -> type[TypeEngine[Any]]:
        try:
            return CAST_TYPES[type_name.lower()]
        except KeyError:
            raise InvalidFilterError(
                f"Unknown cast type {type_name!r}", filter_name="cast"
            ) from None

    @staticmethod
    def _convert_cursor_value(column: InstrumentedAttribute[Any], value: Any) -> Any:
        """Convert an untagged cursor value back to the column's Python type.

        Tagged values already decode typed; this covers plain strings and
        numbers, such as hand-built cursors.
        """
        if value is None or not isinstance(value, str | int | float):
            return value

        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value

        try:
            if issubclass(python_type, datetime) and isinstance(value, str):
                return datetime.fromisoformat(value)
            if issubclass(python_type, date) and isinstance(value, str):
                return date.fromisoformat(value)
            if issubclass(python_type, UUID) and isinstance(value, str):
                return UUID(value)
            if issubclass(python_type, Decimal) and not isinstance(value, bool):
                return Decimal(str(value))
        except ValueError as e:
            raise InvalidCursorError(f"value for {column.key} does not match its column") from e
        return value


__all__ = ["CAST_TYPES", "SqlAlchemyPageQuery"]
