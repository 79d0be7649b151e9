"""Query Translator: the ``fetch`` and ``aggregate`` capabilities.

Requests are compiled with SQLAlchemy Core against the declared columns only.
Every filter value and the row limit are bound parameters; identifiers come
from the catalog, never from model output.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement, Select, and_, func, select
from sqlalchemy import column as sql_column
from sqlalchemy import table as sql_table
from sqlalchemy.sql.expression import TableClause

from nlquery.core.connection import DatabaseConnection
from nlquery.core.retry import Deadline, RetryPolicy
from nlquery.core.types import (
    AggregateOperation,
    AggregateResult,
    FetchResult,
    FilterExpression,
    FilterOperator,
    QueryRequest,
    SortDirection,
    TableInfo,
)
from nlquery.query.validator import RequestValidator
from nlquery.schema.catalog import SchemaCatalog

logger = logging.getLogger(__name__)

_COMPARATORS: dict[FilterOperator, Callable[[Any, Any], ColumnElement[bool]]] = {
    FilterOperator.EQ: lambda col, value: col.is_(None) if value is None else col == value,
    FilterOperator.NE: lambda col, value: col.is_not(None) if value is None else col != value,
    FilterOperator.GT: lambda col, value: col > value,
    FilterOperator.LT: lambda col, value: col < value,
    FilterOperator.GE: lambda col, value: col >= value,
    FilterOperator.LE: lambda col, value: col <= value,
    FilterOperator.LIKE: lambda col, value: col.like(value),
}

_AGGREGATES = {
    AggregateOperation.SUM: func.sum,
    AggregateOperation.AVG: func.avg,
    AggregateOperation.MIN: func.min,
    AggregateOperation.MAX: func.max,
}


def _table_clause(info: TableInfo) -> TableClause:
    return sql_table(info.name, *(sql_column(name) for name in info.column_names()))


def _where(tbl: TableClause, filters: list[FilterExpression]) -> ColumnElement[bool] | None:
    clauses = [_COMPARATORS[f.operator](tbl.c[f.column], f.value) for f in filters]
    if not clauses:
        return None
    return and_(*clauses)


def _scalar(value: Any) -> Any:
    # Drivers return Decimal for numeric aggregates; keep results JSON-friendly.
    if isinstance(value, Decimal):
        return float(value)
    return value


class QueryTranslator:
    """Executes validated fetch/aggregate requests against the store."""

    def __init__(
        self,
        connection: DatabaseConnection,
        catalog: SchemaCatalog,
        default_limit: int = 20,
        max_limit: int = 100,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the translator.

        Args:
            connection: Pooled database handle
            catalog: Declared schema used as allow-list
            default_limit: Rows returned when no limit is requested
            max_limit: Hard upper bound for any fetch
            retry_policy: Policy for connection failures
        """
        self._connection = connection
        self._catalog = catalog
        self._validator = RequestValidator(catalog, default_limit, max_limit)
        self._retry = retry_policy or RetryPolicy()

    @property
    def catalog(self) -> SchemaCatalog:
        return self._catalog

    @property
    def validator(self) -> RequestValidator:
        return self._validator

    def fetch(
        self,
        filters: Any = None,
        limit: int | None = None,
        columns: list[str] | None = None,
        order_by: Any = None,
        table: str | None = None,
        deadline: Deadline | None = None,
    ) -> FetchResult:
        """Fetch rows matching all filters.

        Args:
            filters: List of ``{column, operator, value}`` or ``{column: value}``
            limit: Requested row count, clamped into ``[1, max_limit]``
            columns: Subset of declared columns (default: all declared)
            order_by: ``"column [asc|desc]"`` or ``{column, direction}``
            table: Table name (optional when only one table is declared)
            deadline: Turn budget that bounds retries of the query

        Returns:
            FetchResult; an empty one when nothing matched
        """
        request = self._validator.fetch_request(
            table=table, filters=filters, limit=limit, columns=columns, order_by=order_by
        )
        stmt = self.build_fetch(request)
        rows = self._retry.call(
            lambda: self._fetch_rows(stmt), operation="fetch", deadline=deadline
        )
        return FetchResult(
            table=request.table,
            columns=request.columns,
            rows=rows,
            limit=request.limit,
        )

    def aggregate(
        self,
        operation: str,
        column: str | None = None,
        filters: Any = None,
        table: str | None = None,
        deadline: Deadline | None = None,
    ) -> AggregateResult:
        """Compute a single aggregate over the rows matching all filters.

        ``count`` counts rows and ignores ``column``.
        """
        table_info, op, target = self._validator.aggregate_arguments(table, operation, column)
        expressions = self._validator.filters(table_info, filters)
        stmt = self.build_aggregate(table_info, op, target, expressions)
        value = self._retry.call(
            lambda: self._fetch_scalar(stmt), operation="aggregate", deadline=deadline
        )
        return AggregateResult(
            table=table_info.name,
            operation=op,
            column=target,
            value=_scalar(value),
        )

    def build_fetch(self, request: QueryRequest) -> Select[Any]:
        """Compile a validated request into a parameterized SELECT."""
        tbl = _table_clause(self._catalog.get_table(request.table))
        stmt = select(*(tbl.c[name] for name in request.columns))
        where = _where(tbl, request.filters)
        if where is not None:
            stmt = stmt.where(where)
        if request.order_by is not None:
            col = tbl.c[request.order_by.column]
            stmt = stmt.order_by(
                col.desc() if request.order_by.direction is SortDirection.DESC else col.asc()
            )
        return stmt.limit(request.limit)

    def build_aggregate(
        self,
        table_info: TableInfo,
        operation: AggregateOperation,
        target: str | None,
        filters: list[FilterExpression],
    ) -> Select[Any]:
        tbl = _table_clause(table_info)
        if operation is AggregateOperation.COUNT:
            expr = func.count()
        else:
            expr = _AGGREGATES[operation](tbl.c[target])
        stmt = select(expr).select_from(tbl)
        where = _where(tbl, filters)
        if where is not None:
            stmt = stmt.where(where)
        return stmt

    def _fetch_rows(self, stmt: Select[Any]) -> list[dict[str, Any]]:
        logger.debug("fetch: %s", stmt)
        with self._connection.connect() as conn:
            result = conn.execute(stmt)
            return [dict(row._mapping) for row in result]

    def _fetch_scalar(self, stmt: Select[Any]) -> Any:
        logger.debug("aggregate: %s", stmt)
        with self._connection.connect() as conn:
            return conn.execute(stmt).scalar()
