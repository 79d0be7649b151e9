"""Schema-aware validation of query requests.

Turns loosely-typed tool arguments into validated request objects:
- Tables and columns must be declared in the catalog (allow-list)
- Filter operators must come from the closed operator set
- Sort direction must be ``asc`` or ``desc``
- Limits are clamped into ``[1, max_limit]``

No SQL text ever flows through here; values stay values and are bound later.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from nlquery.core.types import (
    AggregateOperation,
    ColumnInfo,
    FilterExpression,
    FilterOperator,
    OrderBy,
    QueryRequest,
    SortDirection,
    TableInfo,
)
from nlquery.exceptions import ValidationError
from nlquery.schema.catalog import SchemaCatalog

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def clamp_limit(limit: int | None, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    """Clamp a requested row limit into ``[1, maximum]``.

    Args:
        limit: Requested limit (None uses the default)
        default: Limit applied when none is requested
        maximum: Upper bound

    Returns:
        The limit that will be executed
    """
    if limit is None:
        limit = default
    return max(1, min(int(limit), maximum))


class RequestValidator:
    """Validates fetch/aggregate arguments against the declared schema."""

    def __init__(
        self,
        catalog: SchemaCatalog,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self._catalog = catalog
        self._default_limit = default_limit
        self._max_limit = max_limit

    @property
    def max_limit(self) -> int:
        return self._max_limit

    @property
    def default_limit(self) -> int:
        return self._default_limit

    def fetch_request(
        self,
        table: str | None = None,
        filters: Any = None,
        limit: int | None = None,
        columns: list[str] | None = None,
        order_by: Any = None,
    ) -> QueryRequest:
        """Validate ``fetch`` arguments into a :class:`QueryRequest`."""
        table_info = self._catalog.get_table(table)
        return QueryRequest(
            table=table_info.name,
            filters=self.filters(table_info, filters),
            columns=self.columns(table_info, columns),
            order_by=self.order_by(table_info, order_by),
            limit=clamp_limit(limit, self._default_limit, self._max_limit),
        )

    def filters(self, table: TableInfo, raw: Any) -> list[FilterExpression]:
        """Normalize filters given as a list of objects or a ``{column: value}`` mapping."""
        if raw is None:
            return []
        if isinstance(raw, Mapping):
            items: list[Any] = [
                {"column": column, "operator": "=", "value": value} for column, value in raw.items()
            ]
        elif isinstance(raw, list):
            items = raw
        else:
            raise ValidationError("filters", "must be a list of filter objects or a mapping")

        expressions = []
        for index, item in enumerate(items):
            field = f"filters[{index}]"
            if not isinstance(item, Mapping):
                raise ValidationError(field, "must be an object with column, operator and value")
            unknown = set(item) - {"column", "operator", "value"}
            if unknown:
                raise ValidationError(field, f"unexpected keys: {', '.join(sorted(unknown))}")
            if "column" not in item:
                raise ValidationError(f"{field}.column", "is required")
            if "value" not in item:
                raise ValidationError(f"{field}.value", "is required")

            operator = self.operator(item.get("operator", "="), f"{field}.operator")
            column = self._declared_column(table, item["column"], f"{field}.column")
            value = item["value"]
            if isinstance(value, (Mapping, list)):
                raise ValidationError(f"{field}.value", "must be a scalar")
            if operator is FilterOperator.LIKE:
                if not column.type.is_textual:
                    raise ValidationError(
                        f"{field}.operator",
                        f"'like' requires a text column, '{column.name}' is {column.type}",
                    )
                if not isinstance(value, str):
                    raise ValidationError(f"{field}.value", "'like' requires a string pattern")
            if value is None and operator not in (FilterOperator.EQ, FilterOperator.NE):
                raise ValidationError(
                    f"{field}.value", f"null cannot be compared with '{operator}'"
                )
            expressions.append(FilterExpression(column=column.name, operator=operator, value=value))
        return expressions

    @staticmethod
    def operator(raw: Any, field: str = "operator") -> FilterOperator:
        """Resolve an operator from the closed set."""
        if isinstance(raw, str):
            normalized = raw.strip().lower()
            if normalized == "==":
                normalized = "="
            if normalized in FilterOperator.values():
                return FilterOperator(normalized)
        raise ValidationError(
            field, f"operator {raw!r} not allowed. Allowed: {', '.join(FilterOperator.values())}"
        )

    def columns(self, table: TableInfo, raw: list[str] | None) -> list[str]:
        """Column allow-list; defaults to every declared column."""
        if raw is None or raw == []:
            return table.column_names()
        if not isinstance(raw, list):
            raise ValidationError("columns", "must be a list of column names")
        selected: list[str] = []
        for index, name in enumerate(raw):
            column = self._declared_column(table, name, f"columns[{index}]")
            if column.name not in selected:
                selected.append(column.name)
        return selected

    def order_by(self, table: TableInfo, raw: Any) -> OrderBy | None:
        """Accept ``"column"``, ``"column desc"`` or ``{"column", "direction"}``."""
        if raw is None:
            return None
        if isinstance(raw, str):
            parts = raw.split()
            if not parts or len(parts) > 2:
                raise ValidationError("order_by", "expected 'column' or 'column asc|desc'")
            raw = {"column": parts[0], "direction": parts[1] if len(parts) == 2 else "asc"}
        if not isinstance(raw, Mapping):
            raise ValidationError("order_by", "must be a column name or an object")
        unknown = set(raw) - {"column", "direction"}
        if unknown:
            raise ValidationError("order_by", f"unexpected keys: {', '.join(sorted(unknown))}")
        column = self._declared_column(table, raw.get("column"), "order_by.column")
        direction = raw.get("direction", "asc")
        if not isinstance(direction, str) or direction.lower() not in ("asc", "desc"):
            raise ValidationError("order_by.direction", f"{direction!r} is not 'asc' or 'desc'")
        return OrderBy(column=column.name, direction=SortDirection(direction.lower()))

    def aggregate_arguments(
        self, table_name: str | None, operation: Any, column: str | None
    ) -> tuple[TableInfo, AggregateOperation, str | None]:
        """Validate the operation and its target column.

        ``count`` ignores the column; the other operations need a numeric one.
        """
        table = self._catalog.get_table(table_name)
        if not isinstance(operation, str) or operation.lower() not in AggregateOperation.values():
            raise ValidationError(
                "operation",
                f"{operation!r} not supported. Allowed: {', '.join(AggregateOperation.values())}",
            )
        op = AggregateOperation(operation.lower())
        if op is AggregateOperation.COUNT:
            return table, op, None
        if column is None:
            raise ValidationError("column", f"is required for '{op}'")
        declared = self._declared_column(table, column, "column")
        if not declared.type.is_numeric:
            raise ValidationError(
                "column", f"'{declared.name}' is {declared.type}, '{op}' needs a numeric column"
            )
        return table, op, declared.name

    def _declared_column(self, table: TableInfo, name: Any, field: str) -> ColumnInfo:
        if not isinstance(name, str):
            raise ValidationError(field, "must be a column name")
        column = table.get_column(name)
        if column is None:
            raise ValidationError(
                field,
                f"unknown column '{name}' on '{table.name}'. "
                f"Available columns: {', '.join(table.column_names())}",
            )
        return column
