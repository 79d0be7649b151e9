"""Core components for nlquery."""

from nlquery.core.connection import DatabaseConnection
from nlquery.core.retry import Deadline, RetryPolicy
from nlquery.core.types import (
    AggregateOperation,
    AggregateResult,
    ColumnInfo,
    ColumnType,
    FetchResult,
    FilterExpression,
    FilterOperator,
    OrderBy,
    QueryRequest,
    QueryResult,
    Role,
    SortDirection,
    TableInfo,
    Turn,
)

__all__ = [
    "DatabaseConnection",
    "Deadline",
    "RetryPolicy",
    "AggregateOperation",
    "AggregateResult",
    "ColumnInfo",
    "ColumnType",
    "FetchResult",
    "FilterExpression",
    "FilterOperator",
    "OrderBy",
    "QueryRequest",
    "QueryResult",
    "Role",
    "SortDirection",
    "TableInfo",
    "Turn",
]
