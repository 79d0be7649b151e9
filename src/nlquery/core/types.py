"""Core types for nlquery.

All types are designed to be JSON-serializable for agent consumption.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ColumnType(StrEnum):
    """Declared column types understood by the translator."""

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid column type values."""
        return [t.value for t in cls]

    @property
    def is_numeric(self) -> bool:
        return self in (ColumnType.INTEGER, ColumnType.FLOAT, ColumnType.NUMERIC)

    @property
    def is_textual(self) -> bool:
        return self in (ColumnType.STRING, ColumnType.TEXT)


class FilterOperator(StrEnum):
    """The closed set of comparison operators a filter may use."""

    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    LIKE = "like"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid operator values."""
        return [o.value for o in cls]


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class AggregateOperation(StrEnum):
    """Aggregations supported by the ``aggregate`` tool."""

    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"
    COUNT = "count"

    @classmethod
    def values(cls) -> list[str]:
        return [o.value for o in cls]


class Role(StrEnum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL_RESULT = "tool_result"


class ColumnInfo(BaseModel):
    """Declared column of a table."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType = ColumnType.STRING
    description: str | None = None


class TableInfo(BaseModel):
    """Declared table with its ordered column list."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[ColumnInfo, ...]
    description: str | None = None

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> ColumnInfo | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None


class FilterExpression(BaseModel):
    """One bound predicate: ``column operator value``."""

    model_config = ConfigDict(frozen=True)

    column: str
    operator: FilterOperator = FilterOperator.EQ
    value: Any = None


class OrderBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    direction: SortDirection = SortDirection.ASC


class QueryRequest(BaseModel):
    """A validated ``fetch`` request, ready to be compiled to SQL."""

    table: str
    filters: list[FilterExpression] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    order_by: OrderBy | None = None
    limit: int


class FetchResult(BaseModel):
    """Ordered records returned by ``fetch``."""

    kind: Literal["fetch"] = "fetch"
    table: str
    columns: list[str]
    rows: list[dict[str, Any]]
    limit: int

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        """Zero rows matched; a valid result, not an error."""
        return not self.rows


class AggregateResult(BaseModel):
    """Single scalar returned by ``aggregate``."""

    kind: Literal["aggregate"] = "aggregate"
    table: str
    operation: AggregateOperation
    column: str | None = None
    value: Any = None


QueryResult = FetchResult | AggregateResult


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Turn(BaseModel):
    """One immutable entry of a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
