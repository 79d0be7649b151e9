"""Argument models for the built-in tools.

Each tool declares its parameters as a closed pydantic model. The dispatcher
validates model output against it, and the same model produces the JSON
Schema shown to the model in the context block.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

OperatorName = Literal["=", "!=", ">", "<", ">=", "<=", "like"]
OperationName = Literal["sum", "avg", "min", "max", "count"]


class ToolArguments(BaseModel):
    """Base for tool argument records. Unknown parameters are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    def to_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for the handler, omitting parameters left unset or null."""
        return {name: value for name, value in self.model_dump().items() if value is not None}


class FilterCondition(BaseModel):
    """One ``column operator value`` condition."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    column: StrictStr
    operator: OperatorName = "="
    value: Any

    @field_validator("operator", mode="before")
    @classmethod
    def _normalize_operator(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return "=" if value == "==" else value
        return value

    @field_validator("value")
    @classmethod
    def _scalar_value(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise ValueError(f"must be a scalar, got {type(value).__name__}")
        return value


class OrderSpec(BaseModel):
    """Sort column and direction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    column: StrictStr
    direction: Literal["asc", "desc"] = "asc"


class FilteredArguments(ToolArguments):
    """Arguments shared by tools that read a filtered table."""

    table: StrictStr | None = Field(
        default=None,
        description="Table to query. May be omitted when only one table exists.",
    )
    filters: list[FilterCondition] | None = Field(
        default=None,
        description=(
            "Conditions combined with AND. Either a list of "
            '{"column": ..., "operator": ..., "value": ...} objects '
            'or a {"column": value} mapping meaning equality.'
        ),
    )

    @field_validator("filters", mode="before")
    @classmethod
    def _mapping_means_equality(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return [{"column": column, "operator": "=", "value": v} for column, v in value.items()]
        return value


class FetchArguments(FilteredArguments):
    """Retrieve rows from a table, optionally filtered, sorted and limited."""

    limit: StrictInt | None = Field(
        default=None,
        description="Maximum number of rows to return. Values are clamped to the allowed range.",
    )
    columns: list[StrictStr] | None = Field(
        default=None,
        description="Columns to return. Defaults to every declared column.",
    )
    order_by: OrderSpec | None = Field(
        default=None,
        description='Sort column, as "column desc" or {"column": ..., "direction": "asc|desc"}.',
    )

    @field_validator("order_by", mode="before")
    @classmethod
    def _parse_order_by(cls, value: Any) -> Any:
        if isinstance(value, str):
            parts = value.split()
            if len(parts) not in (1, 2):
                raise ValueError("expected 'column' or 'column asc|desc'")
            return {"column": parts[0], "direction": parts[1].lower() if len(parts) == 2 else "asc"}
        if isinstance(value, Mapping) and isinstance(value.get("direction"), str):
            return {**value, "direction": value["direction"].strip().lower()}
        return value


class AggregateArguments(FilteredArguments):
    """Compute one aggregate value over the rows matching the filters."""

    operation: OperationName = Field(
        description="Aggregate function. 'count' ignores column.",
    )
    column: StrictStr | None = Field(
        default=None,
        description="Numeric column to aggregate. Required unless operation is 'count'.",
    )
