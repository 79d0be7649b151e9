"""Tools exposed to the language model and their dispatch."""

from nlquery.tools.arguments import (
    AggregateArguments,
    FetchArguments,
    FilterCondition,
    OrderSpec,
    ToolArguments,
)
from nlquery.tools.base import ToolCall, ToolSpec
from nlquery.tools.dispatcher import ToolDispatcher
from nlquery.tools.registry import ToolRegistry, aggregate_tool_spec, fetch_tool_spec

__all__ = [
    "AggregateArguments",
    "FetchArguments",
    "FilterCondition",
    "OrderSpec",
    "ToolArguments",
    "ToolCall",
    "ToolSpec",
    "ToolDispatcher",
    "ToolRegistry",
    "aggregate_tool_spec",
    "fetch_tool_spec",
]
