"""Tool registry for agent access."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from nlquery.tools.arguments import AggregateArguments, FetchArguments
from nlquery.tools.base import ToolSpec

if TYPE_CHECKING:
    from nlquery.core.retry import Deadline
    from nlquery.query.translator import QueryTranslator


def fetch_tool_spec(handler: Callable[..., Any] | None = None) -> ToolSpec:
    return ToolSpec(
        name="fetch",
        description="Retrieve rows from a table, optionally filtered, sorted and limited.",
        arguments=FetchArguments,
        handler=handler,
    )


def aggregate_tool_spec(handler: Callable[..., Any] | None = None) -> ToolSpec:
    return ToolSpec(
        name="aggregate",
        description=(
            "Compute one aggregate value over the rows matching the filters. "
            "'count' ignores column; the other operations need a numeric column."
        ),
        arguments=AggregateArguments,
        handler=handler,
    )


class ToolRegistry:
    """Catalog of tools the model may call.

    Tools are registered during startup; after :meth:`freeze` the registry is
    read-only and safe to share between sessions without locking.
    """

    def __init__(self, tools: list[ToolSpec] | None = None) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._frozen = False
        for tool in tools or []:
            self.register(tool)

    @classmethod
    def default(cls, translator: QueryTranslator) -> ToolRegistry:
        """Registry with the ``fetch`` and ``aggregate`` tools bound to a translator."""

        def fetch(args: FetchArguments, deadline: Deadline | None = None) -> Any:
            return translator.fetch(**args.to_kwargs(), deadline=deadline)

        def aggregate(args: AggregateArguments, deadline: Deadline | None = None) -> Any:
            return translator.aggregate(**args.to_kwargs(), deadline=deadline)

        registry = cls([fetch_tool_spec(fetch), aggregate_tool_spec(aggregate)])
        return registry.freeze()

    def register(self, tool: ToolSpec) -> ToolSpec:
        """Register a tool.

        Raises:
            RuntimeError: If the registry is frozen
            ValueError: If the name is taken or the tool has no handler
        """
        if self._frozen:
            raise RuntimeError("Tool registry is frozen; register tools before startup completes")
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        if tool.handler is None:
            raise ValueError(f"Tool '{tool.name}' has no handler")
        self._tools[tool.name] = tool
        return tool

    def freeze(self) -> ToolRegistry:
        self._tools = dict(sorted(self._tools.items()))
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def tools(self) -> Mapping[str, ToolSpec]:
        return MappingProxyType(self._tools)

    def get(self, name: str) -> ToolSpec | None:
        """Get a tool by name.

        Args:
            name: Tool name

        Returns:
            ToolSpec or None
        """
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names, sorted."""
        return sorted(self._tools)

    def get_all(self) -> list[ToolSpec]:
        return [self._tools[name] for name in self.list_tools()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def to_openai_format(self) -> list[dict[str, Any]]:
        """Export all tools in OpenAI function calling format."""
        return [tool.to_openai_format() for tool in self.get_all()]

    def to_dict(self) -> list[dict[str, Any]]:
        """Export all tools as dicts."""
        return [tool.to_dict() for tool in self.get_all()]
