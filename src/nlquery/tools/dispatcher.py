"""Resolve tool calls and validate their arguments before invocation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import pydantic

from nlquery.exceptions import UnknownToolError, ValidationError
from nlquery.tools.arguments import ToolArguments
from nlquery.tools.base import ToolCall, ToolSpec
from nlquery.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from nlquery.core.retry import Deadline

logger = logging.getLogger(__name__)


def _field_path(loc: tuple[int | str, ...]) -> str:
    """``("filters", 0, "operator")`` becomes ``filters[0].operator``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else part
    return path or "parameters"


class ToolDispatcher:
    """Looks up tools in the registry and runs them with checked arguments."""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def resolve(self, name: str) -> ToolSpec:
        """Find a registered tool.

        Raises:
            UnknownToolError: If no tool has that name
        """
        tool = self._registry.get(name)
        if tool is None:
            raise UnknownToolError(name, self._registry.list_tools())
        return tool

    def validate(self, tool: ToolSpec, parameters: Mapping[str, Any]) -> ToolArguments:
        """Check supplied parameters against the tool's argument model.

        Returns:
            The validated argument record

        Raises:
            ValidationError: Naming the first offending field
        """
        try:
            return tool.arguments.model_validate(dict(parameters))
        except pydantic.ValidationError as e:
            error = e.errors()[0]
            field = _field_path(tuple(error["loc"]))
            if error["type"] == "extra_forbidden" and len(error["loc"]) == 1:
                raise ValidationError(
                    field,
                    f"not a parameter of '{tool.name}'. "
                    f"Accepted: {', '.join(tool.parameter_names())}",
                ) from e
            if error["type"] == "missing":
                raise ValidationError(field, f"is required by '{tool.name}'") from e
            raise ValidationError(field, error["msg"]) from e

    def dispatch(self, call: ToolCall, deadline: Deadline | None = None) -> Any:
        """Validate and execute a tool call.

        Unknown tools and invalid arguments fail before the handler runs.
        The handler receives the validated record and ``deadline``; its result
        is returned unchanged.
        """
        tool = self.resolve(call.tool)
        arguments = self.validate(tool, call.parameters)
        logger.info(
            "Dispatching tool '%s' with parameters %s",
            tool.name,
            sorted(arguments.model_fields_set),
        )
        assert tool.handler is not None
        return tool.handler(arguments, deadline)
