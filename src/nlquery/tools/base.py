"""Tool specifications exposed to the language model."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from nlquery.tools.arguments import ToolArguments


class ToolSpec(BaseModel):
    """Definition of a tool for agent consumption.

    Compatible with OpenAI-style function calling formats. ``arguments`` is
    the closed model that validates a call's parameters; ``handler`` receives
    the validated record and the turn deadline.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str
    arguments: type[ToolArguments]
    handler: Callable[..., Any] | None = Field(default=None, exclude=True, repr=False)

    def parameter_names(self) -> list[str]:
        return sorted(self.arguments.model_fields)

    def required_parameters(self) -> list[str]:
        return sorted(
            name for name, field in self.arguments.model_fields.items() if field.is_required()
        )

    def json_schema(self) -> dict[str, Any]:
        """Parameter schema as a JSON Schema object."""
        schema = self.arguments.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)
        return schema

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.json_schema(),
            },
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to generic dict format."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.json_schema(),
        }


class ToolCall(BaseModel):
    """A tool request decoded from model output. Lives for one turn only."""

    model_config = ConfigDict(frozen=True)

    tool: str
    parameters: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"tool": self.tool, "parameters": self.parameters}
