"""Schema Context Builder for the tool-calling protocol.

Generates the system context the model sees on every turn. The context
includes:
- The response protocol (one JSON tool call, or a plain-prose answer)
- Every declared table with its columns and types
- Every registered tool with its full parameter schema
- Row limit bounds

Output is deterministic: tables and tools are sorted by name, columns keep
their declaration order, and JSON is dumped with sorted keys.
"""

from __future__ import annotations

import json
from typing import Any

from nlquery.core.types import FilterOperator
from nlquery.schema.catalog import SchemaCatalog
from nlquery.tools.registry import ToolRegistry

PROTOCOL_INSTRUCTIONS = """\
You answer questions about a relational database by calling tools.

To query the data, reply with exactly one JSON object and nothing else:
{"tool": "<tool name>", "parameters": {...}}

If the question does not need data (greetings, clarifications, questions about
the conversation so far), reply in plain prose instead. Never write SQL.
Only use the tables, columns and tools listed below."""

GUIDELINES = [
    "Issue at most one tool call per reply",
    "Filters are combined with AND; use only the listed operators",
    "Use 'like' with % wildcards for partial text matches",
    "Use aggregate for totals, averages, minimums, maximums and counts",
    "Ask for only the columns needed to answer the question",
]


class SchemaContextBuilder:
    """Builds the system context from the catalog and the tool registry."""

    def __init__(
        self,
        catalog: SchemaCatalog,
        registry: ToolRegistry,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> None:
        """Initialize the context builder.

        Args:
            catalog: Declared tables and columns
            registry: Registered tools
            default_limit: Rows returned by fetch when no limit is given
            max_limit: Upper bound for fetch limits
        """
        self._catalog = catalog
        self._registry = registry
        self._default_limit = default_limit
        self._max_limit = max_limit

    def build_dict(self) -> dict[str, Any]:
        """Structured form of the context, for machine consumption."""
        return {
            "schema_version": self._catalog.version,
            "tables": [
                {
                    "name": t.name,
                    "description": t.description,
                    "columns": [
                        {"name": c.name, "type": c.type.value, "description": c.description}
                        for c in t.columns
                    ],
                }
                for t in self._catalog
            ],
            "tools": self._registry.to_dict(),
            "operators": FilterOperator.values(),
            "limits": {"default": self._default_limit, "max": self._max_limit},
            "guidelines": list(GUIDELINES),
        }

    def build(self) -> str:
        """Render the system context string."""
        lines = [PROTOCOL_INSTRUCTIONS, "", f"## Schema (version {self._catalog.version})"]
        for table in self._catalog:
            header = f"### Table {table.name}"
            if table.description:
                header += f" - {table.description}"
            lines.append(header)
            for col in table.columns:
                entry = f"- {col.name} ({col.type.value})"
                if col.description:
                    entry += f": {col.description}"
                lines.append(entry)
            lines.append("")

        lines.append("## Tools")
        for tool in self._registry.get_all():
            lines.append(f"### {tool.name}")
            lines.append(tool.description)
            lines.append("Parameters: " + json.dumps(tool.json_schema(), sort_keys=True))
            lines.append("")

        lines.append("## Rules")
        lines.append(f"- Filter operators: {', '.join(FilterOperator.values())}")
        lines.append(
            f"- fetch returns at most {self._max_limit} rows "
            f"({self._default_limit} when no limit is given)"
        )
        lines.extend(f"- {g}" for g in GUIDELINES)
        return "\n".join(lines)


def get_schema_context(
    catalog: SchemaCatalog,
    registry: ToolRegistry,
    default_limit: int = 20,
    max_limit: int = 100,
) -> str:
    """Convenience function to get the system context string."""
    return SchemaContextBuilder(catalog, registry, default_limit, max_limit).build()
