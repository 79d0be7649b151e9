"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from nlquery.agent.engine import TurnOutcome
from nlquery.exceptions import NLQueryError
from nlquery.schema.catalog import SchemaCatalog

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_json(self, data: Any) -> None:
        print(json.dumps(data, default=str, indent=2))

    def print_outcome(self, outcome: TurnOutcome, show_tool: bool = False) -> None:
        """Print the result of one turn.

        Args:
            outcome: Turn outcome
            show_tool: Also show the tool call that was made
        """
        if self.json_mode:
            self.print_json(
                {
                    "ok": outcome.ok,
                    "answer": outcome.message if outcome.ok else None,
                    "error": outcome.error_label,
                    "message": outcome.message,
                    "tool_call": outcome.tool_call.to_dict() if outcome.tool_call else None,
                }
            )
            return

        if not outcome.ok:
            console.print(Panel(outcome.message, title="[red]Error[/red]", border_style="red"))
            return
        if show_tool and outcome.tool_call is not None:
            console.print(
                f"[dim]→ {outcome.tool_call.tool} "
                f"{json.dumps(outcome.tool_call.parameters, default=str)}[/dim]"
            )
        console.print(Markdown(outcome.message))

    def print_catalog(self, catalog: SchemaCatalog) -> None:
        """Print tables and their columns."""
        if self.json_mode:
            self.print_json(catalog.to_dict())
            return
        console.print(f"[bold]Schema version:[/bold] {catalog.version}")
        for table_info in catalog:
            table = Table(title=table_info.name, show_header=True, header_style="bold cyan")
            table.add_column("Column")
            table.add_column("Type")
            table.add_column("Description")
            for col in table_info.columns:
                table.add_row(col.name, col.type.value, col.description or "")
            console.print(table)

    def print_table(self, title: str, data: list[dict[str, Any]], columns: list[str]) -> None:
        """Print data as Rich table or JSON array."""
        if self.json_mode:
            self.print_json(data)
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[str(row.get(col, "")) for col in columns])
            console.print(table)

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message.

        Args:
            message: Success message
            details: Optional details to display
        """
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            self.print_json(output)
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print a user-safe error message.

        Only taxonomy errors carry a message meant for users; anything else is
        reported generically.
        """
        if isinstance(error, NLQueryError):
            label, message = error.label, error.user_message()
        else:
            label, message = "Error", "Unexpected error. Run with --verbose for details."
        if self.json_mode:
            self.print_json({"error": label, "message": message})
        else:
            console.print(Panel(message, title="[red]Error[/red]", border_style="red"))
