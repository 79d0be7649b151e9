"""Schema and tool catalog inspection commands."""

import typer

from nlquery.cli.context import CLIContext
from nlquery.cli.output import OutputFormatter
from nlquery.tools.base import ToolSpec

app = typer.Typer(help="Inspect the queryable schema and the tool catalog")


@app.command("show")
def schema_show(ctx: typer.Context) -> None:
    """Show the declared tables and columns.

    Examples:

        nlquery schema show
        nlquery --json schema show
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        formatter.print_catalog(cli_ctx.get_agent().catalog)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("context")
def schema_context(ctx: typer.Context) -> None:
    """Print the system context sent to the model on every turn."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        agent = cli_ctx.get_agent()
        if cli_ctx.json_output:
            formatter.print_json(
                {"schema_version": agent.catalog.version, "context": agent.system_context}
            )
        else:
            typer.echo(agent.system_context)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("tools")
def schema_tools(ctx: typer.Context) -> None:
    """List the tools the model may call, with their parameter schemas."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        registry = cli_ctx.get_agent().registry
        if cli_ctx.json_output:
            formatter.print_json(registry.to_dict())
        else:
            rows = [
                {
                    "name": tool.name,
                    "parameters": _parameter_summary(tool),
                    "description": tool.description,
                }
                for tool in registry.get_all()
            ]
            formatter.print_table("Tools", rows, ["name", "parameters", "description"])
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


def _parameter_summary(tool: ToolSpec) -> str:
    """Parameter names with required ones starred."""
    required = set(tool.required_parameters())
    return ", ".join(f"{name}{'*' if name in required else ''}" for name in tool.parameter_names())
