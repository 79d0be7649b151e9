"""nlquery CLI - Main entry point."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

import nlquery
from nlquery.cli.context import CLIContext
from nlquery.cli.output import OutputFormatter
from nlquery.config import Settings, get_database_url

# Create main Typer app
app = typer.Typer(
    name="nlquery",
    help="nlquery CLI - Ask questions about your database in plain language",
    no_args_is_help=True,
)


def configure_logging(verbose: bool) -> None:
    """Send logs to stderr through Rich; chat output stays on stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[
            RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=verbose)
        ],
        force=True,
    )
    if not verbose:
        # The SDK logs every HTTP request at INFO.
        logging.getLogger("httpx").setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="NLQUERY_DATABASE_URL",
            help="Database URL (PostgreSQL or SQLite)",
        ),
    ] = None,
    schema_file: Annotated[
        str | None,
        typer.Option("--schema-file", "-s", help="JSON schema file instead of reflection"),
    ] = None,
    tables: Annotated[
        list[str] | None,
        typer.Option("--table", help="Restrict reflection to this table (repeatable)"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model identifier"),
    ] = None,
    base_url: Annotated[
        str | None,
        typer.Option("--base-url", help="OpenAI-compatible endpoint URL"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON (machine-readable)"),
    ] = False,
    echo: Annotated[
        bool,
        typer.Option("--echo", "-e", help="Echo SQL statements to console"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Debug logging on stderr"),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    configure_logging(verbose)
    try:
        settings = Settings.from_env(
            database_url=get_database_url(database),
            schema_file=schema_file,
            tables=tuple(tables) if tables else None,
            llm_model=model,
            llm_base_url=base_url,
            echo_sql=echo or None,
        )
    except Exception as e:
        OutputFormatter(json_output).print_error(e)
        raise typer.Exit(code=2)

    ctx.obj = CLIContext(settings=settings, json_output=json_output)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"nlquery v{nlquery.__version__}")


# Register command groups
from nlquery.cli.commands import admin, chat, schema  # noqa: E402

app.add_typer(schema.app, name="schema")
app.add_typer(admin.app, name="admin")

app.command(name="chat")(chat.chat_command)
app.command(name="ask")(chat.ask_command)
app.command(name="seed")(admin.seed)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
