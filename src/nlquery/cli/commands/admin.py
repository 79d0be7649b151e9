"""Admin and utility commands."""

import typer

from nlquery.cli.context import CLIContext
from nlquery.cli.output import OutputFormatter
from nlquery.schema.sample import seed_sample_products

app = typer.Typer(help="Database administration and utilities")


@app.command()
def seed(ctx: typer.Context) -> None:
    """Create the sample 'products' table and load demo rows.

    Safe to run repeatedly; rows are only loaded into an empty table.

    Examples:

        nlquery seed
        nlquery --database sqlite:///shop.db seed
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)
    connection = cli_ctx.get_connection()

    try:
        inserted = seed_sample_products(connection)
        formatter.print_success(
            "Sample data ready",
            {"database": connection.engine.url.render_as_string(), "inserted": inserted},
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        connection.close()


@app.command()
def check(ctx: typer.Context) -> None:
    """Check that the database is reachable.

    Examples:

        nlquery admin check
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)
    connection = cli_ctx.get_connection()

    try:
        connection.test_connection()
        formatter.print_success("Database reachable", {"dialect": connection.dialect})
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        connection.close()
