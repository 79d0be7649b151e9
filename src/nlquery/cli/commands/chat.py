"""Conversation commands."""

import logging
from typing import Annotated

import typer

from nlquery.agent.session import SessionManager
from nlquery.cli.context import CLIContext
from nlquery.cli.output import OutputFormatter, console

logger = logging.getLogger(__name__)

EXIT_WORDS = {"exit", "quit", ":q"}


def chat_command(
    ctx: typer.Context,
    show_tools: Annotated[
        bool,
        typer.Option("--show-tools/--hide-tools", help="Show the tool call behind each answer"),
    ] = False,
    transcript: Annotated[
        str | None,
        typer.Option("--transcript", "-t", help="Save the conversation to this JSON file on exit"),
    ] = None,
) -> None:
    """Start an interactive question-and-answer session.

    Type 'exit' or 'quit' (or press Ctrl-D) to end the session.

    Examples:

        nlquery chat
        nlquery -d sqlite:///shop.db chat --show-tools
        nlquery chat --transcript session.json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        agent = cli_ctx.get_agent()
        sessions = SessionManager(agent)
        session = sessions.create()
        if not cli_ctx.json_output:
            console.print(
                f"[bold]nlquery[/bold] session {session.id[:8]} "
                f"- tables: {', '.join(agent.catalog.table_names())}"
            )

        while True:
            try:
                question = typer.prompt("you", prompt_suffix="> ").strip()
            except (typer.Abort, EOFError):
                break
            if not question:
                continue
            if question.lower() in EXIT_WORDS:
                break
            outcome = session.ask(question)
            formatter.print_outcome(outcome, show_tool=show_tools)

        if transcript:
            session.memory.save(transcript)
            logger.info("Transcript written to %s", transcript)
        sessions.close(session.id)

    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


def ask_command(
    ctx: typer.Context,
    question: Annotated[str, typer.Argument(help="Question about the data")],
    show_tools: Annotated[
        bool,
        typer.Option("--show-tools/--hide-tools", help="Show the tool call behind the answer"),
    ] = False,
) -> None:
    """Answer a single question and exit.

    Exits with code 1 when the question could not be answered.

    Examples:

        nlquery ask "How many Apple products are there?"
        nlquery --json ask "Average price of electronics?"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        sessions = SessionManager(cli_ctx.get_agent())
        session = sessions.create()
        outcome = session.ask(question)
        formatter.print_outcome(outcome, show_tool=show_tools)
        sessions.close(session.id)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()

    if not outcome.ok:
        raise typer.Exit(code=1)
