"""CLI entry point for logsieve."""

from __future__ import annotations

from typing import Annotated

import typer

from logsieve import __version__
from logsieve.commands.common import setup_logging
from logsieve.commands.filter import count, filter_file
from logsieve.commands.groups import group_app, rule_app
from logsieve.commands.sessions import session_app
from logsieve.commands.view import view

app = typer.Typer(add_completion=False, help="Filter log files with grouped include/exclude rules.")
app.command("filter")(filter_file)
app.command()(count)
app.command()(view)
app.add_typer(group_app, name="group")
app.add_typer(rule_app, name="rule")
app.add_typer(session_app, name="session")


def _version_callback(value: bool) -> None:  # noqa: FBT001
    if value:
        typer.echo(f"logsieve {__version__}")
        raise typer.Exit


@app.callback()
def _main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,  # noqa: FBT002
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option("--version", help="Show version and exit", callback=_version_callback, is_eager=True),
    ] = False,
) -> None:
    setup_logging(verbose=verbose)


def main() -> None:
    """Entry point for the CLI."""
    app()
