"""Saved session subcommands."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape

from logsieve.commands.common import console, err_console
from logsieve.session import delete_session, list_sessions, rename_session

session_app = typer.Typer(name="session", help="Manage saved filter sessions")


@session_app.command("list")
def list_all() -> None:
    """List saved sessions."""
    for name in list_sessions():
        console.print(escape(name), highlight=False)


@session_app.command("delete")
def delete(name: Annotated[str, typer.Argument(help="Session name")]) -> None:
    """Delete a saved session."""
    if not delete_session(name):
        err_console.print(f"[red]Error:[/red] session '{escape(name)}' not found")
        raise typer.Exit(1)


@session_app.command("rename")
def rename(
    old_name: Annotated[str, typer.Argument(help="Current session name")],
    new_name: Annotated[str, typer.Argument(help="New session name")],
) -> None:
    """Rename a saved session."""
    if old_name not in list_sessions():
        err_console.print(f"[red]Error:[/red] session '{escape(old_name)}' not found")
        raise typer.Exit(1)
    rename_session(old_name, new_name)
