"""Helpers shared by the CLI commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from logsieve.session import create_session, load_session, save_session, touch_session

if TYPE_CHECKING:
    from logsieve.models import Session
    from logsieve.store import FilterStore

console = Console()
err_console = Console(stderr=True)

DEFAULT_SESSION = "default"

SessionOption = Annotated[str, typer.Option("--session", "-s", help="Saved filter session to use")]


class ConsoleNotifier:
    """Notifier printing user messages with rich."""

    def info(self, message: str) -> None:
        console.print(escape(message), highlight=False, soft_wrap=True)

    def warning(self, message: str) -> None:
        err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False, soft_wrap=True)

    def error(self, message: str) -> None:
        err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)


def setup_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def open_session(name: str, *, create: bool = False) -> Session:
    """Load a session, optionally starting an empty one when it does not exist."""
    try:
        return load_session(name)
    except FileNotFoundError:
        if create:
            return create_session(name, [])
        err_console.print(f"[red]Error:[/red] session '{escape(name)}' not found")
        raise typer.Exit(1)  # noqa: B904


def store_session(session: Session, store: FilterStore) -> None:
    save_session(touch_session(session, store.get_groups()))
