"""View command - open a log file in the TUI with live match counts."""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - typer needs this at runtime for argument parsing
from typing import Annotated

import typer

from logsieve.commands.common import DEFAULT_SESSION, SessionOption, open_session


def view(
    file: Annotated[Path, typer.Argument(help="Log file to view", exists=True, dir_okay=False, readable=True)],
    session: SessionOption = DEFAULT_SESSION,
) -> None:
    """Open FILE with the session's filter groups and live counts."""
    from logsieve.app import LogSieveApp  # noqa: PLC0415

    app = LogSieveApp(file_path=file, session=open_session(session, create=True))
    app.run()
