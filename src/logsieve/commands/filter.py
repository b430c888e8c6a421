"""Filter and count commands - run a session's filters against a log file."""

from __future__ import annotations

import asyncio
from pathlib import Path  # noqa: TC003 - typer needs this at runtime for argument parsing
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from logsieve.commands.common import DEFAULT_SESSION, ConsoleNotifier, SessionOption, console, err_console, open_session
from logsieve.config import load_config
from logsieve.models import FilterMode
from logsieve.reader import FileTooLargeError, load_document
from logsieve.services import create_services


def filter_file(
    file: Annotated[Path, typer.Argument(help="Log file to filter", exists=True, dir_okay=False, readable=True)],
    session: SessionOption = DEFAULT_SESSION,
    mode: Annotated[FilterMode, typer.Option("--mode", "-m", help="Which groups to apply")] = FilterMode.WORD,
    group: Annotated[str | None, typer.Option("--group", "-g", help="Run only this group id")] = None,
    output_dir: Annotated[Path | None, typer.Option("--output-dir", "-o", help="Directory for the output")] = None,
    show_mapping: Annotated[bool, typer.Option("--mapping", help="Print the original line of each output line")] = False,  # noqa: FBT002
) -> None:
    """Write the lines of FILE retained by the session's active groups to a new file."""
    config = load_config()
    if output_dir is not None:
        config = config.model_copy(update={"output_dir": output_dir})
    services = create_services(config, ConsoleNotifier())
    services.store.load_groups(open_session(session).groups)

    if group is None:
        result = asyncio.run(services.execution.apply_filter(mode, file))
    else:
        if services.store.get_group(group) is None:
            err_console.print(f"[red]Error:[/red] group '{escape(group)}' not found")
            raise typer.Exit(1)
        result = asyncio.run(services.execution.run_filter_group(group, file))

    if result is None:
        raise typer.Exit(1)
    if show_mapping:
        for out_line, src_line in enumerate(result.line_mapping, start=1):
            typer.echo(f"{out_line}\t{src_line + 1}")


def count(
    file: Annotated[Path, typer.Argument(help="Log file to count matches in", exists=True, dir_okay=False)],
    session: SessionOption = DEFAULT_SESSION,
) -> None:
    """Show how often each active include rule matches FILE."""
    config = load_config()
    services = create_services(config, ConsoleNotifier())
    services.store.load_groups(open_session(session).groups)
    try:
        services.set_document(load_document(file, config.max_buffer_size_mb))
    except FileTooLargeError as e:
        err_console.print(
            f"[yellow]Warning:[/yellow] {escape(str(e))}. Use 'logsieve filter' for large files.", soft_wrap=True
        )
        raise typer.Exit(1)  # noqa: B904

    table = Table(title=f"Matches in {file.name}")
    table.add_column("Group / rule")
    table.add_column("State")
    table.add_column("Count", justify="right")
    for g in services.store.get_groups():
        table.add_row(f"[bold]{escape(g.name)}[/bold] ({g.mode.value})", _state(enabled=g.enabled), str(g.result_count))
        for r in g.rules:
            table.add_row(f"  {escape(r.label)}", _state(enabled=r.enabled), str(r.result_count))
    console.print(table)


def _state(*, enabled: bool) -> str:
    return "[green]on[/green]" if enabled else "[dim]off[/dim]"
