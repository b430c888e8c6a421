"""Group and rule management subcommands, operating on a saved session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import typer
from rich.markup import escape
from rich.table import Table

from logsieve.commands.common import (
    DEFAULT_SESSION,
    SessionOption,
    console,
    err_console,
    open_session,
    store_session,
)
from logsieve.config import load_config
from logsieve.models import FilterMode, RuleKind
from logsieve.store import FilterStore

if TYPE_CHECKING:
    from logsieve.models import Session

group_app = typer.Typer(name="group", help="Manage filter groups")
rule_app = typer.Typer(name="rule", help="Manage filter rules")

_GroupId = Annotated[str, typer.Argument(help="Group id (or unique id prefix)")]
_RuleId = Annotated[str, typer.Argument(help="Rule id (or unique id prefix)")]


def _load(session: str, *, create: bool = False) -> tuple[FilterStore, Session]:
    loaded = open_session(session, create=create)
    store = FilterStore(default_group_enabled=load_config().new_group_enabled)
    store.load_groups(loaded.groups)
    return store, loaded


def _resolve_group(store: FilterStore, prefix: str) -> str:
    matches = [g.id for g in store.get_groups() if g.id.startswith(prefix)]
    if len(matches) != 1:
        err_console.print(f"[red]Error:[/red] no unique group matches '{escape(prefix)}'")
        raise typer.Exit(1)
    return matches[0]


def _resolve_rule(store: FilterStore, prefix: str) -> tuple[str, str]:
    matches = [(g.id, r.id) for g in store.get_groups() for r in g.rules if r.id.startswith(prefix)]
    if len(matches) != 1:
        err_console.print(f"[red]Error:[/red] no unique rule matches '{escape(prefix)}'")
        raise typer.Exit(1)
    return matches[0]


@group_app.command("add")
def add_group(
    name: Annotated[str, typer.Argument(help="Group name")],
    regex: Annotated[bool, typer.Option("--regex", help="Create a regex group instead of a word group")] = False,  # noqa: FBT002
    enabled: Annotated[bool | None, typer.Option("--enabled/--disabled", help="Initial state")] = None,
    session: SessionOption = DEFAULT_SESSION,
) -> None:
    """Create a new, empty group."""
    store, loaded = _load(session, create=True)
    group = store.add_group(name, regex, enabled=enabled)
    store_session(loaded, store)
    console.print(f"Added group [bold]{escape(group.name)}[/bold] ({group.id})", highlight=False)


@group_app.command("list")
def list_groups(
    session: SessionOption = DEFAULT_SESSION,
    mode: Annotated[FilterMode | None, typer.Option("--mode", "-m", help="Only list groups of this mode")] = None,
) -> None:
    """Show groups and their rules."""
    store, _ = _load(session)
    groups = store.get_groups() if mode is None else store.get_groups_by_mode(mode)
    table = Table()
    table.add_column("Id")
    table.add_column("Group / rule")
    table.add_column("Mode")
    table.add_column("State")
    for g in groups:
        table.add_row(g.id[:8], f"[bold]{escape(g.name)}[/bold]", g.mode.value, "active" if g.enabled else "inactive")
        for r in g.rules:
            flags = "Aa" if r.case_sensitive else ""
            state = "enabled" if r.enabled else "disabled"
            table.add_row(f"  {r.id[:8]}", f"  {escape(r.label)}", flags, state)
    console.print(table)


@group_app.command("toggle")
def toggle_group(group_id: _GroupId, session: SessionOption = DEFAULT_SESSION) -> None:
    """Enable or disable a group."""
    store, loaded = _load(session)
    store.toggle_group(_resolve_group(store, group_id))
    store_session(loaded, store)


@group_app.command("rename")
def rename_group(
    group_id: _GroupId,
    name: Annotated[str, typer.Argument(help="New name")],
    session: SessionOption = DEFAULT_SESSION,
) -> None:
    """Rename a group."""
    store, loaded = _load(session)
    store.rename_group(_resolve_group(store, group_id), name)
    store_session(loaded, store)


@group_app.command("remove")
def remove_group(group_id: _GroupId, session: SessionOption = DEFAULT_SESSION) -> None:
    """Remove a group and all of its rules."""
    store, loaded = _load(session)
    store.remove_group(_resolve_group(store, group_id))
    store_session(loaded, store)


@rule_app.command("add")
def add_rule(
    group_id: _GroupId,
    keyword: Annotated[str, typer.Argument(help="Literal text or regular expression")],
    exclude: Annotated[bool, typer.Option("--exclude", "-x", help="Drop matching lines instead")] = False,  # noqa: FBT002
    case_sensitive: Annotated[bool, typer.Option("--case-sensitive", "-c", help="Match case exactly")] = False,  # noqa: FBT002
    nickname: Annotated[str | None, typer.Option("--nickname", "-n", help="Display name (regex rules)")] = None,
    session: SessionOption = DEFAULT_SESSION,
) -> None:
    """Add a rule to a group."""
    store, loaded = _load(session)
    kind = RuleKind.EXCLUDE if exclude else RuleKind.INCLUDE
    rule = store.add_rule(
        _resolve_group(store, group_id), keyword, kind, case_sensitive=case_sensitive, nickname=nickname
    )
    if rule is None:
        raise typer.Exit(1)
    store_session(loaded, store)
    console.print(f"Added rule {escape(rule.label)} ({rule.id})", highlight=False)


@rule_app.command("toggle")
def toggle_rule(rule_id: _RuleId, session: SessionOption = DEFAULT_SESSION) -> None:
    """Enable or disable a rule."""
    store, loaded = _load(session)
    store.toggle_rule(*_resolve_rule(store, rule_id))
    store_session(loaded, store)


@rule_app.command("remove")
def remove_rule(rule_id: _RuleId, session: SessionOption = DEFAULT_SESSION) -> None:
    """Remove a rule."""
    store, loaded = _load(session)
    store.remove_rule(*_resolve_rule(store, rule_id))
    store_session(loaded, store)
