"""Session save/load for filter groups."""

from __future__ import annotations

import tomllib
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import tomli_w

from logsieve.config import get_sessions_dir
from logsieve.models import FilterGroup, FilterRule, RuleKind, Session

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

SESSION_VERSION = 1


def save_session(session: Session) -> Path:
    """Save a session to a TOML file. Returns the file path."""
    sessions_dir = get_sessions_dir()
    path = sessions_dir / f"{session.name}.toml"

    data: dict[str, Any] = {
        "version": session.version,
        "name": session.name,
        "created_at": session.created_at.isoformat(),
        "updated_at": session.updated_at.isoformat(),
        "groups": [_group_to_dict(g) for g in session.groups],
    }

    path.write_bytes(tomli_w.dumps(data).encode())
    return path


def load_session(name: str) -> Session:
    """Load a session from a TOML file."""
    sessions_dir = get_sessions_dir()
    path = sessions_dir / f"{name}.toml"

    if not path.exists():
        msg = f"Session '{name}' not found"
        raise FileNotFoundError(msg)

    data = tomllib.loads(path.read_text())
    return Session(
        name=data["name"],
        groups=[_dict_to_group(g) for g in data.get("groups", [])],
        version=max(data.get("version", 0), SESSION_VERSION),
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=datetime.fromisoformat(data["updated_at"]),
    )


def list_sessions() -> list[str]:
    """List all saved session names."""
    sessions_dir = get_sessions_dir()
    return sorted(p.stem for p in sessions_dir.glob("*.toml"))


def delete_session(name: str) -> bool:
    """Delete a saved session. Returns False if it did not exist."""
    sessions_dir = get_sessions_dir()
    path = sessions_dir / f"{name}.toml"
    if not path.exists():
        return False
    path.unlink()
    return True


def rename_session(old_name: str, new_name: str) -> None:
    """Rename a saved session."""
    sessions_dir = get_sessions_dir()
    old_path = sessions_dir / f"{old_name}.toml"
    if old_path.exists():
        session = load_session(old_name)
        save_session(session.model_copy(update={"name": new_name}))
        old_path.unlink()


def create_session(name: str, groups: Iterable[FilterGroup]) -> Session:
    """Create a new Session with current timestamp."""
    now = datetime.now(tz=UTC)
    return Session(name=name, groups=list(groups), created_at=now, updated_at=now)


def touch_session(session: Session, groups: Iterable[FilterGroup]) -> Session:
    """Return a copy of the session holding new groups and a fresh update time."""
    return session.model_copy(update={"groups": list(groups), "updated_at": datetime.now(tz=UTC)})


def _group_to_dict(group: FilterGroup) -> dict[str, Any]:
    return {
        "id": group.id,
        "name": group.name,
        "is_regex": group.is_regex,
        "enabled": group.enabled,
        "rules": [_rule_to_dict(r) for r in group.rules],
    }


def _rule_to_dict(rule: FilterRule) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": rule.id,
        "keyword": rule.keyword,
        "kind": rule.kind.value,
        "is_regex": rule.is_regex,
        "case_sensitive": rule.case_sensitive,
        "enabled": rule.enabled,
    }
    if rule.nickname is not None:
        d["nickname"] = rule.nickname
    return d


def _dict_to_group(d: dict[str, Any]) -> FilterGroup:
    is_regex = d.get("is_regex", False)
    group = FilterGroup(
        name=d["name"],
        is_regex=is_regex,
        enabled=d.get("enabled", False),
        rules=[_dict_to_rule(r, is_regex=is_regex) for r in d.get("rules", [])],
    )
    if "id" in d:
        group.id = d["id"]
    return group


def _dict_to_rule(d: dict[str, Any], *, is_regex: bool) -> FilterRule:
    rule = FilterRule(
        keyword=d.get("keyword", ""),
        nickname=d.get("nickname"),
        kind=RuleKind(d.get("kind", RuleKind.INCLUDE)),
        is_regex=is_regex,
        case_sensitive=d.get("case_sensitive", False),
        enabled=d.get("enabled", True),
    )
    if "id" in d:
        rule.id = d["id"]
    return rule
