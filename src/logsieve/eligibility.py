"""Decide which groups take part in full-file filtering."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from logsieve.models import FilterGroup, FilterMode


def is_group_eligible(group: FilterGroup) -> bool:
    """A group filters only if it is enabled and has at least one enabled rule.

    The rule's kind does not matter. This is stricter than the live counting
    policy, which looks at each rule on its own.
    """
    return group.enabled and any(rule.enabled for rule in group.rules)


def resolve_eligible_groups(
    groups: Iterable[FilterGroup],
    mode: FilterMode,
    target_group_id: str | None = None,
) -> list[FilterGroup]:
    """Select the groups to filter with.

    With a target, only that group is considered and all others are ignored.
    Without one, every eligible group of the given mode is returned.
    """
    if target_group_id is not None:
        return [g for g in groups if g.id == target_group_id and is_group_eligible(g)]
    return [g for g in groups if g.is_regex == mode.is_regex and is_group_eligible(g)]


def no_active_groups_message(mode: FilterMode) -> str:
    return f"No active {mode.value} groups selected."
