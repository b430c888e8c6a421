"""In-memory store of filter groups and rules."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from logsieve.events import Signal
from logsieve.models import FilterGroup, FilterMode, FilterRule, RuleKind, new_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


class FilterStore:
    """Owns the ordered groups, their rules, and all enable state.

    Groups and rules are referenced from outside by id only. Every getter
    returns a deep copy, so callers always work on a consistent snapshot and
    cannot mutate the store behind its back.

    Two channels are exposed:

    - on_filters_changed: structural edits (add, remove, toggle, rename,
      move, load). UI refresh and count recomputation hang off this one.
    - on_counts_changed: fired only by update_counts(). Count recomputation
      is itself triggered by structural edits, so it must never re-fire
      on_filters_changed.
    """

    def __init__(self, *, default_group_enabled: bool = False) -> None:
        self.default_group_enabled = default_group_enabled
        self._groups: dict[str, FilterGroup] = {}
        self._rule_owner: dict[str, str] = {}
        self.on_filters_changed: Signal[None] = Signal()
        self.on_counts_changed: Signal[None] = Signal()

    # --- Queries ---

    def get_groups(self) -> list[FilterGroup]:
        """Snapshot of all groups in insertion order."""
        return [g.model_copy(deep=True) for g in self._groups.values()]

    def get_groups_by_mode(self, mode: FilterMode) -> list[FilterGroup]:
        return [g for g in self.get_groups() if g.is_regex == mode.is_regex]

    def get_group(self, group_id: str) -> FilterGroup | None:
        group = self._groups.get(group_id)
        return group.model_copy(deep=True) if group else None

    def find_rule(self, rule_id: str) -> tuple[FilterGroup, FilterRule] | None:
        """Resolve a rule id to (group, rule) snapshots, or None if unknown."""
        found = self._lookup_rule(rule_id)
        if found is None:
            return None
        group, rule = found
        return group.model_copy(deep=True), rule.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._groups)

    # --- Group operations ---

    def add_group(self, name: str, is_regex: bool = False, *, enabled: bool | None = None) -> FilterGroup:  # noqa: FBT001, FBT002
        group = FilterGroup(
            name=name,
            is_regex=is_regex,
            enabled=self.default_group_enabled if enabled is None else enabled,
        )
        self._groups[group.id] = group
        logger.debug("Added group %s (%s)", group.name, group.id)
        self._fire_filters_changed()
        return group.model_copy(deep=True)

    def remove_group(self, group_id: str) -> bool:
        group = self._groups.pop(group_id, None)
        if group is None:
            logger.debug("remove_group: unknown group %s", group_id)
            return False
        for rule in group.rules:
            self._rule_owner.pop(rule.id, None)
        self._fire_filters_changed()
        return True

    def toggle_group(self, group_id: str) -> bool:
        group = self._groups.get(group_id)
        if group is None:
            logger.debug("toggle_group: unknown group %s", group_id)
            return False
        group.enabled = not group.enabled
        self._fire_filters_changed()
        return True

    def rename_group(self, group_id: str, name: str) -> bool:
        group = self._groups.get(group_id)
        if group is None:
            logger.debug("rename_group: unknown group %s", group_id)
            return False
        group.name = name
        self._fire_filters_changed()
        return True

    def set_groups_enabled(self, mode: FilterMode, *, enabled: bool) -> int:
        """Enable or disable every group of a mode. Returns how many changed."""
        changed = 0
        for group in self._groups.values():
            if group.is_regex == mode.is_regex and group.enabled != enabled:
                group.enabled = enabled
                changed += 1
        if changed:
            self._fire_filters_changed()
        return changed

    # --- Rule operations ---

    def add_rule(
        self,
        group_id: str,
        keyword: str,
        kind: RuleKind = RuleKind.INCLUDE,
        *,
        is_regex: bool | None = None,
        case_sensitive: bool = False,
        nickname: str | None = None,
    ) -> FilterRule | None:
        """Append a new enabled rule to a group.

        The regex flag defaults to the group's mode. A rule whose explicit
        flag disagrees with the group is refused, as groups never mix modes.
        """
        group = self._groups.get(group_id)
        if group is None:
            logger.debug("add_rule: unknown group %s", group_id)
            return None
        if is_regex is not None and is_regex != group.is_regex:
            logger.warning(
                "Refusing %s rule in %s group %s", _mode_name(is_regex), _mode_name(group.is_regex), group.name
            )
            return None
        rule = FilterRule(
            keyword=keyword,
            kind=kind,
            is_regex=group.is_regex,
            case_sensitive=case_sensitive,
            nickname=nickname if group.is_regex else None,
        )
        group.rules.append(rule)
        self._rule_owner[rule.id] = group.id
        self._fire_filters_changed()
        return rule.model_copy(deep=True)

    def remove_rule(self, group_id: str, rule_id: str) -> bool:
        group, rule = self._group_rule(group_id, rule_id)
        if group is None or rule is None:
            return False
        group.rules.remove(rule)
        self._rule_owner.pop(rule_id, None)
        self._fire_filters_changed()
        return True

    def toggle_rule(self, group_id: str, rule_id: str) -> bool:
        _, rule = self._group_rule(group_id, rule_id)
        if rule is None:
            return False
        rule.enabled = not rule.enabled
        self._fire_filters_changed()
        return True

    def toggle_rule_case(self, group_id: str, rule_id: str) -> bool:
        _, rule = self._group_rule(group_id, rule_id)
        if rule is None:
            return False
        rule.case_sensitive = not rule.case_sensitive
        self._fire_filters_changed()
        return True

    def toggle_rule_kind(self, group_id: str, rule_id: str) -> bool:
        _, rule = self._group_rule(group_id, rule_id)
        if rule is None:
            return False
        rule.kind = RuleKind.EXCLUDE if rule.kind == RuleKind.INCLUDE else RuleKind.INCLUDE
        self._fire_filters_changed()
        return True

    def update_rule(
        self,
        group_id: str,
        rule_id: str,
        *,
        keyword: str | None = None,
        nickname: str | None = None,
    ) -> bool:
        """Edit a rule's keyword and/or nickname (nickname applies to regex rules only)."""
        _, rule = self._group_rule(group_id, rule_id)
        if rule is None:
            return False
        if keyword is not None:
            rule.keyword = keyword
        if nickname is not None and rule.is_regex:
            rule.nickname = nickname or None
        self._fire_filters_changed()
        return True

    def move_rule(self, rule_id: str, target_group_id: str, index: int | None = None) -> bool:
        """Move a rule to another position, possibly in another group of the same mode."""
        found = self._lookup_rule(rule_id)
        target = self._groups.get(target_group_id)
        if found is None or target is None:
            logger.debug("move_rule: unknown rule %s or group %s", rule_id, target_group_id)
            return False
        source, rule = found
        if source.is_regex != target.is_regex:
            logger.warning("Cannot move rule %s between word and regex groups", rule.keyword)
            return False
        source.rules.remove(rule)
        if index is None or index >= len(target.rules):
            target.rules.append(rule)
        else:
            target.rules.insert(max(index, 0), rule)
        self._rule_owner[rule.id] = target.id
        self._fire_filters_changed()
        return True

    # --- Bulk operations ---

    def load_groups(self, groups: Iterable[FilterGroup]) -> None:
        """Replace the whole model, e.g. when restoring a saved session.

        Rules whose regex flag disagrees with their group are realigned, and
        duplicate rule ids are regenerated so lookups stay unambiguous.
        """
        self._groups.clear()
        self._rule_owner.clear()
        for incoming in groups:
            group = incoming.model_copy(deep=True)
            for i, rule in enumerate(group.rules):
                if rule.id in self._rule_owner:
                    rule = group.rules[i] = rule.model_copy(update={"id": new_id()})
                rule.is_regex = group.is_regex
                self._rule_owner[rule.id] = group.id
            self._groups[group.id] = group
        self._fire_filters_changed()

    def update_counts(self, rule_counts: Mapping[str, int], group_counts: Mapping[str, int]) -> None:
        """Merge freshly computed counts into the cached count fields.

        Fires on_counts_changed only, never on_filters_changed.
        """
        for group in self._groups.values():
            if group.id in group_counts:
                group.result_count = group_counts[group.id]
            for rule in group.rules:
                if rule.id in rule_counts:
                    rule.result_count = rule_counts[rule.id]
        self.on_counts_changed.emit(None)

    # --- Internals ---

    def _lookup_rule(self, rule_id: str) -> tuple[FilterGroup, FilterRule] | None:
        group_id = self._rule_owner.get(rule_id)
        if group_id is None:
            return None
        group = self._groups[group_id]
        for rule in group.rules:
            if rule.id == rule_id:
                return group, rule
        return None

    def _group_rule(self, group_id: str, rule_id: str) -> tuple[FilterGroup | None, FilterRule | None]:
        group = self._groups.get(group_id)
        if group is None:
            logger.debug("Unknown group %s", group_id)
            return None, None
        for rule in group.rules:
            if rule.id == rule_id:
                return group, rule
        logger.debug("Unknown rule %s in group %s", rule_id, group_id)
        return group, None

    def _fire_filters_changed(self) -> None:
        self.on_filters_changed.emit(None)


def _mode_name(is_regex: bool) -> str:  # noqa: FBT001
    return FilterMode.REGEX.value if is_regex else FilterMode.WORD.value
