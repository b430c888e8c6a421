"""Tree of filter groups and their rules, with live result counts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.text import Text
from textual.widgets import Tree

from logsieve.models import FilterMode, RuleKind

if TYPE_CHECKING:
    from textual.widgets.tree import TreeNode

    from logsieve.models import FilterGroup, FilterRule


@dataclass(frozen=True)
class NodeRef:
    """What a tree node points at: a mode header, a group, or a rule inside a group."""

    mode: FilterMode
    group_id: str | None = None
    rule_id: str | None = None


def group_label(group: FilterGroup) -> Text:
    text = Text()
    text.append("[x] " if group.enabled else "[ ] ", style="bold" if group.enabled else "dim")
    text.append(group.name, style="bold" if group.enabled else "dim")
    if group.result_count:
        text.append(f" ({group.result_count})", style="cyan")
    return text


def rule_label(group: FilterGroup, rule: FilterRule) -> Text:
    active = group.enabled and rule.enabled
    text = Text()
    text.append("[x] " if rule.enabled else "[ ] ", style="" if active else "dim")
    style = "red" if rule.kind == RuleKind.EXCLUDE else "green"
    text.append(rule.label, style=style if active else "dim")
    if rule.case_sensitive:
        text.append(" Aa", style="italic")
    if rule.result_count:
        text.append(f" ({rule.result_count})", style="cyan")
    return text


class FilterTree(Tree[NodeRef]):
    """Two mode sections, each listing its groups and their rules."""

    DEFAULT_CSS = """
    FilterTree {
        width: 45;
        border-right: solid $primary;
    }
    """

    def __init__(self, id: str | None = None) -> None:  # noqa: A002
        super().__init__("Filters", id=id)
        self.show_root = False
        self._sections: dict[FilterMode, TreeNode[NodeRef]] = {
            mode: self.root.add(
                "Word filters" if mode == FilterMode.WORD else "Regex filters", data=NodeRef(mode), expand=True
            )
            for mode in FilterMode
        }

    @property
    def selected(self) -> NodeRef | None:
        node = self.cursor_node
        return node.data if node is not None else None

    def selected_mode(self) -> FilterMode:
        ref = self.selected
        return ref.mode if ref is not None else FilterMode.WORD

    def set_groups(self, groups: list[FilterGroup]) -> None:
        """Rebuild the group and rule nodes, keeping the cursor on the same item when possible."""
        current = self.selected
        collapsed = {
            node.data.group_id
            for section in self._sections.values()
            for node in section.children
            if node.data is not None and not node.is_expanded
        }
        for mode, section in self._sections.items():
            section.remove_children()
            for group in groups:
                if group.mode != mode:
                    continue
                group_node = section.add(
                    group_label(group),
                    data=NodeRef(mode, group.id),
                    expand=group.id not in collapsed,
                )
                for rule in group.rules:
                    group_node.add_leaf(rule_label(group, rule), data=NodeRef(mode, group.id, rule.id))
        if current is not None:
            self._restore_cursor(current)

    def _restore_cursor(self, ref: NodeRef) -> None:
        nodes = {node.data: node for node in self._walk(self.root) if node.data is not None}
        for candidate in (ref, NodeRef(ref.mode, ref.group_id), NodeRef(ref.mode)):
            if candidate in nodes:
                self.move_cursor(nodes[candidate])
                return

    def _walk(self, node: TreeNode[NodeRef]) -> list[TreeNode[NodeRef]]:
        found = [node]
        for child in node.children:
            found.extend(self._walk(child))
        return found
