"""Modal dialogs for adding groups and rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Checkbox, Input, Label

from logsieve.models import RuleKind

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType


@dataclass(frozen=True)
class RuleInput:
    keyword: str
    kind: RuleKind
    case_sensitive: bool
    nickname: str | None = None


_DIALOG_CSS = """
{name} {{
    align: center middle;
}}

{name} > Vertical {{
    width: 70;
    height: auto;
    background: $surface;
    border: tall $accent;
    padding: 1 2;
}}

{name} > Vertical > .title {{
    text-style: bold;
}}

{name} Input {{
    width: 100%;
    margin-top: 1;
}}

{name} Horizontal {{
    height: auto;
    margin-top: 1;
}}

{name} Horizontal > Checkbox {{
    margin-right: 3;
}}

{name} > Vertical > .hint {{
    color: $text-muted;
    margin-top: 1;
}}
"""


class GroupDialog(ModalScreen[str | None]):
    """Ask for the name of a new group."""

    DEFAULT_CSS = _DIALOG_CSS.format(name="GroupDialog")

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, *, is_regex: bool) -> None:
        super().__init__()
        self._is_regex = is_regex

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label("New regex group" if self._is_regex else "New word group", classes="title")
            yield Input(placeholder="Group name...", id="group-name")
            yield Label("Enter to add, Escape to cancel", classes="hint")

    def on_mount(self) -> None:
        self.query_one("#group-name", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        name = event.value.strip()
        self.dismiss(name or None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class RuleDialog(ModalScreen[RuleInput | None]):
    """Ask for a rule's keyword and flags."""

    DEFAULT_CSS = _DIALOG_CSS.format(name="RuleDialog")

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, group_name: str, *, is_regex: bool) -> None:
        super().__init__()
        self._group_name = group_name
        self._is_regex = is_regex

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(f"Add rule to {self._group_name}", classes="title")
            yield Input(placeholder="regular expression..." if self._is_regex else "text...", id="keyword")
            if self._is_regex:
                yield Input(placeholder="nickname (optional)", id="nickname")
            with Horizontal():
                yield Checkbox("Exclude", id="exclude")
                yield Checkbox("Case sensitive", id="case-sensitive")
            yield Label("Enter to add, Escape to cancel", classes="hint")

    def on_mount(self) -> None:
        self.query_one("#keyword", Input).focus()

    def on_input_submitted(self, _event: Input.Submitted) -> None:
        keyword = self.query_one("#keyword", Input).value
        if not keyword:
            self.dismiss(None)
            return
        nickname = self.query_one("#nickname", Input).value.strip() if self._is_regex else ""
        exclude = self.query_one("#exclude", Checkbox).value
        self.dismiss(
            RuleInput(
                keyword=keyword,
                kind=RuleKind.EXCLUDE if exclude else RuleKind.INCLUDE,
                case_sensitive=self.query_one("#case-sensitive", Checkbox).value,
                nickname=nickname or None,
            )
        )

    def action_cancel(self) -> None:
        self.dismiss(None)
