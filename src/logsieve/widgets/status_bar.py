"""Bottom status bar."""

from __future__ import annotations

from rich.text import Text
from textual.widget import Widget

_MILLION = 1_000_000
_TEN_THOUSAND = 10_000
_THOUSAND = 1_000


def _format_count(n: int) -> str:
    """Format a count compactly: 1234 -> '1,234', 1234567 -> '1.2M'."""
    if n >= _MILLION:
        return f"{n / _MILLION:.1f}M"
    if n >= _TEN_THOUSAND:
        return f"{n / _THOUSAND:.0f}K"
    return f"{n:,}"


class StatusBar(Widget):
    """Bottom status bar showing line and match counts, bookmarks, and source."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    def __init__(self, source: str = "", id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id)
        self._source = source
        self._total: int = 0
        self._matches: int | None = None
        self._bookmark_count: int = 0
        self._regex_highlight: bool = True
        self._too_large: bool = False

    def set_source(self, source: str) -> None:
        self._source = source
        self.refresh()

    def set_total(self, total: int) -> None:
        self._total = total
        self.refresh()

    def set_matches(self, matches: int | None) -> None:
        """Set the total live match count, None hides it."""
        self._matches = matches
        self.refresh()

    def set_bookmark_count(self, count: int) -> None:
        self._bookmark_count = count
        self.refresh()

    def set_regex_highlight(self, *, enabled: bool) -> None:
        self._regex_highlight = enabled
        self.refresh()

    def set_too_large(self, *, too_large: bool) -> None:
        """Flag a buffer skipped by highlighting and counting."""
        self._too_large = too_large
        self.refresh()

    def render(self) -> Text:
        text = Text()
        text.append(f"{_format_count(self._total)} lines")

        if self._too_large:
            text.append("  too large to highlight", style="bold italic")
        elif self._matches is not None:
            text.append(f"  {_format_count(self._matches)} matches", style="bold")

        if not self._regex_highlight:
            text.append("  regex off", style="italic")

        if self._bookmark_count > 0:
            text.append(f"  B:{self._bookmark_count}", style="bold")

        right_part = self._source
        if right_part:
            used = len(text.plain)
            padding = max(1, self.size.width - used - len(right_part))
            text.append(" " * padding)
            text.append(right_part)

        return text
