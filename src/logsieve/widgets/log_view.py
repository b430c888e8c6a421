"""Scrollable log viewer that paints live rule matches."""

from __future__ import annotations

import bisect
from typing import TYPE_CHECKING, Any, ClassVar

from rich.segment import Segment
from rich.style import Style
from textual.binding import Binding, BindingType
from textual.geometry import Size
from textual.reactive import reactive
from textual.scroll_view import ScrollView
from textual.strip import Strip

from logsieve.reader import line_starts, split_lines

if TYPE_CHECKING:
    from logsieve.highlight import LiveMatches


class LogView(ScrollView, can_focus=True):
    """Log line viewer using the Line API for virtual rendering."""

    DEFAULT_CSS = """
    LogView {
        background: $surface;
        height: 1fr;
    }

    LogView > .logview--cursor {
        background: $primary-darken-2;
        color: $text;
    }

    LogView > .logview--line-number {
        color: $text-disabled;
    }

    LogView > .logview--flash {
        background: $warning-darken-2;
    }
    """

    COMPONENT_CLASSES: ClassVar[set[str]] = {
        "logview--cursor",
        "logview--line-number",
        "logview--flash",
    }

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("pageup", "page_up", "Page Up", show=False),
        Binding("pagedown", "page_down", "Page Down", show=False),
        Binding("home", "scroll_home", "Home", show=False),
        Binding("end", "scroll_end", "End", show=False),
    ]

    cursor_line: reactive[int] = reactive(0)

    def __init__(self, match_color: str = "#ff00ff", bookmark_color: str = "#3a5f8f", **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__(**kwargs)
        self._lines: list[str] = []
        self._line_starts: list[int] = []
        self._max_width: int = 0
        # line index -> [(start, end)] in line-relative offsets
        self._matches_by_line: dict[int, list[tuple[int, int]]] = {}
        self._bookmarked: set[int] = set()
        self._flashed: int | None = None
        self._match_style = Style(color=match_color, bold=True, underline=True)
        self._bookmark_style = Style(bgcolor=bookmark_color)

    @property
    def lines(self) -> list[str]:
        return self._lines

    def set_text(self, text: str) -> None:
        """Replace the displayed text. Match spans are cleared until set_matches() is called."""
        self._lines = split_lines(text)
        self._line_starts = line_starts(text)
        self._max_width = max((len(line) for line in self._lines), default=0)
        self._matches_by_line = {}
        self.cursor_line = min(self.cursor_line, max(0, len(self._lines) - 1))
        self.virtual_size = Size(self._max_width + self._gutter_width(), len(self._lines))
        self.refresh()

    def set_matches(self, matches: LiveMatches) -> None:
        """Split absolute match offsets into per-line spans."""
        by_line: dict[int, list[tuple[int, int]]] = {}
        for spans in matches.ranges.values():
            for start, end in spans:
                line = bisect.bisect_right(self._line_starts, start) - 1
                if line < 0:
                    continue
                base = self._line_starts[line]
                by_line.setdefault(line, []).append((start - base, end - base))
        for spans in by_line.values():
            spans.sort()
        self._matches_by_line = by_line
        self.refresh()

    def set_bookmarks(self, lines: set[int]) -> None:
        self._bookmarked = set(lines)
        self.refresh()

    def set_flash(self, line: int | None) -> None:
        self._flashed = line
        if line is not None:
            self.cursor_line = line
            self._scroll_cursor_into_view(center=True)
        self.refresh()

    def _gutter_width(self) -> int:
        return len(str(len(self._lines))) + 1

    def render_line(self, y: int) -> Strip:
        scroll_x, scroll_y = self.scroll_offset
        line_index = scroll_y + y
        content_width = self.scrollable_content_region.width
        if content_width <= 0:
            return Strip.blank(self.size.width, self.rich_style)
        if line_index >= len(self._lines) or line_index < 0:
            return Strip.blank(content_width, self.rich_style)

        if line_index == self._flashed:
            bg_style = self.get_component_rich_style("logview--flash")
        elif line_index == self.cursor_line:
            bg_style = self.get_component_rich_style("logview--cursor")
        elif line_index in self._bookmarked:
            bg_style = self._bookmark_style
        else:
            bg_style = Style()

        gutter = f"{line_index + 1:>{self._gutter_width() - 1}} "
        segments = [Segment(gutter, self.get_component_rich_style("logview--line-number") + bg_style)]
        segments.extend(
            self._split_with_matches(self._lines[line_index], self._matches_by_line.get(line_index, []), bg_style)
        )

        strip = Strip(segments).crop(scroll_x, scroll_x + content_width)
        if bg_style != Style():
            return strip.extend_cell_length(content_width, Style(bgcolor=bg_style.bgcolor))
        return strip.extend_cell_length(content_width).apply_style(self.rich_style)

    def _split_with_matches(self, text: str, spans: list[tuple[int, int]], bg_style: Style) -> list[Segment]:
        """Split a line into plain and matched segments; overlapping spans are merged."""
        if not spans:
            return [Segment(text, bg_style)]
        segments: list[Segment] = []
        pos = 0
        match_style = bg_style + self._match_style
        for start, end in spans:
            start = max(start, pos)  # noqa: PLW2901
            if end <= start:
                continue
            if start > pos:
                segments.append(Segment(text[pos:start], bg_style))
            segments.append(Segment(text[start:end], match_style))
            pos = end
        if pos < len(text):
            segments.append(Segment(text[pos:], bg_style))
        return segments

    def watch_cursor_line(self, _old_value: int, _new_value: int) -> None:
        self._scroll_cursor_into_view()
        self.refresh()

    def _scroll_cursor_into_view(self, *, center: bool = False) -> None:
        region_height = self.scrollable_content_region.height
        if not self._lines or region_height <= 0:
            return
        cursor = min(self.cursor_line, len(self._lines) - 1)
        scroll_y = self.scroll_offset.y
        if center:
            self.scroll_to(y=max(0, cursor - region_height // 2), animate=False)
        elif cursor < scroll_y:
            self.scroll_to(y=cursor, animate=False)
        elif cursor >= scroll_y + region_height:
            self.scroll_to(y=cursor - region_height + 1, animate=False)

    # --- Actions ---

    def action_cursor_up(self) -> None:
        if self.cursor_line > 0:
            self.cursor_line -= 1

    def action_cursor_down(self) -> None:
        if self.cursor_line < len(self._lines) - 1:
            self.cursor_line += 1

    def action_page_up(self) -> None:
        page_size = max(1, self.scrollable_content_region.height - 1)
        self.cursor_line = max(0, self.cursor_line - page_size)

    def action_page_down(self) -> None:
        page_size = max(1, self.scrollable_content_region.height - 1)
        self.cursor_line = min(max(0, len(self._lines) - 1), self.cursor_line + page_size)

    def action_scroll_home(self) -> None:
        self.cursor_line = 0

    def action_scroll_end(self) -> None:
        if self._lines:
            self.cursor_line = len(self._lines) - 1
