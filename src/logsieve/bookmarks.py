"""In-memory bookmarks, grouped by file."""

from __future__ import annotations

import bisect
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from logsieve.events import Signal
from logsieve.models import BookmarkItem

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def _line_of(item: BookmarkItem) -> int:
    return item.line


class BookmarkService:
    """Bookmarked lines per file, kept sorted by line number.

    A file never holds two bookmarks on the same line.
    """

    def __init__(self) -> None:
        self._bookmarks: dict[Path, list[BookmarkItem]] = {}
        # path -> line numbers present in _bookmarks[path]
        self._lines: dict[Path, set[int]] = {}
        self.on_bookmarks_changed: Signal[None] = Signal()

    def get_bookmarks(self) -> dict[Path, list[BookmarkItem]]:
        return {path: list(items) for path, items in self._bookmarks.items()}

    def bookmarks_for(self, path: Path) -> list[BookmarkItem]:
        return list(self._bookmarks.get(Path(path), []))

    def add_bookmark(self, path: Path, line: int, content: str) -> BookmarkItem | None:
        """Bookmark a line. Returns None if that line is already bookmarked."""
        path = Path(path)
        if line in self._lines.get(path, ()):
            return None
        item = BookmarkItem(path=path, line=line, content=content)
        bisect.insort(self._bookmarks.setdefault(path, []), item, key=_line_of)
        self._lines.setdefault(path, set()).add(line)
        self.on_bookmarks_changed.emit(None)
        return item

    def add_bookmarks(self, path: Path, lines: Iterable[tuple[int, str]]) -> list[BookmarkItem]:
        """Bookmark many lines at once, sorting once and notifying listeners a single time."""
        path = Path(path)
        seen = self._lines.setdefault(path, set())
        added: list[BookmarkItem] = []
        for line, content in lines:
            if line in seen:
                continue
            seen.add(line)
            added.append(BookmarkItem(path=path, line=line, content=content))
        if not added:
            if not seen:
                del self._lines[path]
            return []
        items = self._bookmarks.setdefault(path, [])
        items.extend(added)
        items.sort(key=_line_of)
        self.on_bookmarks_changed.emit(None)
        return added

    def remove_bookmark(self, bookmark_id: str) -> bool:
        for path, items in self._bookmarks.items():
            for item in items:
                if item.id == bookmark_id:
                    items.remove(item)
                    self._lines[path].discard(item.line)
                    if not items:
                        del self._bookmarks[path]
                        del self._lines[path]
                    self.on_bookmarks_changed.emit(None)
                    return True
        logger.debug("remove_bookmark: unknown bookmark %s", bookmark_id)
        return False

    def clear(self, path: Path | None = None) -> None:
        if path is None:
            self._bookmarks.clear()
            self._lines.clear()
        else:
            self._bookmarks.pop(Path(path), None)
            self._lines.pop(Path(path), None)
        self.on_bookmarks_changed.emit(None)

    def __len__(self) -> int:
        return sum(len(items) for items in self._bookmarks.values())
