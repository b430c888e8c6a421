"""Live match ranges and counts for the displayed buffer."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from logsieve.events import Signal
from logsieve.models import RuleKind
from logsieve.patterns import compile_rule, find_ranges

if TYPE_CHECKING:
    from collections.abc import Iterable

    from logsieve.models import AppConfig, Document, FilterGroup, FilterRule
    from logsieve.store import FilterStore

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024
FLASH_SECONDS = 1.5


@dataclass
class LiveMatches:
    """Match offsets per rule id, plus the derived counts."""

    ranges: dict[str, list[tuple[int, int]]] = field(default_factory=dict)

    @property
    def counts(self) -> dict[str, int]:
        return {rule_id: len(spans) for rule_id, spans in self.ranges.items()}

    @property
    def total(self) -> int:
        return sum(len(spans) for spans in self.ranges.values())


def is_live_rule(group: FilterGroup, rule: FilterRule, *, regex_enabled: bool) -> bool:
    """Live policy: each rule on its own, include rules only, regex rules behind a global switch."""
    if not (group.enabled and rule.enabled and rule.keyword and rule.kind == RuleKind.INCLUDE):
        return False
    return regex_enabled or not rule.is_regex


class HighlightService:
    """Computes which parts of the open buffer each active include rule matches.

    Painting is left to a collaborator listening on on_highlights_changed.
    The counts returned by update_highlights() are handed straight to the
    count service so the buffer is not scanned twice.
    """

    def __init__(self, store: FilterStore, config: AppConfig) -> None:
        self.store = store
        self.config = config
        self.current = LiveMatches()
        self.flashed_line: int | None = None
        self.on_highlights_changed: Signal[LiveMatches] = Signal()
        self.on_flash: Signal[int | None] = Signal()
        self._flash_handle: asyncio.TimerHandle | None = None

    def compute(self, text: str, groups: Iterable[FilterGroup] | None = None) -> LiveMatches:
        snapshot = self.store.get_groups() if groups is None else groups
        regex_enabled = self.config.enable_regex_highlight
        matches = LiveMatches()
        for group in snapshot:
            for rule in group.rules:
                if is_live_rule(group, rule, regex_enabled=regex_enabled):
                    matches.ranges[rule.id] = find_ranges(compile_rule(rule), text)
        return matches

    def update_highlights(self, document: Document | None) -> dict[str, int] | None:
        """Recompute matches for the document and return counts keyed by rule id.

        Returns None, after clearing, when there is no document or it is over
        the buffer size limit; such files are handled by the file engine.
        """
        if document is None or self._over_limit(document):
            self.clear()
            return None
        self.current = self.compute(document.text)
        self.on_highlights_changed.emit(self.current)
        return self.current.counts

    def clear(self) -> None:
        self.current = LiveMatches()
        self.on_highlights_changed.emit(self.current)

    def flash_line(self, line: int, duration: float = FLASH_SECONDS) -> None:
        """Briefly highlight one line, e.g. after jumping to a bookmark.

        Must be called from the running event loop. A new flash replaces a
        pending one.
        """
        if self._flash_handle is not None:
            self._flash_handle.cancel()
        self.flashed_line = line
        self.on_flash.emit(line)
        loop = asyncio.get_running_loop()
        self._flash_handle = loop.call_later(duration, self._end_flash)

    def _end_flash(self) -> None:
        self._flash_handle = None
        self.flashed_line = None
        self.on_flash.emit(None)

    def _over_limit(self, document: Document) -> bool:
        size_mb = len(document.text.encode("utf-8", errors="replace")) / _BYTES_PER_MB
        if size_mb > self.config.max_buffer_size_mb:
            logger.info("Skipping highlights: buffer is %.1fMB", size_mb)
            return True
        return False
