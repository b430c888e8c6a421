"""Wiring of the store, live matching, counting and filter execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from logsieve.bookmarks import BookmarkService
from logsieve.counts import ResultCountService
from logsieve.engine import LogProcessor
from logsieve.execution import FilterExecution
from logsieve.highlight import HighlightService
from logsieve.source_map import SourceMap
from logsieve.store import FilterStore

if TYPE_CHECKING:
    from logsieve.execution import Notifier
    from logsieve.models import AppConfig, Document


@dataclass
class Services:
    """One instance of every collaborator, built together by create_services()."""

    config: AppConfig
    store: FilterStore
    highlight: HighlightService
    counts: ResultCountService
    processor: LogProcessor
    source_map: SourceMap
    bookmarks: BookmarkService
    execution: FilterExecution
    document: Document | None = field(default=None)

    def set_document(self, document: Document | None) -> None:
        """Switch the displayed buffer (or clear it) and refresh highlights and counts."""
        self.document = document
        self.refresh_live()

    def refresh_live(self) -> None:
        """Re-highlight the buffer and apply the resulting counts without a second scan."""
        known = self.highlight.update_highlights(self.document)
        if known is None:
            self.counts.cancel()
            self.counts.clear_counts()
        else:
            self.counts.update_counts(known)

    def text_changed(self, text: str) -> None:
        """The buffer was edited: keep the new text and schedule a debounced recount."""
        if self.document is None:
            return
        self.document = self.document.model_copy(update={"text": text})
        self.counts.update_counts()


def create_services(config: AppConfig, notifier: Notifier | None = None) -> Services:
    store = FilterStore(default_group_enabled=config.new_group_enabled)
    processor = LogProcessor(output_dir=config.output_dir)
    source_map = SourceMap()
    bookmarks = BookmarkService()
    services = Services(
        config=config,
        store=store,
        highlight=HighlightService(store, config),
        counts=ResultCountService(store, config, lambda: services.document),
        processor=processor,
        source_map=source_map,
        bookmarks=bookmarks,
        execution=FilterExecution(store, processor, source_map, bookmarks, notifier, output_dir=config.output_dir),
    )
    store.on_filters_changed.subscribe(lambda _: services.refresh_live())
    return services
