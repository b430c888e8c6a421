"""Per-rule and per-group result counts for the displayed buffer."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from logsieve.highlight import is_live_rule
from logsieve.patterns import compile_rule, count_matches

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from logsieve.models import AppConfig, Document, FilterGroup
    from logsieve.store import FilterStore

logger = logging.getLogger(__name__)


class ResultCountService:
    """Keeps the store's cached counts in line with the displayed buffer.

    Counts arrive two ways. Counts already computed by the highlight pass are
    applied at once. Otherwise (a raw text edit) a full recount is scheduled
    after a quiet period; every new request cancels and replaces the pending
    one, so a burst of edits costs a single recount.

    Results always go through FilterStore.update_counts(), which only fires
    the count channel.
    """

    def __init__(
        self,
        store: FilterStore,
        config: AppConfig,
        document_provider: Callable[[], Document | None],
        *,
        delay: float | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.document_provider = document_provider
        self.delay = config.count_debounce_seconds if delay is None else delay
        self._timer: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def update_counts(self, known_counts: Mapping[str, int] | None = None) -> None:
        self.cancel()
        if known_counts is not None:
            self.apply_known_counts(known_counts)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside an event loop there is nothing to debounce against
            self.calculate_counts()
            return
        self._timer = loop.call_later(self.delay, self._on_timer)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def apply_known_counts(self, known_counts: Mapping[str, int]) -> None:
        groups = self.store.get_groups()
        self._publish(groups, lambda rule_id: known_counts.get(rule_id, 0))

    def calculate_counts(self) -> None:
        """Recount every rule against the current document from scratch."""
        document = self.document_provider()
        if document is None:
            self.clear_counts()
            return

        groups = self.store.get_groups()
        regex_enabled = self.config.enable_regex_highlight
        rule_counts: dict[str, int] = {}
        for group in groups:
            for rule in group.rules:
                if is_live_rule(group, rule, regex_enabled=regex_enabled):
                    rule_counts[rule.id] = count_matches(compile_rule(rule), document.text)
        logger.debug("Recounted %d active rules", len(rule_counts))
        self._publish(groups, lambda rule_id: rule_counts.get(rule_id, 0))

    def clear_counts(self) -> None:
        self._publish(self.store.get_groups(), lambda _: 0)

    def _on_timer(self) -> None:
        self._timer = None
        self.calculate_counts()

    def _publish(self, groups: list[FilterGroup], count_for: Callable[[str], int]) -> None:
        rule_counts: dict[str, int] = {}
        group_counts: dict[str, int] = {}
        for group in groups:
            total = 0
            for rule in group.rules:
                count = count_for(rule.id)
                rule_counts[rule.id] = count
                total += count
            group_counts[group.id] = total
        self.store.update_counts(rule_counts, group_counts)
