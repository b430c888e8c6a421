"""Tests for the service wiring."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from logsieve.models import AppConfig, Document
from logsieve.services import Services, create_services

if TYPE_CHECKING:
    from logsieve.highlight import LiveMatches

TEXT = "ERROR a\nINFO b\nERROR c"


@pytest.fixture
def services(config: AppConfig) -> Services:
    return create_services(config)


def _rule_counts(services: Services) -> dict[str, int]:
    return {r.id: r.result_count for g in services.store.get_groups() for r in g.rules}


class TestLiveRefresh:
    def test_structural_change_recounts(self, services: Services) -> None:
        services.set_document(Document(text=TEXT))
        group = services.store.add_group("g", enabled=True)
        rule = services.store.add_rule(group.id, "error")
        assert _rule_counts(services) == {rule.id: 2}
        assert services.store.get_group(group.id).result_count == 2

    def test_toggle_off_zeroes_counts(self, services: Services) -> None:
        services.set_document(Document(text=TEXT))
        group = services.store.add_group("g", enabled=True)
        rule = services.store.add_rule(group.id, "error")
        services.store.toggle_group(group.id)
        assert _rule_counts(services) == {rule.id: 0}

    def test_highlights_follow_store(self, services: Services) -> None:
        seen: list[LiveMatches] = []
        services.highlight.on_highlights_changed.subscribe(seen.append)
        services.set_document(Document(text=TEXT))
        group = services.store.add_group("g", enabled=True)
        rule = services.store.add_rule(group.id, "info")
        assert seen[-1].ranges == {rule.id: [(8, 12)]}

    def test_counts_do_not_trigger_structural_refresh(self, services: Services) -> None:
        structural: list[None] = []
        services.set_document(Document(text=TEXT))
        group = services.store.add_group("g", enabled=True)
        services.store.on_filters_changed.subscribe(structural.append)
        services.store.add_rule(group.id, "error")
        assert len(structural) == 1

    def test_oversized_document_clears_counts(self) -> None:
        services = create_services(AppConfig(max_buffer_size_mb=0.001))
        services.set_document(Document(text=TEXT))
        group = services.store.add_group("g", enabled=True)
        rule = services.store.add_rule(group.id, "error")
        assert _rule_counts(services) == {rule.id: 2}
        services.set_document(Document(text="ERROR " * 1000))
        assert _rule_counts(services) == {rule.id: 0}
        assert services.highlight.current.total == 0

    def test_no_document(self, services: Services) -> None:
        group = services.store.add_group("g", enabled=True)
        rule = services.store.add_rule(group.id, "error")
        assert _rule_counts(services) == {rule.id: 0}


class TestTextChanged:
    def test_ignored_without_document(self, services: Services) -> None:
        services.text_changed("ERROR")
        assert services.document is None

    @pytest.mark.asyncio
    async def test_edit_recounts_after_quiet_period(self, services: Services) -> None:
        services.set_document(Document(text=TEXT))
        group = services.store.add_group("g", enabled=True)
        rule = services.store.add_rule(group.id, "error")

        services.text_changed(TEXT + "\nERROR d")
        services.text_changed(TEXT + "\nERROR d\nERROR e")
        assert services.counts.pending is True
        assert _rule_counts(services) == {rule.id: 2}

        await asyncio.sleep(0.2)
        assert services.counts.pending is False
        assert _rule_counts(services) == {rule.id: 4}
