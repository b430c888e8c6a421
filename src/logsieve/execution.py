"""Filter execution commands: the seam between the UI layers and the engine."""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from logsieve.eligibility import no_active_groups_message, resolve_eligible_groups
from logsieve.patterns import compile_rule
from logsieve.reader import read_lines_async

if TYPE_CHECKING:
    from logsieve.bookmarks import BookmarkService
    from logsieve.engine import LogProcessor
    from logsieve.models import FilterMode, FilterResult
    from logsieve.source_map import SourceMap
    from logsieve.store import FilterStore

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Sink for user-facing messages."""

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    """Notifier that only writes to the log."""

    def info(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)


class FilterExecution:
    """Runs filters, jumps from filtered output back to the source, bulk-bookmarks matches.

    Only the newest run per source file is authoritative: when a run finishes
    after a newer one was started for the same file, its output is deleted
    and None is returned.
    """

    def __init__(  # noqa: PLR0913
        self,
        store: FilterStore,
        processor: LogProcessor,
        source_map: SourceMap,
        bookmarks: BookmarkService,
        notifier: Notifier | None = None,
        *,
        output_dir: Path | None = None,
    ) -> None:
        self.store = store
        self.processor = processor
        self.source_map = source_map
        self.bookmarks = bookmarks
        self.notifier: Notifier = notifier or LogNotifier()
        self.output_dir = output_dir
        self._generations: dict[Path, int] = {}

    async def apply_filter(
        self,
        mode: FilterMode,
        source: Path,
        target_group_id: str | None = None,
    ) -> FilterResult | None:
        eligible = resolve_eligible_groups(self.store.get_groups(), mode, target_group_id)
        if not eligible:
            if target_group_id is None:
                self.notifier.warning(no_active_groups_message(mode))
            else:
                logger.info("Group %s is not eligible for filtering", target_group_id)
            return None

        key = Path(source).resolve()
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation

        try:
            result = await self.processor.process_file(Path(source), eligible, output_dir=self.output_dir)
        except OSError as e:
            self.notifier.error(f"Failed to filter {source}: {e}")
            return None

        if self._generations.get(key) != generation:
            logger.info("Discarding superseded filter run for %s", source)
            with contextlib.suppress(OSError):
                result.output_path.unlink()
            return None

        self.source_map.register(result.output_path, Path(source), result.line_mapping)
        self.notifier.info(f"Filtered {result.matched} of {result.processed} lines: {result.output_path}")
        return result

    async def run_filter_group(self, group_id: str, source: Path) -> FilterResult | None:
        """Filter with one group only, ignoring every other group."""
        group = self.store.get_group(group_id)
        if group is None:
            logger.debug("run_filter_group: unknown group %s", group_id)
            return None
        return await self.apply_filter(group.mode, source, target_group_id=group_id)

    def jump_to_line(self, output_path: Path, filtered_line: int) -> tuple[Path, int] | None:
        """Translate a 0-based line of a filtered file to its source file and line."""
        location = self.source_map.resolve(Path(output_path), filtered_line)
        if location is None:
            logger.debug("No source mapping for %s line %d", output_path, filtered_line)
        return location

    async def add_match_list_to_bookmark(self, rule_id: str, source: Path) -> list[int]:
        """Bookmark every line of the source that the rule matches. Returns the 0-based lines."""
        found = self.store.find_rule(rule_id)
        if found is None:
            self.notifier.warning("Filter not found.")
            return []
        _, rule = found
        pattern = compile_rule(rule)

        hits: list[tuple[int, str]] = []
        try:
            line_number = 0
            async for line in read_lines_async(Path(source)):
                if pattern.search(line):
                    hits.append((line_number, line))
                line_number += 1
        except OSError as e:
            self.notifier.error(f"Failed to read {source}: {e}")
            return []

        self.bookmarks.add_bookmarks(Path(source), hits)
        self.notifier.info(f"Added {len(hits)} bookmarks for '{rule.keyword}'.")
        return [line for line, _ in hits]
