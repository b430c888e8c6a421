"""Filter engine: stream a source file through the eligible rules."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles

from logsieve.models import FilterResult, RuleKind
from logsieve.patterns import compile_rule
from logsieve.reader import read_lines_async

if TYPE_CHECKING:
    import re
    from collections.abc import Iterable, Iterator

    from logsieve.models import FilterGroup

logger = logging.getLogger(__name__)

YIELD_EVERY = 1000


@dataclass(frozen=True)
class CompiledRule:
    rule_id: str
    kind: RuleKind
    pattern: re.Pattern[str]


@dataclass
class RuleSet:
    """Enabled rules of the eligible groups, split by kind.

    The union is taken across all groups: a line must match some include rule
    from any group (when includes exist) and no exclude rule from any group.
    Group boundaries only matter for deciding eligibility beforehand.
    """

    includes: list[CompiledRule] = field(default_factory=list)
    excludes: list[CompiledRule] = field(default_factory=list)

    @classmethod
    def from_groups(cls, groups: Iterable[FilterGroup]) -> RuleSet:
        rule_set = cls()
        for group in groups:
            for rule in group.rules:
                if not rule.enabled:
                    continue
                compiled = CompiledRule(rule_id=rule.id, kind=rule.kind, pattern=compile_rule(rule))
                if rule.kind == RuleKind.INCLUDE:
                    rule_set.includes.append(compiled)
                else:
                    rule_set.excludes.append(compiled)
        return rule_set

    @property
    def rules(self) -> list[CompiledRule]:
        return self.includes + self.excludes

    def retain(self, text: str) -> bool:
        return retain_line(
            text,
            [r.pattern for r in self.includes],
            [r.pattern for r in self.excludes],
        )

    def evaluate(self, text: str) -> tuple[bool, list[str]]:
        """Return whether the line is retained and the ids of every rule it matched."""
        matched_includes = [r.rule_id for r in self.includes if r.pattern.search(text)]
        matched_excludes = [r.rule_id for r in self.excludes if r.pattern.search(text)]
        keep = (not self.includes or bool(matched_includes)) and not matched_excludes
        return keep, matched_includes + matched_excludes


def retain_line(text: str, includes: list[re.Pattern[str]], excludes: list[re.Pattern[str]]) -> bool:
    """Include rules use OR logic, exclude rules veto. No includes means every line is a candidate."""
    if includes and not any(p.search(text) for p in includes):
        return False
    return not any(p.search(text) for p in excludes)


def filter_lines(lines: Iterable[str], groups: Iterable[FilterGroup]) -> Iterator[tuple[int, str]]:
    """Yield (original 0-based index, text) of every retained line."""
    rule_set = RuleSet.from_groups(groups)
    for i, line in enumerate(lines):
        if rule_set.retain(line):
            yield i, line


def output_name(source: Path, now: datetime | None = None) -> str:
    stamp = (now or datetime.now().astimezone()).strftime("%Y%m%d-%H%M%S-%f")
    return f"filtered_{source.stem}_{stamp}{source.suffix or '.log'}"


class LogProcessor:
    """Streams a source file line by line and writes the retained lines.

    The whole file is never held in memory. Output goes to a hidden partial
    file that is renamed into place only after the last line is written, so
    a cancelled or failed run never leaves something that looks complete.
    """

    def __init__(self, output_dir: Path | None = None) -> None:
        self.output_dir = output_dir

    async def process_file(
        self,
        source: Path,
        groups: Iterable[FilterGroup],
        *,
        output_dir: Path | None = None,
    ) -> FilterResult:
        rule_set = RuleSet.from_groups(groups)
        out_dir = output_dir or self.output_dir or Path(tempfile.gettempdir())
        out_dir.mkdir(parents=True, exist_ok=True)
        final_path = out_dir / output_name(source)
        partial_path = out_dir / f".{final_path.name}.part"

        line_mapping: list[int] = []
        rule_counts: dict[str, int] = {r.rule_id: 0 for r in rule_set.rules}
        processed = 0
        pending: list[str] = []

        logger.info("Filtering %s with %d rules", source, len(rule_counts))
        try:
            async with aiofiles.open(partial_path, "w", encoding="utf-8", newline="\n") as out:
                async for line in read_lines_async(source):
                    keep, matched = rule_set.evaluate(line)
                    for rule_id in matched:
                        rule_counts[rule_id] += 1
                    if keep:
                        line_mapping.append(processed)
                        pending.append(line + "\n")
                    processed += 1
                    if processed % YIELD_EVERY == 0:
                        if pending:
                            await out.write("".join(pending))
                            pending.clear()
                        await asyncio.sleep(0)
                if pending:
                    await out.write("".join(pending))
            os.replace(partial_path, final_path)  # noqa: PTH105
        except BaseException:
            with contextlib.suppress(OSError):
                partial_path.unlink()
            raise

        logger.info("Filtered %s: %d of %d lines retained -> %s", source, len(line_mapping), processed, final_path)
        return FilterResult(
            matched=len(line_mapping),
            processed=processed,
            output_path=final_path,
            line_mapping=line_mapping,
            rule_counts=rule_counts,
        )
