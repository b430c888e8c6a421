"""Compile filter keywords into matchers that never fail."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from logsieve.models import FilterRule

logger = logging.getLogger(__name__)

# Empty negative lookahead: fails at every position, so it matches nothing.
NEVER_MATCH: re.Pattern[str] = re.compile(r"(?!)")


def compile_pattern(keyword: str, *, is_regex: bool, case_sensitive: bool) -> re.Pattern[str]:
    """Compile a keyword into a pattern suitable for global (find-all) scanning.

    Literal keywords are escaped so they match as exact substrings. Regex
    keywords are compiled as-is. An empty keyword or an invalid regex yields
    NEVER_MATCH instead of raising, so one bad rule only ever counts zero.
    """
    if not keyword:
        return NEVER_MATCH
    flags = 0 if case_sensitive else re.IGNORECASE
    source = keyword if is_regex else re.escape(keyword)
    try:
        return re.compile(source, flags)
    except re.error as e:
        logger.debug("Invalid pattern %r: %s", keyword, e)
        return NEVER_MATCH


def compile_rule(rule: FilterRule) -> re.Pattern[str]:
    """Compile a rule's keyword using its own regex and case flags."""
    return compile_pattern(rule.keyword, is_regex=rule.is_regex, case_sensitive=rule.case_sensitive)


def count_matches(pattern: re.Pattern[str], text: str) -> int:
    """Count non-overlapping matches of pattern in text."""
    return sum(1 for _ in pattern.finditer(text))


def find_ranges(pattern: re.Pattern[str], text: str) -> list[tuple[int, int]]:
    """Return (start, end) offsets of every non-overlapping match."""
    return [m.span() for m in pattern.finditer(text)]


def iter_matching_lines(pattern: re.Pattern[str], lines: Iterable[str]) -> Iterator[int]:
    """Yield the 0-based index of every line containing at least one match.

    Each line is searched independently from its start.
    """
    for i, line in enumerate(lines):
        if pattern.search(line):
            yield i
