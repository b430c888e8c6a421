"""Log file reading (async line streaming and buffer loading)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import aiofiles

from logsieve.models import Document

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

_BYTES_PER_MB = 1024 * 1024
_LINE_END = re.compile(r"\r\n|\r|\n")


class FileTooLargeError(Exception):
    """File exceeds the limit for loading into an in-memory buffer."""

    def __init__(self, path: Path, size_mb: float, limit_mb: float) -> None:
        self.path = path
        self.size_mb = size_mb
        self.limit_mb = limit_mb
        super().__init__(f"File too large ({size_mb:.1f}MB). Buffers are limited to {limit_mb:g}MB: {path}")


def file_size_mb(path: Path) -> float:
    return path.stat().st_size / _BYTES_PER_MB


def is_too_large(path: Path, limit_mb: float) -> bool:
    """Whether a file must go through the streaming engine instead of a buffer."""
    return file_size_mb(path) > limit_mb


def load_document(path: Path, limit_mb: float) -> Document:
    """Load a file into a Document, refusing files over the size gate."""
    size_mb = file_size_mb(path)
    if size_mb > limit_mb:
        raise FileTooLargeError(path, size_mb, limit_mb)
    return Document(path=path, text=path.read_text(encoding="utf-8", errors="replace"))


def split_lines(text: str) -> list[str]:
    """Split a buffer into lines on \\n, \\r\\n and \\r only, as read_lines() does.

    Unlike str.splitlines(), form feeds and other Unicode separators stay
    inside the line, so buffer line numbers agree with streamed line numbers.
    """
    lines = _LINE_END.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def line_starts(text: str) -> list[int]:
    """Offset of the first character of each line returned by split_lines()."""
    starts = [0, *(m.end() for m in _LINE_END.finditer(text))]
    if starts[-1] == len(text):
        starts.pop()
    return starts


def read_lines(path: Path) -> Iterator[str]:
    """Yield the lines of a file one at a time without their line endings."""
    with path.open(encoding="utf-8", errors="replace", newline="") as f:
        for raw_line in f:
            yield raw_line.rstrip("\r\n")


async def read_lines_async(path: Path) -> AsyncIterator[str]:
    """Yield the lines of a file asynchronously without their line endings."""
    async with aiofiles.open(path, encoding="utf-8", errors="replace", newline="") as f:
        async for raw_line in f:
            yield raw_line.rstrip("\r\n")
