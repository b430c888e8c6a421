"""Map lines of filtered output files back to their source lines."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourceMapping:
    source_path: Path
    line_mapping: list[int]


class SourceMap:
    """Registry of filtered output files and their line mappings."""

    def __init__(self) -> None:
        self._mappings: dict[Path, SourceMapping] = {}

    def register(self, output_path: Path, source_path: Path, line_mapping: list[int]) -> None:
        self._mappings[_key(output_path)] = SourceMapping(source_path=source_path, line_mapping=line_mapping)

    def unregister(self, output_path: Path) -> None:
        self._mappings.pop(_key(output_path), None)

    def get(self, output_path: Path) -> SourceMapping | None:
        return self._mappings.get(_key(output_path))

    def resolve(self, output_path: Path, filtered_line: int) -> tuple[Path, int] | None:
        """Translate a 0-based line of a filtered file to (source path, source line)."""
        mapping = self.get(output_path)
        if mapping is None or not 0 <= filtered_line < len(mapping.line_mapping):
            return None
        return mapping.source_path, mapping.line_mapping[filtered_line]

    def __contains__(self, output_path: object) -> bool:
        return isinstance(output_path, Path) and _key(output_path) in self._mappings


def _key(path: Path) -> Path:
    return Path(path).resolve()
