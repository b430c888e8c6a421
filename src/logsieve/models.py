"""Pydantic models for logsieve."""

from __future__ import annotations

import uuid
from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime for model field resolution
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Pydantic needs this at runtime for model field resolution

from pydantic import BaseModel, Field


def new_id() -> str:
    """Generate a unique identifier for groups, rules and bookmarks."""
    return uuid.uuid4().hex


class RuleKind(StrEnum):
    """Whether a rule keeps or drops the lines it matches."""

    INCLUDE = "include"
    EXCLUDE = "exclude"


class FilterMode(StrEnum):
    """Which family of groups an operation targets."""

    WORD = "word"
    REGEX = "regex"

    @property
    def is_regex(self) -> bool:
        return self is FilterMode.REGEX


class FilterRule(BaseModel):
    """A single filter condition inside a group."""

    id: str = Field(default_factory=new_id)
    keyword: str
    nickname: str | None = None
    kind: RuleKind = RuleKind.INCLUDE
    is_regex: bool = False
    case_sensitive: bool = False
    enabled: bool = True
    result_count: int = 0

    @property
    def label(self) -> str:
        """Display label: nickname for regex rules, [IN]/[OUT] prefix for word rules."""
        if self.is_regex:
            return self.nickname or self.keyword
        prefix = "[IN]" if self.kind == RuleKind.INCLUDE else "[OUT]"
        return f"{prefix} {self.keyword}"


class FilterGroup(BaseModel):
    """A named, ordered collection of rules sharing one mode."""

    id: str = Field(default_factory=new_id)
    name: str
    is_regex: bool = False
    enabled: bool = False
    rules: list[FilterRule] = []
    result_count: int = 0

    @property
    def mode(self) -> FilterMode:
        return FilterMode.REGEX if self.is_regex else FilterMode.WORD


class FilterResult(BaseModel):
    """Outcome of filtering one source file."""

    matched: int
    processed: int
    output_path: Path
    line_mapping: list[int] = []
    rule_counts: dict[str, int] = {}


class Document(BaseModel):
    """The buffer currently displayed to the user."""

    text: str
    path: Path | None = None


class BookmarkItem(BaseModel):
    """A bookmarked line in a source file (line is 0-based)."""

    id: str = Field(default_factory=new_id)
    path: Path
    line: int
    content: str


class AppConfig(BaseModel):
    """Application configuration persisted to disk."""

    theme: str = "textual-dark"
    enable_regex_highlight: bool = True
    regex_highlight_color: str = "#ff00ff"
    bookmark_highlight_color: str = "#3a5f8f"
    new_group_enabled: bool = False
    count_debounce_seconds: float = 0.5
    max_buffer_size_mb: float = 50.0
    output_dir: Path | None = None


class Session(BaseModel):
    """A named, persisted set of filter groups."""

    name: str
    groups: list[FilterGroup] = []
    version: int = 1
    created_at: datetime
    updated_at: datetime
