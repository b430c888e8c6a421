"""Tests for the filter engine."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from logsieve.engine import LogProcessor, RuleSet, filter_lines, output_name, retain_line
from logsieve.models import FilterGroup, FilterRule, RuleKind
from logsieve.patterns import compile_pattern
from logsieve.reader import load_document, split_lines


def _rule(keyword: str, kind: RuleKind = RuleKind.INCLUDE, **kwargs: object) -> FilterRule:
    return FilterRule(keyword=keyword, kind=kind, **kwargs)


def _group(*rules: FilterRule, is_regex: bool = False) -> FilterGroup:
    return FilterGroup(name="g", enabled=True, is_regex=is_regex, rules=list(rules))


class TestRetainLine:
    def test_no_rules_keeps_everything(self) -> None:
        assert retain_line("anything", [], []) is True

    def test_include_or_logic(self) -> None:
        includes = [compile_pattern(k, is_regex=False, case_sensitive=False) for k in ("error", "warn")]
        assert retain_line("WARN disk", includes, []) is True
        assert retain_line("INFO ok", includes, []) is False

    def test_exclude_vetoes(self) -> None:
        includes = [compile_pattern("error", is_regex=False, case_sensitive=False)]
        excludes = [compile_pattern("timeout", is_regex=False, case_sensitive=False)]
        assert retain_line("ERROR timeout", includes, excludes) is False
        assert retain_line("ERROR refused", includes, excludes) is True

    def test_exclude_only(self) -> None:
        excludes = [compile_pattern("debug", is_regex=False, case_sensitive=False)]
        assert retain_line("INFO ok", [], excludes) is True
        assert retain_line("DEBUG noise", [], excludes) is False


class TestFilterLines:
    def test_single_include(self) -> None:
        lines = "test log\nERROR test".split("\n")
        assert list(filter_lines(lines, [_group(_rule("ERROR"))])) == [(1, "ERROR test")]

    def test_disabled_rules_ignored(self) -> None:
        group = _group(_rule("ERROR", enabled=False))
        assert [i for i, _ in filter_lines(["a", "ERROR"], [group])] == [0, 1]

    def test_includes_and_excludes_across_groups(self) -> None:
        groups = [_group(_rule("error")), _group(_rule("timeout", RuleKind.EXCLUDE))]
        lines = ["ERROR refused", "ERROR timeout", "INFO ok"]
        assert [i for i, _ in filter_lines(lines, groups)] == [0]

    def test_invalid_regex_rule_matches_nothing(self) -> None:
        group = _group(_rule("([", is_regex=True), is_regex=True)
        assert list(filter_lines(["([", "x"], [group])) == []


class TestRuleSet:
    def test_evaluate_reports_matched_rules(self) -> None:
        include = _rule("error")
        exclude = _rule("timeout", RuleKind.EXCLUDE)
        rule_set = RuleSet.from_groups([_group(include, exclude)])
        keep, matched = rule_set.evaluate("ERROR timeout")
        assert keep is False
        assert matched == [include.id, exclude.id]


class TestOutputName:
    def test_name_format(self) -> None:
        now = datetime(2024, 1, 15, 10, 30, 0, 123456)  # noqa: DTZ001
        assert output_name(Path("/var/log/app.log"), now) == "filtered_app_20240115-103000-123456.log"

    def test_missing_suffix_defaults_to_log(self) -> None:
        now = datetime(2024, 1, 15, 10, 30, 0)  # noqa: DTZ001
        assert output_name(Path("messages"), now).endswith(".log")


class TestLogProcessor:
    @pytest.mark.asyncio
    async def test_process_file(self, tmp_path: Path, output_dir: Path) -> None:
        source = tmp_path / "small.log"
        source.write_text("test log\nERROR test\n")
        rule = _rule("ERROR")
        result = await LogProcessor().process_file(source, [_group(rule)], output_dir=output_dir)
        assert result.matched == 1
        assert result.processed == 2
        assert result.line_mapping == [1]
        assert result.rule_counts == {rule.id: 1}
        assert result.output_path.parent == output_dir
        assert result.output_path.read_text() == "ERROR test\n"

    @pytest.mark.asyncio
    async def test_mapping_is_increasing_and_points_at_retained_lines(
        self, sample_log_file: Path, output_dir: Path
    ) -> None:
        groups = [_group(_rule("error"), _rule("warn"))]
        result = await LogProcessor(output_dir).process_file(sample_log_file, groups)
        source_lines = sample_log_file.read_text().splitlines()
        output_lines = result.output_path.read_text().splitlines()
        assert result.line_mapping == [2, 3, 4]
        assert result.line_mapping == sorted(set(result.line_mapping))
        assert len(output_lines) == result.matched
        for out_index, src_index in enumerate(result.line_mapping):
            assert output_lines[out_index] == source_lines[src_index]

    @pytest.mark.asyncio
    async def test_crlf_line_endings(self, tmp_path: Path, output_dir: Path) -> None:
        source = tmp_path / "crlf.log"
        source.write_bytes(b"keep one\r\ndrop\r\nkeep two\r\n")
        result = await LogProcessor(output_dir).process_file(source, [_group(_rule("keep"))])
        assert result.output_path.read_text() == "keep one\nkeep two\n"
        assert result.line_mapping == [0, 2]

    @pytest.mark.asyncio
    async def test_mapping_agrees_with_buffer_lines_around_form_feeds(self, tmp_path: Path, output_dir: Path) -> None:
        source = tmp_path / "paged.log"
        source.write_text("page one\x0cpage two\nERROR here\n\x1cINFO sep more\nERROR again\n")
        result = await LogProcessor(output_dir).process_file(source, [_group(_rule("error"))])
        buffer_lines = split_lines(load_document(source, 50.0).text)
        assert result.line_mapping == [1, 3]
        assert [buffer_lines[i] for i in result.line_mapping] == ["ERROR here", "ERROR again"]

    @pytest.mark.asyncio
    async def test_no_matches_writes_empty_file(self, sample_log_file: Path, output_dir: Path) -> None:
        result = await LogProcessor(output_dir).process_file(sample_log_file, [_group(_rule("nothing-here"))])
        assert result.matched == 0
        assert result.output_path.read_text() == ""

    @pytest.mark.asyncio
    async def test_missing_source_raises_and_leaves_nothing(self, tmp_path: Path, output_dir: Path) -> None:
        with pytest.raises(OSError):  # noqa: PT011
            await LogProcessor(output_dir).process_file(tmp_path / "missing.log", [_group(_rule("x"))])
        assert list(output_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_cancelled_run_leaves_no_output(self, tmp_path: Path, output_dir: Path) -> None:
        source = tmp_path / "big.log"
        source.write_text("".join(f"line {i} ERROR\n" for i in range(100_000)))

        task = asyncio.create_task(LogProcessor(output_dir).process_file(source, [_group(_rule("ERROR"))]))
        while not any(output_dir.iterdir()) and not task.done():
            await asyncio.sleep(0.001)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert list(output_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_default_output_dir_is_temp(self, sample_log_file: Path, tmp_path: Path) -> None:
        with patch("logsieve.engine.tempfile.gettempdir", return_value=str(tmp_path / "tmp")):
            result = await LogProcessor().process_file(sample_log_file, [_group(_rule("INFO"))])
        assert result.output_path.parent == tmp_path / "tmp"
        assert result.matched == 3
