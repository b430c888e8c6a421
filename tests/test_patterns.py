"""Tests for keyword compilation and matching helpers."""

from __future__ import annotations

from logsieve.models import FilterRule
from logsieve.patterns import (
    NEVER_MATCH,
    compile_pattern,
    compile_rule,
    count_matches,
    find_ranges,
    iter_matching_lines,
)


class TestCompilePattern:
    def test_literal_is_escaped(self) -> None:
        pattern = compile_pattern("a.b", is_regex=False, case_sensitive=False)
        assert pattern.search("a.b")
        assert not pattern.search("axb")

    def test_literal_case_insensitive_by_default(self) -> None:
        pattern = compile_pattern("error", is_regex=False, case_sensitive=False)
        assert count_matches(pattern, "ERROR Error error") == 3

    def test_case_sensitive(self) -> None:
        pattern = compile_pattern("error", is_regex=False, case_sensitive=True)
        assert count_matches(pattern, "ERROR Error error") == 1

    def test_regex(self) -> None:
        pattern = compile_pattern(r"\d{3}", is_regex=True, case_sensitive=False)
        assert find_ranges(pattern, "GET 200 and 404") == [(4, 7), (12, 15)]

    def test_invalid_regex_never_matches(self) -> None:
        pattern = compile_pattern("([unclosed", is_regex=True, case_sensitive=False)
        assert pattern is NEVER_MATCH
        assert count_matches(pattern, "([unclosed") == 0

    def test_empty_keyword_never_matches(self) -> None:
        assert compile_pattern("", is_regex=False, case_sensitive=False) is NEVER_MATCH
        assert compile_pattern("", is_regex=True, case_sensitive=True) is NEVER_MATCH

    def test_regex_metacharacters_in_word_mode(self) -> None:
        pattern = compile_pattern("([unclosed", is_regex=False, case_sensitive=False)
        assert count_matches(pattern, "x ([unclosed y") == 1


class TestCompileRule:
    def test_uses_rule_flags(self) -> None:
        rule = FilterRule(keyword="Timeout", case_sensitive=True)
        pattern = compile_rule(rule)
        assert pattern.search("Timeout")
        assert not pattern.search("timeout")

    def test_regex_rule(self) -> None:
        rule = FilterRule(keyword="conn(ect|ection)", is_regex=True)
        assert count_matches(compile_rule(rule), "connect ... CONNECTION") == 2


class TestMatchHelpers:
    def test_count_non_overlapping(self) -> None:
        pattern = compile_pattern("aa", is_regex=False, case_sensitive=False)
        assert count_matches(pattern, "aaaa") == 2

    def test_find_ranges_none(self) -> None:
        pattern = compile_pattern("zzz", is_regex=False, case_sensitive=False)
        assert find_ranges(pattern, "abc") == []

    def test_iter_matching_lines_scans_each_line_from_start(self) -> None:
        pattern = compile_pattern("error", is_regex=False, case_sensitive=False)
        lines = ["error one", "error two", "fine", "ERROR three"]
        assert list(iter_matching_lines(pattern, lines)) == [0, 1, 3]

    def test_iter_matching_lines_empty(self) -> None:
        assert list(iter_matching_lines(NEVER_MATCH, ["a", "b"])) == []
