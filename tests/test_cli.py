"""Tests for the command line interface."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from logsieve import __version__
from logsieve.cli import app
from logsieve.models import RuleKind
from logsieve.session import list_sessions, load_session

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()


@pytest.fixture(autouse=True)
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    d = tmp_path / "config"
    monkeypatch.setenv("LOGSIEVE_CONFIG_DIR", str(d))
    return d


def _add_group(name: str, *args: str) -> str:
    result = runner.invoke(app, ["group", "add", name, *args])
    assert result.exit_code == 0, result.output
    return next(g.id for g in load_session("default").groups if g.name == name)


def _add_rule(group_id: str, keyword: str, *args: str) -> str:
    result = runner.invoke(app, ["rule", "add", group_id[:8], keyword, *args])
    assert result.exit_code == 0, result.output
    group = next(g for g in load_session("default").groups if g.id == group_id)
    return group.rules[-1].id


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestGroupCommands:
    def test_add_group_creates_session(self) -> None:
        result = runner.invoke(app, ["group", "add", "errors"])
        assert result.exit_code == 0
        assert "Added group" in result.output
        assert list_sessions() == ["default"]
        group = load_session("default").groups[0]
        assert group.name == "errors"
        assert group.enabled is False

    def test_add_regex_group_enabled(self) -> None:
        group_id = _add_group("status", "--regex", "--enabled")
        group = load_session("default").groups[0]
        assert group.id == group_id
        assert group.is_regex is True
        assert group.enabled is True

    def test_toggle_rename_remove(self) -> None:
        group_id = _add_group("errors")
        assert runner.invoke(app, ["group", "toggle", group_id[:8]]).exit_code == 0
        assert load_session("default").groups[0].enabled is True
        assert runner.invoke(app, ["group", "rename", group_id[:8], "failures"]).exit_code == 0
        assert load_session("default").groups[0].name == "failures"
        assert runner.invoke(app, ["group", "remove", group_id[:8]]).exit_code == 0
        assert load_session("default").groups == []

    def test_unknown_group_prefix(self) -> None:
        _add_group("errors")
        result = runner.invoke(app, ["group", "toggle", "zzzz"])
        assert result.exit_code == 1
        assert "no unique group" in result.output

    def test_list(self) -> None:
        group_id = _add_group("errors")
        _add_rule(group_id, "ERROR")
        result = runner.invoke(app, ["group", "list"])
        assert result.exit_code == 0
        assert "errors" in result.output
        assert "[IN] ERROR" in result.output

    def test_list_missing_session(self) -> None:
        result = runner.invoke(app, ["group", "list", "--session", "nope"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestRuleCommands:
    def test_add_exclude_case_sensitive(self) -> None:
        group_id = _add_group("errors")
        _add_rule(group_id, "Timeout", "--exclude", "--case-sensitive")
        rule = load_session("default").groups[0].rules[0]
        assert rule.keyword == "Timeout"
        assert rule.kind == RuleKind.EXCLUDE
        assert rule.case_sensitive is True

    def test_toggle_and_remove(self) -> None:
        group_id = _add_group("errors")
        rule_id = _add_rule(group_id, "ERROR")
        assert runner.invoke(app, ["rule", "toggle", rule_id[:8]]).exit_code == 0
        assert load_session("default").groups[0].rules[0].enabled is False
        assert runner.invoke(app, ["rule", "remove", rule_id[:8]]).exit_code == 0
        assert load_session("default").groups[0].rules == []


class TestFilterCommand:
    def test_filter_writes_output(self, sample_log_file: Path, output_dir: Path) -> None:
        group_id = _add_group("errors", "--enabled")
        _add_rule(group_id, "error")
        result = runner.invoke(app, ["filter", str(sample_log_file), "-o", str(output_dir), "--mapping"])
        assert result.exit_code == 0, result.output
        outputs = list(output_dir.iterdir())
        assert len(outputs) == 1
        assert outputs[0].name.startswith("filtered_app_")
        assert outputs[0].read_text().count("\n") == 2
        assert f"lines: {outputs[0]}\n" in result.output
        assert "1\t3" in result.output
        assert "2\t5" in result.output

    def test_no_active_groups(self, sample_log_file: Path, output_dir: Path) -> None:
        _add_group("errors")
        result = runner.invoke(app, ["filter", str(sample_log_file), "-o", str(output_dir)])
        assert result.exit_code == 1
        assert "No active word groups selected." in result.output
        assert list(output_dir.iterdir()) == []

    def test_single_group(self, sample_log_file: Path, output_dir: Path) -> None:
        errors = _add_group("errors", "--enabled")
        _add_rule(errors, "error")
        infos = _add_group("infos", "--enabled")
        _add_rule(infos, "info")
        result = runner.invoke(
            app, ["filter", str(sample_log_file), "-o", str(output_dir), "--group", infos, "--mapping"]
        )
        assert result.exit_code == 0, result.output
        assert "1\t1" in result.output
        assert "\t3" not in result.output

    def test_unknown_group(self, sample_log_file: Path) -> None:
        _add_group("errors")
        result = runner.invoke(app, ["filter", str(sample_log_file), "--group", "missing"])
        assert result.exit_code == 1

    def test_missing_session(self, sample_log_file: Path) -> None:
        result = runner.invoke(app, ["filter", str(sample_log_file), "--session", "nope"])
        assert result.exit_code == 1


class TestCountCommand:
    def test_counts_table(self, sample_log_file: Path) -> None:
        group_id = _add_group("errors", "--enabled")
        _add_rule(group_id, "error")
        result = runner.invoke(app, ["count", str(sample_log_file)])
        assert result.exit_code == 0, result.output
        assert "errors" in result.output
        assert "2" in result.output


class TestSessionCommands:
    def test_list_rename_delete(self) -> None:
        _add_group("errors")
        listed = runner.invoke(app, ["session", "list"])
        assert listed.exit_code == 0, listed.output
        assert listed.output.splitlines() == ["default"]
        assert runner.invoke(app, ["session", "rename", "default", "work"]).exit_code == 0
        assert list_sessions() == ["work"]
        assert runner.invoke(app, ["session", "delete", "work"]).exit_code == 0
        assert list_sessions() == []

    def test_delete_missing(self) -> None:
        result = runner.invoke(app, ["session", "delete", "nope"])
        assert result.exit_code == 1
