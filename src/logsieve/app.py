"""Textual application for logsieve."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.containers import Horizontal
from textual.widgets import Footer

from logsieve.commands.common import store_session
from logsieve.config import load_config, save_config
from logsieve.models import FilterMode
from logsieve.reader import FileTooLargeError, load_document
from logsieve.services import create_services
from logsieve.widgets.filter_tree import FilterTree
from logsieve.widgets.log_view import LogView
from logsieve.widgets.rule_dialog import GroupDialog, RuleDialog, RuleInput
from logsieve.widgets.status_bar import StatusBar

if TYPE_CHECKING:
    from pathlib import Path

    from logsieve.highlight import LiveMatches
    from logsieve.models import AppConfig, Session


class AppNotifier:
    """Routes execution messages to Textual toasts."""

    def __init__(self, app: App[Any]) -> None:
        self._app = app

    def info(self, message: str) -> None:
        self._app.notify(message)

    def warning(self, message: str) -> None:
        self._app.notify(message, severity="warning")

    def error(self, message: str) -> None:
        self._app.notify(message, severity="error")


class LogSieveApp(App[None]):
    """Log viewer with grouped filter rules, live match counts and filtered output files."""

    ENABLE_COMMAND_PALETTE = False

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("f", "apply_filter('word')", "Filter words"),
        Binding("r", "apply_filter('regex')", "Filter regex"),
        Binding("g", "run_group", "Run group"),
        Binding("n", "add_group", "New group"),
        Binding("a", "add_rule", "Add rule"),
        Binding("t", "toggle", "Toggle"),
        Binding("e", "toggle_mode", "All on/off", show=False),
        Binding("c", "toggle_case", "Case", show=False),
        Binding("k", "toggle_kind", "In/Out", show=False),
        Binding("delete", "remove", "Remove", show=False),
        Binding("b", "bookmark_matches", "Bookmark"),
        Binding("j", "jump_to_source", "Source"),
        Binding("x", "toggle_regex_highlight", "Regex hl", show=False),
        Binding("ctrl+r", "reload", "Reload", show=False),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, file_path: Path, session: Session, config: AppConfig | None = None) -> None:
        super().__init__()
        self._file_path = file_path
        self._current_path = file_path
        self._session = session
        self._config = config or load_config()
        self._services = create_services(self._config, AppNotifier(self))
        self.theme = self._config.theme

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield FilterTree(id="filter-tree")
            yield LogView(
                match_color=self._config.regex_highlight_color,
                bookmark_color=self._config.bookmark_highlight_color,
                id="log-view",
            )
        yield StatusBar(source=str(self._file_path), id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        services = self._services
        services.highlight.on_highlights_changed.subscribe(self._on_highlights)
        services.highlight.on_flash.subscribe(self.query_one("#log-view", LogView).set_flash)
        services.bookmarks.on_bookmarks_changed.subscribe(lambda _: self._refresh_bookmarks())
        services.store.on_counts_changed.subscribe(lambda _: self._refresh_tree())
        services.store.on_filters_changed.subscribe(lambda _: self._on_filters_changed())

        self._open_path(self._file_path)
        services.store.load_groups(self._session.groups)
        self.query_one("#status-bar", StatusBar).set_regex_highlight(enabled=self._config.enable_regex_highlight)
        self.query_one("#filter-tree", FilterTree).focus()

    # --- Buffer ---

    def _open_path(self, path: Path, line: int | None = None) -> None:
        """Show a file in the viewer and make it the live buffer."""
        log_view = self.query_one("#log-view", LogView)
        status_bar = self.query_one("#status-bar", StatusBar)
        self._current_path = path
        try:
            document = load_document(path, self._config.max_buffer_size_mb)
        except FileTooLargeError as e:
            self._show_too_large(e)
        except OSError as e:
            self.notify(f"Cannot open {path}: {e}", severity="error")
            return
        else:
            log_view.set_text(document.text)
            status_bar.set_too_large(too_large=False)
            status_bar.set_total(len(log_view.lines))
            self._services.set_document(document)
        self._refresh_bookmarks()
        status_bar.set_source(str(path))
        if line is not None:
            self._services.highlight.flash_line(line)

    def _on_highlights(self, matches: LiveMatches) -> None:
        self.query_one("#log-view", LogView).set_matches(matches)
        too_large = self._services.document is None
        self.query_one("#status-bar", StatusBar).set_matches(None if too_large else matches.total)

    def _refresh_bookmarks(self) -> None:
        items = self._services.bookmarks.bookmarks_for(self._current_path)
        self.query_one("#log-view", LogView).set_bookmarks({item.line for item in items})
        self.query_one("#status-bar", StatusBar).set_bookmark_count(len(items))

    def _refresh_tree(self) -> None:
        self.query_one("#filter-tree", FilterTree).set_groups(self._services.store.get_groups())

    def _on_filters_changed(self) -> None:
        self._refresh_tree()
        store_session(self._session, self._services.store)

    def _show_too_large(self, error: FileTooLargeError) -> None:
        self.notify(f"{error}. Use the filter commands to reduce it.", severity="warning")
        self.query_one("#log-view", LogView).set_text("")
        self.query_one("#status-bar", StatusBar).set_too_large(too_large=True)
        self._services.set_document(None)

    def action_reload(self) -> None:
        """Re-read the current file from disk and recount after the quiet period."""
        if self._services.document is None:
            self._open_path(self._current_path)
            return
        try:
            document = load_document(self._current_path, self._config.max_buffer_size_mb)
        except FileTooLargeError as e:
            self._show_too_large(e)
            return
        except OSError as e:
            self.notify(f"Cannot reload {self._current_path}: {e}", severity="error")
            return
        log_view = self.query_one("#log-view", LogView)
        log_view.set_text(document.text)
        self.query_one("#status-bar", StatusBar).set_total(len(log_view.lines))
        self._services.text_changed(document.text)

    # --- Filter execution ---

    def action_apply_filter(self, mode: str) -> None:
        self.run_worker(self._run_filter(FilterMode(mode)), exclusive=True, group="filter")

    def action_run_group(self) -> None:
        ref = self.query_one("#filter-tree", FilterTree).selected
        if ref is None or ref.group_id is None:
            self.notify("Select a group first", severity="warning")
            return
        self.run_worker(self._run_filter(ref.mode, ref.group_id), exclusive=True, group="filter")

    async def _run_filter(self, mode: FilterMode, group_id: str | None = None) -> None:
        execution = self._services.execution
        if group_id is None:
            result = await execution.apply_filter(mode, self._current_path)
        else:
            result = await execution.run_filter_group(group_id, self._current_path)
        if result is not None:
            self._open_path(result.output_path)

    def action_jump_to_source(self) -> None:
        line = self.query_one("#log-view", LogView).cursor_line
        location = self._services.execution.jump_to_line(self._current_path, line)
        if location is None:
            self.notify("Not a filtered file", severity="warning")
            return
        source, source_line = location
        self._open_path(source, line=source_line)

    def action_bookmark_matches(self) -> None:
        ref = self.query_one("#filter-tree", FilterTree).selected
        if ref is None or ref.rule_id is None:
            self.notify("Select a rule first", severity="warning")
            return
        self.run_worker(
            self._services.execution.add_match_list_to_bookmark(ref.rule_id, self._current_path),
            group="bookmarks",
        )

    # --- Group and rule editing ---

    def action_add_group(self) -> None:
        mode = self.query_one("#filter-tree", FilterTree).selected_mode()
        self.push_screen(
            GroupDialog(is_regex=mode.is_regex),
            callback=lambda name: self._on_group_result(name, mode),
        )

    def _on_group_result(self, name: str | None, mode: FilterMode) -> None:
        if name is not None:
            self._services.store.add_group(name, mode.is_regex)

    def action_add_rule(self) -> None:
        ref = self.query_one("#filter-tree", FilterTree).selected
        group = self._services.store.get_group(ref.group_id) if ref is not None and ref.group_id else None
        if group is None:
            self.notify("Select a group first", severity="warning")
            return
        self.push_screen(
            RuleDialog(group.name, is_regex=group.is_regex),
            callback=lambda result: self._on_rule_result(result, group.id),
        )

    def _on_rule_result(self, result: RuleInput | None, group_id: str) -> None:
        if result is None:
            return
        self._services.store.add_rule(
            group_id,
            result.keyword,
            result.kind,
            case_sensitive=result.case_sensitive,
            nickname=result.nickname,
        )

    def action_toggle(self) -> None:
        ref = self.query_one("#filter-tree", FilterTree).selected
        if ref is None or ref.group_id is None:
            return
        store = self._services.store
        if ref.rule_id is None:
            store.toggle_group(ref.group_id)
        else:
            store.toggle_rule(ref.group_id, ref.rule_id)

    def action_toggle_mode(self) -> None:
        mode = self.query_one("#filter-tree", FilterTree).selected_mode()
        store = self._services.store
        groups = store.get_groups_by_mode(mode)
        store.set_groups_enabled(mode, enabled=not all(group.enabled for group in groups))

    def action_toggle_case(self) -> None:
        ref = self.query_one("#filter-tree", FilterTree).selected
        if ref is not None and ref.group_id and ref.rule_id:
            self._services.store.toggle_rule_case(ref.group_id, ref.rule_id)

    def action_toggle_kind(self) -> None:
        ref = self.query_one("#filter-tree", FilterTree).selected
        if ref is not None and ref.group_id and ref.rule_id:
            self._services.store.toggle_rule_kind(ref.group_id, ref.rule_id)

    def action_remove(self) -> None:
        ref = self.query_one("#filter-tree", FilterTree).selected
        if ref is None or ref.group_id is None:
            return
        store = self._services.store
        if ref.rule_id is None:
            store.remove_group(ref.group_id)
        else:
            store.remove_rule(ref.group_id, ref.rule_id)

    def action_toggle_regex_highlight(self) -> None:
        self._config.enable_regex_highlight = not self._config.enable_regex_highlight
        save_config(self._config)
        self.query_one("#status-bar", StatusBar).set_regex_highlight(enabled=self._config.enable_regex_highlight)
        self._services.refresh_live()
