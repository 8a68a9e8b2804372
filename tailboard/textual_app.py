"""Textual-powered interactive dashboard."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Footer, Static
from textual.worker import get_current_worker

from .cli import attach_sources, config_overrides, parse_args, refresh_filters, stop_sources
from .commands import Command, apply_command, command_for_key
from .config import TailboardConfig, load_config
from .errors import ConfigError, SourceSetupError
from .logging_utils import configure_logging
from .state import AppState
from .ui import TailboardUI

logger = logging.getLogger(__name__)


class FilterLine(Static, can_focus=True):
    """The filter editor row. Turns key presses into editing commands."""

    class Edited(Message):
        """The editor contents, cursor or committed filter changed."""

    def __init__(self, app_state: AppState, **kwargs) -> None:
        super().__init__(**kwargs)
        self.app_state = app_state

    def on_key(self, event: events.Key) -> None:
        command = command_for_key(event.key, event.character, event.is_printable)
        if command is None:
            return
        event.stop()
        event.prevent_default()
        if apply_command(self.app_state, command, event.character):
            self.post_message(self.Edited())


class TailboardTextualApp(App):
    """Renders sources, the selected view and the filter editor."""

    CSS = """
    #sources {
        height: 1;
    }
    #lines {
        height: 1fr;
    }
    #filter {
        height: 1;
    }
    #tabs {
        height: 1;
    }
    """

    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("escape", "quit", "Quit"),
        Binding("tab", "run_command('next_view')", "Next view", priority=True),
        Binding("shift+tab", "run_command('previous_view')", "Prev view", priority=True),
        Binding("ctrl+n", "run_command('next_source')", "Next source"),
        Binding("ctrl+p", "run_command('previous_source')", "Prev source"),
        Binding("ctrl+t", "run_command('open_view')", "New filter"),
        Binding("ctrl+w", "run_command('close_view')", "Close filter"),
        Binding("ctrl+r", "refresh_views", "Refresh"),
    ]

    def __init__(self, config: TailboardConfig, state: AppState) -> None:
        super().__init__()
        self.config = config
        self.app_state = state
        self.ui = TailboardUI()

    def compose(self) -> ComposeResult:
        yield Static(id="sources")
        yield Static(id="lines")
        yield FilterLine(self.app_state, id="filter")
        yield Static(id="tabs")
        yield Footer()

    def on_mount(self) -> None:  # pragma: no cover - UI runtime
        refresh_filters(self.app_state)
        self.query_one(FilterLine).focus()
        self.watch_sources()
        self.redraw()

    def on_resize(self, event: events.Resize) -> None:  # pragma: no cover - UI runtime
        self.redraw()

    def on_filter_line_edited(self, message: FilterLine.Edited) -> None:  # pragma: no cover - UI runtime
        self.redraw()

    def action_run_command(self, name: str) -> None:  # pragma: no cover - UI runtime
        if apply_command(self.app_state, Command(name)):
            self.redraw()

    def action_refresh_views(self) -> None:  # pragma: no cover - UI runtime
        refresh_filters(self.app_state)
        self.redraw()

    @work(thread=True, exclusive=True, group="wake")
    def watch_sources(self) -> None:  # pragma: no cover - UI runtime
        """Wait on the sources' wake signal and redraw when one fires."""

        worker = get_current_worker()
        while not worker.is_cancelled:
            fired = self.app_state.signal.wait(timeout=self.config.refresh_interval)
            if fired and not worker.is_cancelled:
                self.call_from_thread(self.redraw)

    def redraw(self) -> None:  # pragma: no cover - UI runtime
        lines = self.query_one("#lines", Static)
        rows = lines.size.height or max(self.size.height - 4, 0)
        self.query_one("#sources", Static).update(self.ui.render_sources(self.app_state))
        lines.update(self.ui.render_lines(self.app_state, rows))
        self.query_one(FilterLine).update(self.ui.render_filter(self.app_state, self.size.width))
        self.query_one("#tabs", Static).update(self.ui.render_tabs(self.app_state))


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(Path(args.config) if args.config else None, config_overrides(args))
    except ConfigError as exc:
        print(f"tailboard: {exc}", file=sys.stderr)
        return 1
    log_path = configure_logging(config.log_file, config.log_level)

    state = AppState(scroll_margin=config.scroll_margin)
    try:
        attach_sources(state, config)
        if args.source:
            state.select_source(args.source)
    except (SourceSetupError, IndexError) as exc:
        logger.error("Setup failed: %s", exc)
        stop_sources(state)
        print(f"tailboard: {exc} (log: {log_path})", file=sys.stderr)
        return 1
    try:
        TailboardTextualApp(config, state).run()
    finally:
        stop_sources(state)
    return 0


if __name__ == "__main__":  # pragma: no cover - entry point
    sys.exit(main())
