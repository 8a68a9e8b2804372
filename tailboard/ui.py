"""Rich renderables for the dashboard."""
from __future__ import annotations

from typing import List, Sequence

from rich.cells import cell_len
from rich.console import RenderableType
from rich.layout import Layout
from rich.text import Text

from .filter_view import FilterView
from .source import Source
from .state import AppState

OPEN_BRACKET = "［"
CLOSE_BRACKET = "］"
DEAD_MARK = "✝"
NEW_FILTER_TAB = "+filter"


def cursor_index(visible: str, column: int) -> int:
    """Character index in ``visible`` that sits at cell ``column``."""

    cells = 0
    for index, char in enumerate(visible):
        if cells >= column:
            return index
        cells += cell_len(char)
    return len(visible)


def _tab(text: Text, label: str, selected: bool, style: str = "") -> None:
    text.append(OPEN_BRACKET)
    text.append(label, style=f"reverse {style}".strip() if selected else style)
    text.append(CLOSE_BRACKET)


class TailboardUI:
    """Transforms application state into Rich renderables."""

    def render(self, state: AppState, width: int, height: int) -> RenderableType:
        """Build the full screen: sources, lines, filter editor and tabs."""

        rows = max(height - 3, 0)
        layout = Layout()
        layout.split_column(
            Layout(self.render_sources(state), size=1, name="sources"),
            Layout(self.render_lines(state, rows), name="lines"),
            Layout(self.render_filter(state, width), size=1, name="filter"),
            Layout(self.render_tabs(state), size=1, name="tabs"),
        )
        return layout

    def render_sources(self, state: AppState) -> Text:
        text = Text(no_wrap=True, overflow="ellipsis")
        if not state.sources:
            text.append("no sources attached", style="dim")
            return text
        for index, source in enumerate(state.sources):
            label = source.display_name
            if source.terminated is not None:
                label = f"{label} {DEAD_MARK}"
            _tab(text, label, index == state.source_index, "bold")
        return text

    def render_lines(self, state: AppState, rows: int) -> Text:
        source = state.current_source()
        notice: List[str] = []
        if source is not None and source.terminated is not None and rows > 0:
            notice.append(f"-- stream ended: {source.terminated.reason} --")
            rows -= 1
        lines = state.visible_lines(rows)
        text = Text("\n".join(lines), no_wrap=True, overflow="crop")
        if notice:
            if lines:
                text.append("\n")
            text.append(notice[0], style="dim italic")
        return text

    def render_filter(self, state: AppState, width: int) -> Text:
        editor = state.editor()
        if editor is None or width <= 1:
            return Text()
        visible, column = editor.render(width - 1)
        text = Text(" " + visible, no_wrap=True, overflow="crop")
        index = cursor_index(visible, column) + 1
        text.stylize("reverse", index, index + 1)
        if index >= len(text.plain):
            text.append(" ", style="reverse")
        view = state.current_view()
        if isinstance(view, FilterView) and not view.valid:
            text.stylize("red")
        return text

    def render_tabs(self, state: AppState) -> Text:
        text = Text(no_wrap=True, overflow="ellipsis")
        source = state.current_source()
        views: Sequence[FilterView] = source.views if source is not None else ()
        _tab(text, "no filter", state.view_index == 0)
        for index, view in enumerate(views, start=1):
            _tab(text, view_label(view), state.view_index == index, "" if view.valid else "red")
        text.append(f"{OPEN_BRACKET}{NEW_FILTER_TAB}{CLOSE_BRACKET}", style="dim")
        return text


def view_label(view: FilterView) -> str:
    """Tab caption: name plus match count, or ``!`` for an invalid filter."""

    if view.match_count is None:
        return f"{view.display_name} !"
    return f"{view.display_name} ({view.match_count})"


def source_summary(source: Source) -> str:
    stats = source.stats()
    state = "ended" if stats.terminated else ("live" if stats.armed else "catching up")
    return f"{stats.display_name}: {stats.retained}/{stats.capacity} lines, {state}"
