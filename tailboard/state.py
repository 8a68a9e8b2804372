"""Selection state for the tailboard front ends."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .filter_view import FilterView, TailView
from .input_field import DEFAULT_SCROLL_MARGIN, InputField
from .signals import WakeSignal
from .source import DEFAULT_CAPACITY, DEFAULT_QUIET_GAP, UNFILTERED, Source, SourceStats

logger = logging.getLogger(__name__)


@dataclass
class StateSnapshot:
    """What the process exposes for inspection: sources and selection."""

    source_index: int
    view_index: int
    sources: Tuple[SourceStats, ...] = field(default_factory=tuple)

    @property
    def source_count(self) -> int:
        return len(self.sources)


class AppState:
    """Sources plus the operator's current selection.

    Owned by the foreground task. ``view_index`` 0 selects the unfiltered
    tail of the current source, ``n`` selects its ``views[n - 1]``. Each
    filter view has its own editor holding the expression being typed.
    """

    def __init__(
        self,
        signal: WakeSignal | None = None,
        scroll_margin: int = DEFAULT_SCROLL_MARGIN,
    ) -> None:
        self.signal = signal if signal is not None else WakeSignal()
        self.scroll_margin = scroll_margin
        self.sources: List[Source] = []
        self.source_index = 0
        self.view_index = 0
        self._editors: Dict[FilterView, InputField] = {}

    def new_source(
        self,
        identity: str,
        display_name: str | None = None,
        capacity: int = DEFAULT_CAPACITY,
        quiet_gap: float = DEFAULT_QUIET_GAP,
        filters: Sequence[str] = (),
    ) -> Source:
        """Create a source wired to this state's wake signal and add it.

        Each of ``filters`` becomes a view holding that expression; the views
        are computed on their first commit.
        """

        source = Source(
            identity,
            display_name=display_name,
            capacity=capacity,
            signal=self.signal,
            quiet_gap=quiet_gap,
        )
        for expression in filters:
            source.add_view().expression = expression
        return self.add_source(source)

    def add_source(self, source: Source) -> Source:
        self.sources.append(source)
        for view in source.views:
            self._editors[view] = InputField(view.expression, self.scroll_margin)
        logger.info("Added source %s (%s)", source.identity, source.display_name)
        return source

    def current_source(self) -> Source | None:
        if not self.sources:
            return None
        return self.sources[self.source_index]

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select_source(self, index: int) -> None:
        if not 0 <= index < len(self.sources):
            raise IndexError(f"no source at index {index}")
        self.source_index = index
        self.view_index = min(self.view_index, len(self.sources[index].views))

    def cycle_source(self, step: int = 1) -> None:
        if self.sources:
            self.select_source((self.source_index + step) % len(self.sources))

    def select_view(self, index: int) -> None:
        source = self.current_source()
        count = len(source.views) if source is not None else 0
        if not 0 <= index <= count:
            raise IndexError(f"no view at index {index}")
        self.view_index = index

    def cycle_view(self, step: int = 1) -> None:
        source = self.current_source()
        if source is None:
            return
        self.view_index = (self.view_index + step) % (len(source.views) + 1)

    def current_view(self) -> TailView:
        source = self.current_source()
        if source is None:
            return UNFILTERED
        return source.view_at(self.view_index)

    # ------------------------------------------------------------------
    # Views and the filter editor
    # ------------------------------------------------------------------
    def open_view(self) -> FilterView | None:
        """Add an empty view to the current source and select it."""

        source = self.current_source()
        if source is None:
            return None
        view = source.add_view()
        self._editors[view] = InputField(scroll_margin=self.scroll_margin)
        self.view_index = len(source.views)
        return view

    def close_view(self) -> FilterView | None:
        """Remove the selected view; the unfiltered tail cannot be closed."""

        source = self.current_source()
        if source is None or self.view_index == 0:
            return None
        view = source.remove_view(self.view_index - 1)
        self._editors.pop(view, None)
        self.view_index = min(self.view_index, len(source.views))
        return view

    def editor(self) -> InputField | None:
        """Editor of the selected filter view, None on the unfiltered tail."""

        view = self.current_view()
        if not isinstance(view, FilterView):
            return None
        editor = self._editors.get(view)
        if editor is None:
            editor = self._editors[view] = InputField(view.expression, self.scroll_margin)
        return editor

    def commit_filter(self, expression: str | None = None) -> FilterView | None:
        """Recompute the selected view from the editor (or ``expression``)."""

        source = self.current_source()
        editor = self.editor()
        if source is None or editor is None:
            return None
        if expression is not None:
            editor.set_text(expression)
        view = source.commit_filter(self.view_index - 1, editor.text)
        if not view.valid:
            logger.warning("Filter %r on %s is invalid: %s", view.expression, source.identity, view.error)
        return view

    # ------------------------------------------------------------------
    # Rendering support
    # ------------------------------------------------------------------
    def visible_lines(self, rows: int) -> List[str]:
        """Bottom ``rows`` lines of the selected view, newest last."""

        source = self.current_source()
        if source is None or rows <= 0:
            return []
        return source.tail(self.current_view(), rows)

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            source_index=self.source_index,
            view_index=self.view_index,
            sources=tuple(source.stats() for source in self.sources),
        )
