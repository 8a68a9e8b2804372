"""Tests for selection state and operator commands."""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tailboard.commands import Command, apply_command, command_for_key
from tailboard.filter_view import FilterView, UnfilteredView
from tailboard.source import Source
from tailboard.state import AppState


def _state(*names: str) -> AppState:
    state = AppState()
    for name in names:
        source = Source(name, signal=state.signal, auto_settle=False)
        for line in ["ok", "error", "ok", "warn err", "ok"]:
            source.feed(line)
        state.add_source(source)
    return state


def _type(state: AppState, text: str) -> None:
    for char in text:
        assert apply_command(state, Command.INSERT, char)


def test_empty_state() -> None:
    state = AppState()
    assert state.current_source() is None
    assert isinstance(state.current_view(), UnfilteredView)
    assert state.visible_lines(10) == []
    assert state.open_view() is None
    assert state.snapshot().source_count == 0


def test_typing_and_committing_a_filter() -> None:
    state = _state("dev")
    assert state.editor() is None
    assert apply_command(state, Command.INSERT, "x") is False

    assert apply_command(state, Command.OPEN_VIEW)
    assert state.view_index == 1
    _type(state, "err")
    assert state.editor().text == "err"
    assert apply_command(state, Command.COMMIT_FILTER)

    view = state.current_view()
    assert isinstance(view, FilterView)
    assert view.matched_line_numbers == [2, 4]
    assert state.visible_lines(10) == ["error", "warn err"]


def test_invalid_filter_is_contained() -> None:
    state = _state("dev")
    state.open_view()
    view = state.commit_filter("(")

    assert view is not None
    assert not view.valid
    assert state.visible_lines(10) == []
    assert state.snapshot().sources[0].view_match_counts == (None,)


def test_editing_commands_reach_the_editor() -> None:
    state = _state("dev")
    state.open_view()
    _type(state, "warn")
    apply_command(state, Command.MOVE_TO_START)
    apply_command(state, Command.DELETE_FORWARD)
    assert state.editor().text == "arn"
    apply_command(state, Command.MOVE_FORWARD)
    apply_command(state, Command.DELETE_TO_END)
    assert state.editor().text == "a"
    apply_command(state, Command.MOVE_TO_END)
    apply_command(state, Command.DELETE_BACKWARD)
    assert state.editor().text == ""


def test_each_view_keeps_its_own_editor() -> None:
    state = _state("dev")
    state.open_view()
    state.commit_filter("ok")
    state.open_view()
    _type(state, "err")

    apply_command(state, Command.PREVIOUS_VIEW)
    assert state.view_index == 1
    assert state.editor().text == "ok"
    apply_command(state, Command.NEXT_VIEW)
    assert state.editor().text == "err"


def test_view_cycling_wraps_through_unfiltered() -> None:
    state = _state("dev")
    state.open_view()
    state.open_view()
    assert state.view_index == 2

    state.cycle_view(1)
    assert state.view_index == 0
    state.cycle_view(-1)
    assert state.view_index == 2


def test_close_view() -> None:
    state = _state("dev")
    assert state.close_view() is None
    first = state.open_view()
    second = state.open_view()

    assert state.close_view() is second
    assert state.view_index == 1
    assert state.current_view() is first
    assert apply_command(state, Command.CLOSE_VIEW)
    assert state.view_index == 0
    assert apply_command(state, Command.CLOSE_VIEW) is False


def test_switching_sources_clamps_view_index() -> None:
    state = _state("one", "two")
    state.open_view()
    state.open_view()
    assert state.view_index == 2

    apply_command(state, Command.NEXT_SOURCE)
    assert state.current_source().identity == "two"
    assert state.view_index == 0
    apply_command(state, Command.PREVIOUS_SOURCE)
    assert state.current_source().identity == "one"

    with pytest.raises(IndexError):
        state.select_source(5)
    with pytest.raises(IndexError):
        state.select_view(3)


def test_snapshot_reports_occupancy_and_selection() -> None:
    state = _state("one", "two")
    state.open_view()
    state.commit_filter("err")

    snapshot = state.snapshot()
    assert snapshot.source_count == 2
    assert snapshot.source_index == 0
    assert snapshot.view_index == 1
    assert snapshot.sources[0].retained == 5
    assert snapshot.sources[0].view_match_counts == (2,)
    assert snapshot.sources[1].view_match_counts == ()


def test_new_source_shares_the_wake_signal() -> None:
    state = AppState()
    source = state.new_source("dev", display_name="Pixel 7", capacity=10, quiet_gap=0.5)

    assert source.signal is state.signal
    assert source.buffer.capacity == 10
    assert state.sources == [source]


def test_new_source_opens_views_for_filters() -> None:
    state = AppState()
    source = state.new_source("dev", filters=("err", "warn"))
    for line in ["ok", "error", "warning"]:
        source.feed(line)

    assert [view.expression for view in source.views] == ["err", "warn"]
    state.select_view(2)
    assert state.editor().text == "warn"
    state.commit_filter()
    assert source.views[1].matched_line_numbers == [3]


def test_command_for_key() -> None:
    assert command_for_key("left", None, False) is Command.MOVE_BACKWARD
    assert command_for_key("ctrl+k", None, False) is Command.DELETE_TO_END
    assert command_for_key("enter", "\r", False) is Command.COMMIT_FILTER
    assert command_for_key("a", "a", True) is Command.INSERT
    assert command_for_key("日", "日", True) is Command.INSERT
    assert command_for_key("f5", None, False) is None


def test_insert_needs_a_character() -> None:
    state = _state("dev")
    state.open_view()
    with pytest.raises(ValueError):
        apply_command(state, Command.INSERT)
