"""Operator commands and the keys that trigger them."""
from __future__ import annotations

import enum
from typing import Dict

from .state import AppState


class Command(enum.Enum):
    INSERT = "insert"
    MOVE_BACKWARD = "move_backward"
    MOVE_FORWARD = "move_forward"
    MOVE_TO_START = "move_to_start"
    MOVE_TO_END = "move_to_end"
    DELETE_BACKWARD = "delete_backward"
    DELETE_FORWARD = "delete_forward"
    DELETE_TO_END = "delete_to_end"
    COMMIT_FILTER = "commit_filter"
    NEXT_VIEW = "next_view"
    PREVIOUS_VIEW = "previous_view"
    NEXT_SOURCE = "next_source"
    PREVIOUS_SOURCE = "previous_source"
    OPEN_VIEW = "open_view"
    CLOSE_VIEW = "close_view"


EDITOR_KEYS: Dict[str, Command] = {
    "left": Command.MOVE_BACKWARD,
    "ctrl+b": Command.MOVE_BACKWARD,
    "right": Command.MOVE_FORWARD,
    "ctrl+f": Command.MOVE_FORWARD,
    "home": Command.MOVE_TO_START,
    "ctrl+a": Command.MOVE_TO_START,
    "end": Command.MOVE_TO_END,
    "ctrl+e": Command.MOVE_TO_END,
    "backspace": Command.DELETE_BACKWARD,
    "ctrl+h": Command.DELETE_BACKWARD,
    "delete": Command.DELETE_FORWARD,
    "ctrl+d": Command.DELETE_FORWARD,
    "ctrl+k": Command.DELETE_TO_END,
    "enter": Command.COMMIT_FILTER,
}

_EDITOR_METHODS = {
    Command.MOVE_BACKWARD: "move_backward",
    Command.MOVE_FORWARD: "move_forward",
    Command.MOVE_TO_START: "move_to_start",
    Command.MOVE_TO_END: "move_to_end",
    Command.DELETE_BACKWARD: "delete_backward",
    Command.DELETE_FORWARD: "delete_forward",
    Command.DELETE_TO_END: "delete_to_end",
}


def apply_command(state: AppState, command: Command, character: str | None = None) -> bool:
    """Apply ``command`` to ``state``; return True if anything changed.

    Editing commands act on the editor of the selected filter view and are
    ignored while the unfiltered tail is selected.
    """

    if command is Command.NEXT_VIEW:
        state.cycle_view(1)
    elif command is Command.PREVIOUS_VIEW:
        state.cycle_view(-1)
    elif command is Command.NEXT_SOURCE:
        state.cycle_source(1)
    elif command is Command.PREVIOUS_SOURCE:
        state.cycle_source(-1)
    elif command is Command.OPEN_VIEW:
        return state.open_view() is not None
    elif command is Command.CLOSE_VIEW:
        return state.close_view() is not None
    elif command is Command.COMMIT_FILTER:
        return state.commit_filter() is not None
    else:
        editor = state.editor()
        if editor is None:
            return False
        if command is Command.INSERT:
            if not character:
                raise ValueError("INSERT needs a character")
            editor.insert(character)
        else:
            getattr(editor, _EDITOR_METHODS[command])()
    return True


def command_for_key(key: str, character: str | None, printable: bool) -> Command | None:
    """Translate a key press into an editing command, if it is one."""

    command = EDITOR_KEYS.get(key)
    if command is not None:
        return command
    if printable and character and len(character) == 1 and character not in "\r\n":
        return Command.INSERT
    return None
