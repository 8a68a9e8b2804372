"""Regex filtered views over a line buffer."""
from __future__ import annotations

import logging
import re
from typing import List, Protocol

from .errors import EvictedLineReference, InvalidFilterExpression
from .line_buffer import LineBuffer

logger = logging.getLogger(__name__)

DISPLAY_NAME_LIMIT = 16
ELLIPSIS = "…"
EMPTY_VIEW_NAME = "(all)"
INVALID_VIEW_NAME = "(invalid)"
UNFILTERED_NAME = "no filter"


class TailView(Protocol):
    """Anything that can produce the bottom lines of a buffer."""

    display_name: str

    @property
    def match_count(self) -> int | None:
        ...

    def tail(self, buffer: LineBuffer, bottom_line_number: int, count: int) -> List[str]:
        ...


def compile_expression(expression: str) -> re.Pattern[str]:
    """Compile a filter expression, raising ``InvalidFilterExpression``."""

    try:
        return re.compile(expression)
    except re.error as exc:
        raise InvalidFilterExpression(expression, str(exc)) from exc


def display_name_for(expression: str, limit: int = DISPLAY_NAME_LIMIT) -> str:
    if not expression:
        return EMPTY_VIEW_NAME
    if len(expression) <= limit:
        return expression
    return expression[:limit] + ELLIPSIS


class UnfilteredView:
    """Pass-through view: the plain tail of the buffer."""

    display_name = UNFILTERED_NAME

    @property
    def match_count(self) -> int | None:
        return None

    def tail(self, buffer: LineBuffer, bottom_line_number: int, count: int) -> List[str]:
        return buffer.range(bottom_line_number - count, bottom_line_number)


class FilterView:
    """Line numbers of a buffer whose text matches a regular expression.

    The match set is a snapshot taken by ``recompute``. Lines appended later
    are not picked up until the next ``recompute``, which always rebuilds the
    set from scratch.
    """

    def __init__(self, expression: str = "") -> None:
        self.expression = expression
        self.matched_line_numbers: List[int] = []
        self.valid = True
        self.error: str | None = None
        self.display_name = display_name_for(expression)

    def __repr__(self) -> str:
        return f"FilterView({self.expression!r}, matches={len(self.matched_line_numbers)})"

    @property
    def match_count(self) -> int | None:
        if not self.valid:
            return None
        return len(self.matched_line_numbers)

    def recompute(self, buffer: LineBuffer, expression: str) -> None:
        """Rebuild the match set for ``expression`` over the current buffer."""

        self.expression = expression
        self.matched_line_numbers = []
        try:
            pattern = compile_expression(expression)
        except InvalidFilterExpression as exc:
            logger.info("Filter rejected: %s", exc)
            self.valid = False
            self.error = exc.message
            self.display_name = INVALID_VIEW_NAME
            return

        self.valid = True
        self.error = None
        self.display_name = display_name_for(expression)
        first = buffer.first_line_number()
        if first == 0:
            return
        for line_number in range(first, buffer.last_line_number() + 1):
            if not expression or pattern.search(buffer.line(line_number)):
                self.matched_line_numbers.append(line_number)

    def tail_lines(self, buffer: LineBuffer, bottom_line_number: int, count: int) -> List[str]:
        """Return up to ``count`` matched lines at or below ``bottom_line_number``.

        The result is newest last and simply shorter when not enough entries
        qualify. Entries the buffer has evicted since the last recompute are
        skipped.
        """

        lines: List[str] = []
        if count <= 0:
            return lines
        for line_number in reversed(self.matched_line_numbers):
            if line_number > bottom_line_number:
                continue
            try:
                lines.append(buffer.line(line_number))
            except EvictedLineReference:
                # Older entries are evicted as well.
                break
            if len(lines) >= count:
                break
        lines.reverse()
        return lines

    def tail(self, buffer: LineBuffer, bottom_line_number: int, count: int) -> List[str]:
        return self.tail_lines(buffer, bottom_line_number, count)
