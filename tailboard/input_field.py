"""Single-line editor used to type filter expressions."""
from __future__ import annotations

from typing import List, Tuple

from rich.cells import get_character_cell_size

TAB_STOP = 8
DEFAULT_SCROLL_MARGIN = 5
LEFT_MARK = "←"
RIGHT_MARK = "→"


def _char_size(lead: int) -> int:
    """Length of the UTF-8 sequence starting with byte ``lead``."""

    if lead < 0x80:
        return 1
    if lead < 0xE0:
        return 2
    if lead < 0xF0:
        return 3
    return 4


def _is_continuation(byte: int) -> bool:
    return 0x80 <= byte < 0xC0


def cell_advance(char: str, column: int) -> int:
    """Terminal cells ``char`` takes when drawn at ``column``."""

    if char == "\t":
        return TAB_STOP - column % TAB_STOP
    return get_character_cell_size(char)


class InputField:
    """UTF-8 text with a cursor kept as a byte offset.

    The code point and cell offsets of the cursor are derived from the byte
    offset by rescanning the text after every mutation.
    """

    def __init__(self, text: str = "", scroll_margin: int = DEFAULT_SCROLL_MARGIN) -> None:
        self._data = bytearray()
        self._byte_offset = 0
        self._codepoint_offset = 0
        self._cell_offset = 0
        self.scroll_margin = scroll_margin
        self.scroll_offset = 0
        if text:
            self.set_text(text)

    def __repr__(self) -> str:
        return f"InputField({self.text!r}, cursor={self._byte_offset})"

    @property
    def text(self) -> str:
        return self._data.decode("utf-8")

    @property
    def byte_offset(self) -> int:
        return self._byte_offset

    @property
    def codepoint_offset(self) -> int:
        return self._codepoint_offset

    @property
    def cell_offset(self) -> int:
        return self._cell_offset

    def __len__(self) -> int:
        return len(self._data)

    def set_text(self, text: str) -> None:
        """Replace the contents and put the cursor at the end."""

        if "\n" in text or "\r" in text:
            raise ValueError("input field holds a single line")
        self._data = bytearray(text.encode("utf-8"))
        self._byte_offset = len(self._data)
        self._sync_cursor()

    def clear(self) -> None:
        self._data = bytearray()
        self._byte_offset = 0
        self.scroll_offset = 0
        self._sync_cursor()

    def _sync_cursor(self) -> None:
        codepoints = 0
        cells = 0
        for char in self._data[: self._byte_offset].decode("utf-8"):
            codepoints += 1
            cells += cell_advance(char, cells)
        self._codepoint_offset = codepoints
        self._cell_offset = cells

    def _next_size(self) -> int:
        return _char_size(self._data[self._byte_offset])

    def _previous_size(self) -> int:
        offset = self._byte_offset - 1
        while offset > 0 and _is_continuation(self._data[offset]):
            offset -= 1
        return self._byte_offset - offset

    # ------------------------------------------------------------------
    # Cursor movement
    # ------------------------------------------------------------------
    def move_backward(self) -> None:
        if self._byte_offset == 0:
            return
        self._byte_offset -= self._previous_size()
        self._sync_cursor()

    def move_forward(self) -> None:
        if self._byte_offset == len(self._data):
            return
        self._byte_offset += self._next_size()
        self._sync_cursor()

    def move_to_start(self) -> None:
        self._byte_offset = 0
        self._sync_cursor()

    def move_to_end(self) -> None:
        self._byte_offset = len(self._data)
        self._sync_cursor()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def insert(self, char: str) -> None:
        """Insert a single code point at the cursor."""

        if len(char) != 1:
            raise ValueError(f"expected one code point, got {char!r}")
        if char in "\r\n":
            raise ValueError("input field holds a single line")
        encoded = char.encode("utf-8")
        self._data[self._byte_offset:self._byte_offset] = encoded
        self._byte_offset += len(encoded)
        self._sync_cursor()

    def delete_backward(self) -> None:
        if self._byte_offset == 0:
            return
        size = self._previous_size()
        del self._data[self._byte_offset - size:self._byte_offset]
        self._byte_offset -= size
        self._sync_cursor()

    def delete_forward(self) -> None:
        if self._byte_offset == len(self._data):
            return
        size = self._next_size()
        del self._data[self._byte_offset:self._byte_offset + size]
        self._sync_cursor()

    def delete_to_end(self) -> None:
        del self._data[self._byte_offset:]
        self._sync_cursor()

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------
    def adjust_scroll(self, width: int) -> int:
        """Move the horizontal scroll offset so the cursor stays visible.

        The cursor is kept ``scroll_margin`` cells away from either edge
        before scrolling; narrow widths shrink the margin to fit.
        """

        margin = min(self.scroll_margin, max((width - 1) // 2, 0))
        threshold = width - 1 if self.scroll_offset == 0 else width - margin
        if self._cell_offset - self.scroll_offset >= threshold:
            self.scroll_offset = self._cell_offset + margin - width + 1
        if self.scroll_offset != 0 and self._cell_offset - self.scroll_offset < margin:
            self.scroll_offset = max(self._cell_offset - margin, 0)
        return self.scroll_offset

    def render(self, width: int) -> Tuple[str, int]:
        """Return the ``width`` cells to draw and the cursor column in them."""

        if width <= 0:
            return "", 0
        offset = self.adjust_scroll(width)
        cells: List[str] = [" "] * width
        column = 0
        for char in self.text:
            advance = cell_advance(char, column)
            screen = column - offset
            if screen >= width:
                cells[width - 1] = RIGHT_MARK
                break
            if char == "\t":
                column += advance
                continue
            if advance == 0:
                # combining mark joins the previous cell
                if screen > 0:
                    cells[screen - 1] += char
            elif screen >= 0:
                if screen + advance > width:
                    cells[width - 1] = RIGHT_MARK
                    break
                cells[screen] = char
                for extra in range(1, advance):
                    cells[screen + extra] = ""
            column += advance
        if offset:
            cells[0] = LEFT_MARK
            if width > 1 and cells[1] == "":
                cells[1] = " "
        return "".join(cells), self._cell_offset - offset
