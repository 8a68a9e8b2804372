"""Fixed-capacity line storage with stable line numbers."""
from __future__ import annotations

from typing import List

from .errors import EvictedLineReference


class LineBuffer:
    """Circular store of the most recent lines of one source.

    Every appended line gets the next 1-based line number. Numbers are never
    reused, so a number handed out earlier keeps identifying the same line
    until the buffer wraps past it; from then on it resolves as evicted.

    The buffer does no locking of its own. The owning source guards every
    call with its lock.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._storage: List[str] = [""] * capacity
        self._write_cursor = 0
        self._high_water_mark = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return min(self._high_water_mark, self._capacity)

    def append(self, line: str) -> int:
        """Store ``line`` and return the line number it was given."""

        self._storage[self._write_cursor] = line
        self._high_water_mark += 1
        self._write_cursor = (self._write_cursor + 1) % self._capacity
        return self._high_water_mark

    def last_line_number(self) -> int:
        """Number of the most recent line, 0 while empty."""

        return self._high_water_mark

    def first_line_number(self) -> int:
        """Number of the oldest line still held, 0 while empty."""

        if self._high_water_mark == 0:
            return 0
        return self._high_water_mark - len(self) + 1

    def resolve(self, line_number: int) -> int | None:
        """Return the storage slot of ``line_number`` or ``None`` if evicted."""

        age = self._high_water_mark - line_number
        if line_number <= 0 or age < 0 or age >= self._capacity:
            return None
        return (self._write_cursor - age - 1) % self._capacity

    def line(self, line_number: int) -> str:
        """Return the text of ``line_number``.

        Raises:
            EvictedLineReference: the number is not held by the buffer.
        """

        slot = self.resolve(line_number)
        if slot is None:
            raise EvictedLineReference(line_number)
        return self._storage[slot]

    def range(self, from_exclusive: int, to_inclusive: int) -> List[str]:
        """Return lines ``from_exclusive + 1`` .. ``to_inclusive``, newest last.

        The walk starts at ``to_inclusive`` and goes backwards; it stops at
        the first evicted number, so a request reaching past the oldest
        retained line comes back shorter instead of padded.
        """

        from_exclusive = max(from_exclusive, 0)
        to_inclusive = min(to_inclusive, self._high_water_mark)
        lines: List[str] = []
        for line_number in range(to_inclusive, from_exclusive, -1):
            slot = self.resolve(line_number)
            if slot is None:
                break
            lines.append(self._storage[slot])
        lines.reverse()
        return lines
