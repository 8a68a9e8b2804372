"""Coalescing wake-up signal shared by the ingestion threads and the UI."""
from __future__ import annotations

import threading
from typing import Hashable, Set


class WakeSignal:
    """A set of pending keys with a condition variable to wait on.

    Producers call ``notify`` with their own key; it never blocks beyond the
    short critical section and repeated notifies for the same key collapse
    into one. The consumer waits once for all producers and learns which of
    them fired.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._pending: Set[Hashable] = set()

    def notify(self, key: Hashable) -> None:
        with self._condition:
            self._pending.add(key)
            self._condition.notify_all()

    def pending(self) -> Set[Hashable]:
        """Peek at the pending keys without clearing them."""

        with self._condition:
            return set(self._pending)

    def drain(self) -> Set[Hashable]:
        with self._condition:
            fired, self._pending = self._pending, set()
            return fired

    def wait(self, timeout: float | None = None) -> Set[Hashable]:
        """Block until some key is pending, then return and clear them all.

        Returns an empty set when ``timeout`` elapses first.
        """

        with self._condition:
            self._condition.wait_for(lambda: bool(self._pending), timeout=timeout)
            fired, self._pending = self._pending, set()
            return fired
