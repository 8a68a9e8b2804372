"""A log source: one buffer, its filter views and the thread that feeds it."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Tuple

from .errors import StreamTerminated
from .filter_view import FilterView, TailView, UnfilteredView
from .line_buffer import LineBuffer
from .signals import WakeSignal

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000
DEFAULT_QUIET_GAP = 1.0

UNFILTERED = UnfilteredView()


@dataclass
class SourceStats:
    """Point-in-time figures for one source."""

    identity: str
    display_name: str
    retained: int
    capacity: int
    last_line_number: int
    armed: bool
    terminated: bool
    view_match_counts: Tuple[int | None, ...] = field(default_factory=tuple)


class Source:
    """Owns the buffer of one log origin and ingests lines into it.

    Notifications start out suppressed (quiet). Attaching to a log source
    usually replays a backlog at full speed; only once a gap of at least
    ``quiet_gap`` seconds has been seen does the source arm and notify the
    wake signal after every append.

    All access to ``buffer`` and to the views' match sets goes through
    ``lock``.
    """

    def __init__(
        self,
        identity: str,
        display_name: str | None = None,
        capacity: int = DEFAULT_CAPACITY,
        signal: WakeSignal | None = None,
        quiet_gap: float = DEFAULT_QUIET_GAP,
        clock: Callable[[], float] = time.monotonic,
        auto_settle: bool = True,
    ) -> None:
        if quiet_gap <= 0:
            raise ValueError(f"quiet_gap must be positive, got {quiet_gap}")
        self.identity = identity
        self.display_name = display_name or identity
        self.buffer = LineBuffer(capacity)
        self.views: List[FilterView] = []
        self.lock = threading.Lock()
        self.signal = signal if signal is not None else WakeSignal()
        self.quiet_gap = quiet_gap
        self.armed = False
        self.terminated: StreamTerminated | None = None
        self._clock = clock
        self._auto_settle = auto_settle
        self._last_line_at: float | None = None
        self._settle_timer: threading.Timer | None = None
        self._thread: threading.Thread | None = None
        self._stream: Iterable[str] | None = None

    def __repr__(self) -> str:
        return f"Source({self.identity!r}, lines={self.buffer.last_line_number()})"

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------
    def start(self, stream: Iterable[str]) -> threading.Thread:
        """Consume ``stream`` on a daemon thread until it ends."""

        with self.lock:
            self._last_line_at = self._clock()
        self._stream = stream
        self._thread = threading.Thread(
            target=self._ingest,
            args=(stream,),
            name=f"ingest-{self.identity}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the ingestion thread; True once it has finished."""

        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _ingest(self, stream: Iterable[str]) -> None:
        logger.info("Ingestion started for %s", self.identity)
        reason = "end of stream"
        try:
            for line in stream:
                self.feed(line)
        except (OSError, ValueError) as exc:
            reason = str(exc) or exc.__class__.__name__
            logger.warning("Stream for %s failed: %s", self.identity, reason)
        except Exception as exc:
            reason = f"{exc.__class__.__name__}: {exc}"
            logger.exception("Unexpected error reading %s", self.identity)
        finally:
            with self.lock:
                self.terminated = StreamTerminated(self.identity, reason)
                total = self.buffer.last_line_number()
            logger.info("Ingestion stopped for %s after %d lines (%s)", self.identity, total, reason)
            self.signal.notify(self.identity)

    def close(self) -> None:
        """Stop the stream feeding this source when it can be stopped."""

        terminate = getattr(self._stream, "terminate", None)
        if terminate is not None:
            terminate()

    def feed(self, line: str) -> int:
        """Append one received line and notify the consumer when armed."""

        now = self._clock()
        with self.lock:
            line_number = self.buffer.append(line)
            if not self.armed:
                previous = self._last_line_at
                if previous is not None and now - previous > self.quiet_gap:
                    self.armed = True
                    logger.debug("%s armed after %.3fs gap", self.identity, now - previous)
            self._last_line_at = now
            armed = self.armed
            if not armed:
                self._schedule_settle(self.quiet_gap)
        if armed:
            self.signal.notify(self.identity)
        return line_number

    def settle(self) -> bool:
        """Arm the source if the stream has been silent for ``quiet_gap``.

        Emits a single wake-up on arming so the consumer draws the backlog
        that arrived while notifications were suppressed. Returns True when
        this call armed the source.
        """

        with self.lock:
            self._settle_timer = None
            if self.armed or self._last_line_at is None:
                return False
            remaining = self.quiet_gap - (self._clock() - self._last_line_at)
            if remaining > 0:
                self._schedule_settle(remaining)
                return False
            self.armed = True
        logger.debug("%s armed after going quiet", self.identity)
        self.signal.notify(self.identity)
        return True

    def _schedule_settle(self, delay: float) -> None:
        # Caller holds the lock.
        if not self._auto_settle or self._settle_timer is not None:
            return
        timer = threading.Timer(delay, self.settle)
        timer.daemon = True
        self._settle_timer = timer
        timer.start()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def add_view(self) -> FilterView:
        view = FilterView()
        with self.lock:
            self.views.append(view)
        return view

    def remove_view(self, position: int) -> FilterView:
        with self.lock:
            return self.views.pop(position)

    def commit_filter(self, position: int, expression: str) -> FilterView:
        """Recompute view ``position`` (0-based) for ``expression``."""

        with self.lock:
            view = self.views[position]
            view.recompute(self.buffer, expression)
        logger.debug("%s view %d -> %r (%s matches)", self.identity, position, expression, view.match_count)
        return view

    def view_at(self, view_index: int) -> TailView:
        """Map a selection index to a view: 0 is the unfiltered tail."""

        if view_index == 0:
            return UNFILTERED
        return self.views[view_index - 1]

    def tail(self, view: TailView, count: int) -> List[str]:
        """Copy the bottom ``count`` lines of ``view`` out under the lock."""

        with self.lock:
            return view.tail(self.buffer, self.buffer.last_line_number(), count)

    def stats(self) -> SourceStats:
        with self.lock:
            return SourceStats(
                identity=self.identity,
                display_name=self.display_name,
                retained=len(self.buffer),
                capacity=self.buffer.capacity,
                last_line_number=self.buffer.last_line_number(),
                armed=self.armed,
                terminated=self.terminated is not None,
                view_match_counts=tuple(view.match_count for view in self.views),
            )
