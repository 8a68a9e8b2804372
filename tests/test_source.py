"""Tests for source ingestion, arming and views."""
from __future__ import annotations

from pathlib import Path
import sys
import threading
import time

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tailboard.signals import WakeSignal
from tailboard.source import UNFILTERED, Source


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _manual_source(clock: FakeClock, quiet_gap: float = 1.0) -> Source:
    return Source("dev", signal=WakeSignal(), quiet_gap=quiet_gap, clock=clock, auto_settle=False)


def test_burst_does_not_notify_until_a_gap() -> None:
    clock = FakeClock()
    source = _manual_source(clock)
    for n in range(50):
        clock.now += 0.0005
        source.feed(f"line {n}")

    assert not source.armed
    assert source.signal.drain() == set()

    clock.now += 1.5
    source.feed("after the gap")
    assert source.armed
    assert source.signal.drain() == {"dev"}

    clock.now += 0.001
    source.feed("live")
    assert source.signal.drain() == {"dev"}


def test_settle_arms_after_quiet_gap() -> None:
    clock = FakeClock()
    source = _manual_source(clock)
    source.feed("backlog 1")
    source.feed("backlog 2")

    clock.now += 0.5
    assert source.settle() is False
    assert source.signal.drain() == set()

    clock.now += 0.6
    assert source.settle() is True
    assert source.armed
    assert source.signal.drain() == {"dev"}
    assert source.settle() is False


def test_settle_before_any_line_does_nothing() -> None:
    source = _manual_source(FakeClock())
    assert source.settle() is False
    assert not source.armed


def test_burst_then_silence_wakes_consumer_once_quiet() -> None:
    signal = WakeSignal()
    source = Source("burst", capacity=2000, signal=signal, quiet_gap=0.5)
    burst_done = threading.Event()
    release = threading.Event()

    def stream():
        for n in range(1000):
            yield f"line {n}"
        burst_done.set()
        release.wait(10)

    source.start(stream())
    assert burst_done.wait(5)
    finished_at = time.monotonic()
    assert signal.pending() == set()

    fired = signal.wait(timeout=5)
    assert fired == {"burst"}
    assert time.monotonic() - finished_at >= 0.3
    assert source.armed
    assert source.buffer.last_line_number() == 1000

    release.set()
    assert source.join(timeout=5)


def test_stream_end_freezes_source() -> None:
    signal = WakeSignal()
    source = Source("short", signal=signal)
    source.start(iter(["one", "two", "three"]))

    assert source.join(timeout=5)
    assert source.terminated is not None
    assert source.terminated.reason == "end of stream"
    assert source.tail(UNFILTERED, 10) == ["one", "two", "three"]
    assert "short" in signal.drain()


def test_stream_error_terminates_source() -> None:
    def broken():
        yield "first"
        raise OSError("pipe closed")

    source = Source("broken", signal=WakeSignal())
    source.start(broken())

    assert source.join(timeout=5)
    assert source.terminated is not None
    assert "pipe closed" in source.terminated.reason
    assert source.stats().terminated
    assert source.tail(UNFILTERED, 10) == ["first"]


def test_unexpected_stream_error_still_terminates_source() -> None:
    def broken():
        yield "first"
        raise RuntimeError("decoder blew up")

    signal = WakeSignal()
    source = Source("broken", signal=signal)
    source.start(broken())

    assert source.join(timeout=5)
    assert source.terminated is not None
    assert "RuntimeError" in source.terminated.reason
    assert "decoder blew up" in source.terminated.reason
    assert "broken" in signal.drain()
    assert source.tail(UNFILTERED, 10) == ["first"]


def test_close_terminates_a_stoppable_stream() -> None:
    class Stoppable:
        def __init__(self) -> None:
            self.stopped = threading.Event()

        def __iter__(self):
            yield "only"
            self.stopped.wait(5)

        def terminate(self) -> None:
            self.stopped.set()

    stream = Stoppable()
    source = Source("proc", signal=WakeSignal())
    source.start(stream)
    source.close()

    assert source.join(timeout=5)
    assert stream.stopped.is_set()
    assert source.terminated is not None


def test_close_without_stoppable_stream_is_harmless() -> None:
    source = Source("plain", signal=WakeSignal())
    source.close()
    source.start(iter(["a"]))
    assert source.join(timeout=5)
    source.close()


def test_views_filter_and_tail() -> None:
    source = _manual_source(FakeClock())
    for line in ["ok", "error", "ok", "warn err", "ok"]:
        source.feed(line)

    view = source.add_view()
    assert view.matched_line_numbers == []
    source.commit_filter(0, "err")

    assert source.view_at(0) is UNFILTERED
    assert source.view_at(1) is view
    assert source.tail(view, 10) == ["error", "warn err"]
    assert source.tail(UNFILTERED, 2) == ["warn err", "ok"]

    stats = source.stats()
    assert stats.retained == 5
    assert stats.last_line_number == 5
    assert stats.view_match_counts == (2,)

    assert source.remove_view(0) is view
    assert source.views == []


def test_concurrent_reads_see_whole_appends_in_order() -> None:
    source = Source("busy", capacity=100, signal=WakeSignal(), quiet_gap=0.5)
    total = 20000
    source.start(str(n) for n in range(1, total + 1))

    while not source.join(timeout=0):
        numbers = [int(line) for line in source.tail(UNFILTERED, 50)]
        if numbers:
            assert numbers == list(range(numbers[0], numbers[0] + len(numbers)))
    assert source.tail(UNFILTERED, 3) == [str(total - 2), str(total - 1), str(total)]
