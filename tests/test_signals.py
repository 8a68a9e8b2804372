"""Tests for the coalescing wake signal."""
from __future__ import annotations

from pathlib import Path
import sys
import threading

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tailboard.signals import WakeSignal


def test_notifies_coalesce_per_key() -> None:
    signal = WakeSignal()
    for _ in range(1000):
        signal.notify("a")
    signal.notify("b")

    assert signal.pending() == {"a", "b"}
    assert signal.drain() == {"a", "b"}
    assert signal.drain() == set()


def test_wait_times_out_empty() -> None:
    assert WakeSignal().wait(timeout=0.01) == set()


def test_wait_wakes_on_notify_from_another_thread() -> None:
    signal = WakeSignal()
    timer = threading.Timer(0.05, signal.notify, args=("dev",))
    timer.start()

    assert signal.wait(timeout=5) == {"dev"}
    timer.join()


def test_wait_returns_immediately_when_pending() -> None:
    signal = WakeSignal()
    signal.notify(1)
    assert signal.wait(timeout=0) == {1}
