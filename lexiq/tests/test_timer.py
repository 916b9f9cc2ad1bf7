"""
Tests for the countdown timer.

This module contains tests for TimerService, focusing on:
1. Tick sequence and single expiry
2. Cancellation guarantees
3. Catching up when the host falls behind
"""

import threading

from lexiq.assessments.timer import TimerService


def test_ticks_then_expires_once(scheduler):
    """A 3-second countdown ticks 2, 1, 0 and then expires once."""
    ticks = []
    expired = []
    timer = TimerService(scheduler)
    handle = timer.start(3, ticks.append, lambda: expired.append(True))

    scheduler.advance(1)
    assert ticks == [2]
    scheduler.advance(1)
    assert ticks == [2, 1]
    assert not expired

    scheduler.advance(1)
    assert ticks == [2, 1, 0]
    assert expired == [True]
    assert handle.expired

    scheduler.advance(10)
    assert ticks == [2, 1, 0]
    assert expired == [True]
    assert scheduler.pending == 0


def test_partial_interval_does_not_tick(scheduler):
    ticks = []
    TimerService(scheduler).start(5, ticks.append)

    scheduler.advance(0.5)
    assert ticks == []
    scheduler.advance(0.5)
    assert ticks == [4]


def test_cancel_stops_callbacks(scheduler):
    """No callback fires after cancel() returns."""
    ticks = []
    expired = []
    timer = TimerService(scheduler)
    handle = timer.start(5, ticks.append, lambda: expired.append(True))

    scheduler.advance(2)
    timer.cancel(handle)
    timer.cancel(handle)
    scheduler.advance(10)

    assert ticks == [4, 3]
    assert not expired
    assert handle.cancelled
    assert not handle.active


def test_cancel_none_is_noop():
    TimerService().cancel(None)


def test_cancel_from_tick_callback(scheduler):
    """A callback may cancel its own countdown."""
    ticks = []
    expired = []
    timer = TimerService(scheduler)
    holder = {}

    def on_tick(remaining):
        ticks.append(remaining)
        if remaining == 3:
            timer.cancel(holder["handle"])

    holder["handle"] = timer.start(5, on_tick, lambda: expired.append(True))
    scheduler.advance(10)

    assert ticks == [4, 3]
    assert not expired


def test_catches_up_missed_ticks(scheduler):
    """If the host stalls, every missed value is still reported in order."""
    ticks = []
    timer = TimerService(scheduler)
    handle = timer.start(10, ticks.append)

    # Simulate a stalled host: the clock jumps without the callback running
    scheduler._now = 3.5
    scheduler.advance(0)

    assert ticks == [9, 8, 7]
    assert handle.remaining_seconds == 7

    scheduler.advance(0.5)
    assert ticks == [9, 8, 7, 6]


def test_custom_tick_interval(scheduler):
    ticks = []
    TimerService(scheduler, tick_interval=0.5).start(2, ticks.append)

    scheduler.advance(0.5)
    assert ticks == [1]
    scheduler.advance(0.5)
    assert ticks == [1, 0]


def test_independent_countdowns(scheduler):
    """Two timers on the same scheduler do not interfere."""
    first, second = [], []
    timer = TimerService(scheduler)
    timer.start(2, first.append)
    scheduler.advance(1)
    timer.start(2, second.append)
    scheduler.advance(1)

    assert first == [1, 0]
    assert second == [1]


def test_invalid_arguments():
    import pytest

    with pytest.raises(ValueError):
        TimerService(tick_interval=0)
    with pytest.raises(ValueError):
        TimerService().start(0)


def test_real_threads_smoke():
    """The threading scheduler drives a short countdown to expiry."""
    ticks = []
    done = threading.Event()
    timer = TimerService(tick_interval=0.02)
    timer.start(3, ticks.append, done.set)

    assert done.wait(timeout=5)
    assert ticks == [2, 1, 0]
