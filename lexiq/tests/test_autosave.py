"""
Tests for draft autosave.

This module contains tests for AutosaveService, focusing on:
1. Trailing-edge debounce with the latest text
2. Flush and cancel
3. The minimum draft length
"""

import threading

import pytest

from lexiq.assessments.autosave import AutosaveService


@pytest.fixture
def persisted():
    return []


@pytest.fixture
def autosave(scheduler, persisted):
    return AutosaveService(
        "q4", lambda qid, text: persisted.append((qid, text)), scheduler=scheduler
    )


def test_persists_after_quiet_period(scheduler, autosave, persisted):
    autosave.on_input("draft")

    scheduler.advance(4.9)
    assert persisted == []
    scheduler.advance(0.1)
    assert persisted == [("q4", "draft")]
    assert not autosave.has_pending


def test_each_edit_restarts_the_clock(scheduler, autosave, persisted):
    """Typing continuously emits nothing until the writer pauses."""
    for text in ["a", "ab", "abc", "abcd"]:
        autosave.on_input(text)
        scheduler.advance(3)

    assert persisted == []
    scheduler.advance(2)
    assert persisted == [("q4", "abcd")]
    assert autosave.persist_count == 1


def test_one_event_per_quiet_period(scheduler, autosave, persisted):
    autosave.on_input("first")
    scheduler.advance(5)
    autosave.on_input("second")
    scheduler.advance(5)
    scheduler.advance(20)

    assert persisted == [("q4", "first"), ("q4", "second")]


def test_flush_persists_immediately(scheduler, autosave, persisted):
    autosave.on_input("pending text")

    assert autosave.flush() is True
    assert persisted == [("q4", "pending text")]

    # The cancelled timer must not emit a second time
    scheduler.advance(10)
    assert persisted == [("q4", "pending text")]
    assert autosave.flush() is False


def test_cancel_drops_pending_and_closes(scheduler, autosave, persisted):
    autosave.on_input("never saved")
    autosave.cancel()
    autosave.on_input("ignored")
    scheduler.advance(10)

    assert persisted == []
    assert not autosave.has_pending


def test_min_chars(scheduler, persisted):
    """Drafts shorter than the floor are not scheduled."""
    autosave = AutosaveService(
        "q4", lambda qid, text: persisted.append(text),
        scheduler=scheduler, min_chars=10
    )

    autosave.on_input("short")
    scheduler.advance(10)
    assert persisted == []

    autosave.on_input("long enough text")
    autosave.on_input("short")
    scheduler.advance(10)
    assert persisted == []


def test_custom_quiet_period(scheduler, persisted):
    autosave = AutosaveService(
        "q4", lambda qid, text: persisted.append(text),
        quiet_seconds=0.5, scheduler=scheduler
    )
    autosave.on_input("x")
    scheduler.advance(0.5)
    assert persisted == ["x"]


def test_invalid_quiet_period():
    with pytest.raises(ValueError):
        AutosaveService("q4", lambda qid, text: None, quiet_seconds=0)


def test_real_threads_smoke():
    """The threading scheduler emits the latest text once."""
    persisted = []
    done = threading.Event()

    def on_persist(qid, text):
        persisted.append(text)
        done.set()

    autosave = AutosaveService("q4", on_persist, quiet_seconds=0.05)
    autosave.on_input("one")
    autosave.on_input("two")

    assert done.wait(timeout=5)
    assert persisted == ["two"]


def test_three_edits_one_second_apart(scheduler, autosave, persisted):
    """Three quick edits and five seconds of silence persist the last text once."""
    autosave.on_input("one")
    scheduler.advance(1)
    autosave.on_input("one two")
    scheduler.advance(1)
    autosave.on_input("one two three")
    scheduler.advance(5)

    assert persisted == [("q4", "one two three")]
