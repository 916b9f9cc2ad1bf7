"""
Scheduling Primitives

Timer-driven services (the countdown and the draft autosave) do not talk to
threads directly. They ask a Scheduler to call them back later, which keeps
the services free of process-wide timer state and lets tests substitute a
fake clock.
"""

import abc
import itertools
import logging
import threading
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ScheduledCall:
    """Handle for a callback registered with a Scheduler."""

    _ids = itertools.count(1)

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple = ()):
        self.call_id = next(self._ids)
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.done = False
        self._timer: Optional[threading.Timer] = None

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def run(self) -> None:
        """Invoke the callback unless the call was cancelled."""
        if self.cancelled or self.done:
            return
        self.done = True
        self.callback(*self.args)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "done" if self.done else "pending"
        return f"ScheduledCall(id={self.call_id}, when={self.when:.3f}, {state})"


class Scheduler(abc.ABC):
    """Source of time and delayed callbacks."""

    @abc.abstractmethod
    def now(self) -> float:
        """Current monotonic time in seconds."""

    @abc.abstractmethod
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        """
        Run a callback once after a delay.

        Args:
            delay: Seconds to wait (negative delays run as soon as possible)
            callback: Function to invoke
            *args: Positional arguments for the callback

        Returns:
            Handle that can cancel the call
        """


class ThreadingScheduler(Scheduler):
    """
    Scheduler backed by one daemon threading.Timer per call.

    Callbacks run on timer threads, so anything they touch must be
    thread-safe.
    """

    def __init__(self, thread_name_prefix: str = "lexiq-timer"):
        self.thread_name_prefix = thread_name_prefix

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        delay = max(0.0, delay)
        call = ScheduledCall(self.now() + delay, callback, args)
        timer = threading.Timer(delay, self._run, args=(call,))
        timer.name = f"{self.thread_name_prefix}-{call.call_id}"
        timer.daemon = True
        call._timer = timer
        timer.start()
        return call

    @staticmethod
    def _run(call: ScheduledCall) -> None:
        try:
            call.run()
        except Exception:
            # Nothing above a timer thread can catch this
            logger.exception(f"Scheduled callback {call!r} failed")
