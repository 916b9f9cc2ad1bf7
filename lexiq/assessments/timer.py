"""
Countdown Timer

TimerService counts a time limit down one tick per elapsed interval of wall
clock time, reports each remaining value, and signals expiry exactly once.
Each session owns its own TimerService; there is no shared timer state.
"""

import itertools
import logging
import math
import threading
from typing import Callable, Optional

from lexiq.common.scheduling import ScheduledCall, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

# Tolerance for clocks that land a hair before a tick boundary
_TICK_EPSILON = 1e-6

TickCallback = Callable[[int], None]
ExpireCallback = Callable[[], None]


class TimerHandle:
    """State of one running countdown."""

    _ids = itertools.count(1)

    def __init__(
        self,
        limit_seconds: int,
        started_at: float,
        on_tick: Optional[TickCallback],
        on_expire: Optional[ExpireCallback]
    ):
        self.timer_id = next(self._ids)
        self.limit_seconds = limit_seconds
        self.started_at = started_at
        self.remaining_seconds = limit_seconds
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.cancelled = False
        self.expired = False
        self.pending: Optional[ScheduledCall] = None
        # Held while callbacks run so cancel() can wait them out
        self.lock = threading.RLock()

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.expired)

    def __repr__(self) -> str:
        return (f"TimerHandle(id={self.timer_id}, remaining={self.remaining_seconds}, "
                f"cancelled={self.cancelled}, expired={self.expired})")


class TimerService:
    """
    Countdown driven by a Scheduler.

    ``on_tick(remaining)`` fires once per elapsed interval with strictly
    decreasing values down to 0; ``on_expire()`` then fires exactly once and
    the countdown stops. If the host falls behind, missed ticks are caught up
    in order rather than skipped.
    """

    def __init__(self, scheduler: Optional[Scheduler] = None, tick_interval: float = 1.0):
        """
        Initialize the timer service.

        Args:
            scheduler: Source of time and delayed calls (defaults to threads)
            tick_interval: Seconds of wall clock per tick
        """
        if tick_interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {tick_interval}")
        self.scheduler = scheduler or ThreadingScheduler()
        self.tick_interval = tick_interval

    def start(
        self,
        limit_seconds: int,
        on_tick: Optional[TickCallback] = None,
        on_expire: Optional[ExpireCallback] = None
    ) -> TimerHandle:
        """
        Start a countdown.

        Args:
            limit_seconds: Number of ticks before expiry
            on_tick: Called with the remaining value after every tick
            on_expire: Called once when the countdown reaches zero

        Returns:
            Handle for cancelling the countdown
        """
        if limit_seconds <= 0:
            raise ValueError(f"Time limit must be positive, got {limit_seconds}")

        handle = TimerHandle(limit_seconds, self.scheduler.now(), on_tick, on_expire)
        with handle.lock:
            handle.pending = self.scheduler.call_later(self.tick_interval, self._fire, handle)
        logger.debug(f"Started countdown {handle.timer_id} for {limit_seconds} ticks")
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        """
        Stop a countdown. Idempotent.

        When called from another thread while a callback is running, waits
        for that callback to return, so no callback runs after cancel()
        returns. Calls made from inside a callback do not wait.
        """
        if handle is None:
            return
        with handle.lock:
            if handle.cancelled:
                return
            handle.cancelled = True
            if handle.pending is not None:
                handle.pending.cancel()
                handle.pending = None
        logger.debug(f"Cancelled countdown {handle.timer_id} at {handle.remaining_seconds}")

    def _fire(self, handle: TimerHandle) -> None:
        with handle.lock:
            if not handle.active:
                return
            self._advance(handle)

    def _advance(self, handle: TimerHandle) -> None:
        elapsed = self.scheduler.now() - handle.started_at
        elapsed_ticks = math.floor(elapsed / self.tick_interval + _TICK_EPSILON)
        # A scheduled firing always accounts for at least one tick
        target = max(0, min(handle.remaining_seconds - 1, handle.limit_seconds - elapsed_ticks))

        while handle.remaining_seconds > target:
            handle.remaining_seconds -= 1
            if handle.on_tick is not None:
                handle.on_tick(handle.remaining_seconds)
            if handle.cancelled:
                return

        if handle.remaining_seconds <= 0:
            handle.expired = True
            logger.info(f"Countdown {handle.timer_id} expired")
            if handle.on_expire is not None:
                handle.on_expire()
            return

        next_tick = handle.limit_seconds - handle.remaining_seconds + 1
        delay = handle.started_at + next_tick * self.tick_interval - self.scheduler.now()
        handle.pending = self.scheduler.call_later(delay, self._fire, handle)
