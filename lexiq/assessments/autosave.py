"""
Draft Autosave

AutosaveService debounces edits to a long-form answer: every edit restarts
a quiet-period clock, and only when the quiet period passes without another
edit is the latest text handed to the persistence sink.
"""

import logging
import threading
from typing import Callable, Optional

from lexiq.common.scheduling import ScheduledCall, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

# on_persist(question_id, text); where drafts go is the caller's business
PersistCallback = Callable[[str, str], None]

DEFAULT_QUIET_SECONDS = 5.0


class AutosaveService:
    """
    Trailing-edge debounce for one question's draft text.

    At most one persist event is emitted per quiet period and it always
    carries the newest text; superseded text is never emitted.
    """

    def __init__(
        self,
        question_id: str,
        on_persist: PersistCallback,
        quiet_seconds: float = DEFAULT_QUIET_SECONDS,
        scheduler: Optional[Scheduler] = None,
        min_chars: int = 0
    ):
        """
        Initialize the autosave service.

        Args:
            question_id: Question whose draft is being saved
            on_persist: Sink called with (question_id, text)
            quiet_seconds: Inactivity required before persisting
            scheduler: Source of delayed calls (defaults to threads)
            min_chars: Drafts shorter than this are not scheduled
        """
        if quiet_seconds <= 0:
            raise ValueError(f"Quiet period must be positive, got {quiet_seconds}")
        self.question_id = question_id
        self.on_persist = on_persist
        self.quiet_seconds = quiet_seconds
        self.scheduler = scheduler or ThreadingScheduler()
        self.min_chars = min_chars

        self._lock = threading.Lock()
        self._pending: Optional[ScheduledCall] = None
        self._latest: Optional[str] = None
        self._generation = 0
        self._closed = False
        self.persist_count = 0

    @property
    def has_pending(self) -> bool:
        """Whether a persist event is scheduled."""
        with self._lock:
            return self._pending is not None

    def on_input(self, text: str) -> None:
        """
        Record an edit and restart the quiet period.

        Args:
            text: Full current draft text
        """
        with self._lock:
            if self._closed:
                return
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            self._generation += 1
            self._latest = text
            if len(text) < self.min_chars:
                return
            self._pending = self.scheduler.call_later(
                self.quiet_seconds, self._emit, self._generation
            )

    def flush(self) -> bool:
        """
        Persist a pending draft immediately.

        Returns:
            True if a draft was persisted
        """
        with self._lock:
            if self._pending is None:
                return False
            self._pending.cancel()
            self._pending = None
            text = self._latest
        self._persist(text)
        return True

    def cancel(self) -> None:
        """Drop any pending persist and ignore further input."""
        with self._lock:
            self._closed = True
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def _emit(self, generation: int) -> None:
        with self._lock:
            # A newer edit already rescheduled; this call is stale
            if generation != self._generation or self._pending is None:
                return
            self._pending = None
            text = self._latest
        self._persist(text)

    def _persist(self, text: Optional[str]) -> None:
        if text is None:
            return
        self.persist_count += 1
        logger.debug(f"Persisting draft for {self.question_id} ({len(text)} chars)")
        self.on_persist(self.question_id, text)
