"""
Assessment Session Controller

SessionController drives one assessment attempt through
NotStarted -> InProgress -> Completed. It owns the Session record, the
countdown for timed sessions and the draft autosavers, and produces the
Result exactly once when the session completes.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from lexiq.assessments.autosave import AutosaveService, PersistCallback
from lexiq.assessments.models import (
    Answer, FinishCause, Question, QuestionVariant, Result, Session, SessionStatus,
    SessionView, utcnow
)
from lexiq.assessments.reporting import AggregationReporter
from lexiq.assessments.scoring import ScoringEngine
from lexiq.assessments.timer import TimerHandle, TimerService
from lexiq.assessments.validation import validate_bank
from lexiq.common.exceptions import (
    AnswerTypeError, NotFoundError, SessionStateError, ValidationError
)
from lexiq.common.logger import LoggerAdapter
from lexiq.common.scheduling import Scheduler, ThreadingScheduler
from lexiq.config import EngineConfig

logger = logging.getLogger(__name__)

CompleteCallback = Callable[[Result], None]


class SessionController:
    """
    State machine for a single assessment attempt.

    Callers interact from one thread; the only other thread is the
    countdown's, which may call finish() on expiry. Status checks and
    transitions run under one re-entrant lock, so a submit racing an expiry
    produces exactly one Result and the losing call simply returns it.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        scoring_engine: Optional[ScoringEngine] = None,
        reporter: Optional[AggregationReporter] = None,
        scheduler: Optional[Scheduler] = None,
        on_persist: Optional[PersistCallback] = None,
        on_tick: Optional[Callable[[int], None]] = None,
        on_complete: Optional[CompleteCallback] = None
    ):
        """
        Initialize the controller.

        Args:
            config: Engine settings (defaults apply when omitted)
            scoring_engine: Scores answers on finish
            reporter: Builds the Result; defaults to one using the
                configured pass threshold
            scheduler: Time source for the countdown and autosave
            on_persist: Sink for autosaved free-text drafts; drafts are not
                autosaved without one
            on_tick: Called with the remaining seconds on every countdown tick
            on_complete: Called once with the Result when the session completes
        """
        self.config = config or EngineConfig()
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.reporter = reporter or AggregationReporter(
            self.scoring_engine, self.config.pass_threshold_percent
        )
        self.scheduler = scheduler or ThreadingScheduler()
        self.on_persist = on_persist
        self.on_tick = on_tick
        self.on_complete = on_complete

        self._lock = threading.RLock()
        self._session = Session()
        self._result: Optional[Result] = None
        self._timer_service: Optional[TimerService] = None
        self._timer_handle: Optional[TimerHandle] = None
        self._autosaves: Dict[str, AutosaveService] = {}
        self._started_clock: Optional[float] = None
        self.logger = LoggerAdapter(logger, {"session_id": self._session.id})

    @property
    def session(self) -> Session:
        """The live session record."""
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def result(self) -> Optional[Result]:
        """The Result, once the session has completed."""
        return self._result

    def start(
        self,
        questions: Iterable[Any],
        time_limit_seconds: Optional[int] = None
    ) -> Session:
        """
        Start the session.

        Args:
            questions: Validated questions, or raw records to validate first
            time_limit_seconds: Countdown length; the session is untimed
                without one

        Returns:
            The started session

        Raises:
            SessionStateError: If the session was already started
            ValidationError: If the questions are empty or invalid
        """
        with self._lock:
            # A started session rejects the call before its input is looked at
            self._require("start", SessionStatus.NOT_STARTED)

            questions = list(questions)
            if not all(isinstance(question, Question) for question in questions):
                questions = validate_bank(questions)
            self._check_questions(questions)

            if time_limit_seconds is not None and time_limit_seconds <= 0:
                raise ValueError(f"Time limit must be positive, got {time_limit_seconds}")

            session = self._session
            session.questions = tuple(questions)
            session.current_index = 0
            session.answers = {}
            session.flagged = set()
            session.time_limit_seconds = time_limit_seconds
            session.remaining_seconds = time_limit_seconds
            session.started_at = utcnow()
            session.status = SessionStatus.IN_PROGRESS
            self._started_clock = self.scheduler.now()

            if time_limit_seconds is not None:
                self._timer_service = TimerService(
                    self.scheduler, self.config.tick_interval_seconds
                )
                self._timer_handle = self._timer_service.start(
                    time_limit_seconds, self._handle_tick, self._handle_expire
                )

        self.logger.info(
            f"Session started with {len(questions)} questions"
            + (f", {time_limit_seconds}s limit" if time_limit_seconds else ", untimed")
        )
        return session

    def record_answer(self, question_id: str, value: Any) -> Optional[Answer]:
        """
        Record (or replace) the answer to a question.

        The current index does not move. Recording None clears the answer.

        Returns:
            The stored answer, or None if it was cleared
        """
        with self._lock:
            self._require("record an answer", SessionStatus.IN_PROGRESS)
            self._question(question_id)
            if value is None:
                self._session.answers.pop(question_id, None)
                self.logger.debug(f"Cleared answer for {question_id}")
                return None
            answer = Answer(question_id=question_id, value=value)
            self._session.answers[question_id] = answer
        self.logger.debug(f"Recorded answer for {question_id}")
        return answer

    def update_draft(self, question_id: str, text: str) -> Answer:
        """
        Record the current draft of a free-text answer and schedule autosave.

        Raises:
            AnswerTypeError: If the question is not free-text
        """
        with self._lock:
            self._require("update a draft", SessionStatus.IN_PROGRESS)
            question = self._question(question_id)
            if question.variant is not QuestionVariant.FREE_TEXT:
                raise AnswerTypeError(question_id, question.variant, "update a draft")

            answer = Answer(question_id=question_id, value=text)
            self._session.answers[question_id] = answer
            if self.on_persist is not None:
                self._autosave_for(question_id).on_input(text)
        return answer

    def go_next(self) -> SessionView:
        with self._lock:
            return self.go_to(self._session.current_index + 1)

    def go_previous(self) -> SessionView:
        with self._lock:
            return self.go_to(self._session.current_index - 1)

    def go_to(self, index: int) -> SessionView:
        """Move to a question index, clamped to the session's questions."""
        with self._lock:
            self._require("navigate", SessionStatus.IN_PROGRESS)
            last = len(self._session.questions) - 1
            self._session.current_index = max(0, min(index, last))
            return self.view()

    def toggle_flag(self, question_id: str) -> bool:
        """
        Flag or unflag a question for review.

        Returns:
            Whether the question is flagged afterwards
        """
        with self._lock:
            self._require("flag a question", SessionStatus.IN_PROGRESS)
            self._question(question_id)
            flagged = self._session.flagged
            if question_id in flagged:
                flagged.discard(question_id)
                return False
            flagged.add(question_id)
            return True

    def view(self) -> SessionView:
        """Snapshot of what the presentation layer shows right now."""
        with self._lock:
            session = self._session
            question = session.current_question
            answer = session.answer_for(question.id) if question else None
            return SessionView(
                status=session.status,
                index=session.current_index,
                total=len(session.questions),
                question=question,
                current_answer=answer.value if answer else None,
                remaining_seconds=session.remaining_seconds if session.is_timed else None,
                answered_count=len(session.answers),
                is_flagged=bool(question and question.id in session.flagged)
            )

    def finish(self, cause: FinishCause = FinishCause.SUBMITTED) -> Result:
        """
        Complete the session and produce its Result.

        Safe to call more than once and from the countdown thread: only the
        first call scores the session, later calls return the same Result.

        Raises:
            SessionStateError: If the session was never started
        """
        with self._lock:
            if self._session.status is SessionStatus.COMPLETED:
                self.logger.debug(f"Ignoring {cause.value} finish; session already completed")
                return self._result
            self._require("finish", SessionStatus.IN_PROGRESS)

            session = self._session
            session.status = SessionStatus.COMPLETED
            session.finish_cause = cause
            session.completed_at = utcnow()
            if cause is FinishCause.TIME_EXPIRED:
                session.remaining_seconds = 0

            scored = self.scoring_engine.score_all(session.questions, session.answers)
            self._result = self.reporter.summarize(
                session.questions,
                scored,
                answers=session.answers,
                time_spent_seconds=self._time_spent(),
                flagged=session.flagged
            )
            result = self._result
            handle, timer_service = self._timer_handle, self._timer_service
            autosaves = list(self._autosaves.values())

        # Outside the lock: cancel() may wait for a tick that needs it
        if timer_service is not None:
            timer_service.cancel(handle)
        for autosave in autosaves:
            autosave.flush()
            autosave.cancel()

        self.logger.info(
            f"Session completed ({cause.value}): {result.earned_points}/"
            f"{result.total_points} points, {result.percentage}%"
        )
        if self.on_complete is not None:
            self.on_complete(result)
        return result

    def restart(self) -> Session:
        """
        Discard the completed session and begin a fresh, unstarted one.

        Raises:
            SessionStateError: If the session has not completed
        """
        with self._lock:
            self._require("restart", SessionStatus.COMPLETED)
            previous_id = self._session.id
            self._session = Session()
            self._result = None
            self._timer_service = None
            self._timer_handle = None
            self._autosaves = {}
            self._started_clock = None
            self.logger = LoggerAdapter(logger, {"session_id": self._session.id})

        self.logger.info(f"Session restarted (previous session {previous_id})")
        return self._session

    def _require(self, operation: str, *allowed: SessionStatus) -> None:
        status = self._session.status
        if status not in allowed:
            self.logger.warning(f"Rejected {operation} while {status.value}")
            raise SessionStateError(operation, status)

    def _question(self, question_id: str) -> Question:
        question = self._session.question_by_id(question_id)
        if question is None:
            raise NotFoundError("Question", question_id)
        return question

    def _autosave_for(self, question_id: str) -> AutosaveService:
        autosave = self._autosaves.get(question_id)
        if autosave is None:
            autosave = AutosaveService(
                question_id,
                self.on_persist,
                quiet_seconds=self.config.autosave_quiet_seconds,
                scheduler=self.scheduler,
                min_chars=self.config.autosave_min_chars
            )
            self._autosaves[question_id] = autosave
        return autosave

    def _time_spent(self) -> Optional[int]:
        if self._started_clock is None:
            return None
        elapsed = int(round(self.scheduler.now() - self._started_clock))
        limit = self._session.time_limit_seconds
        return min(elapsed, limit) if limit is not None else elapsed

    def _handle_tick(self, remaining: int) -> None:
        with self._lock:
            if self._session.status is not SessionStatus.IN_PROGRESS:
                return
            self._session.remaining_seconds = remaining
        if self.on_tick is not None:
            self.on_tick(remaining)

    def _handle_expire(self) -> None:
        self.logger.info("Time limit reached; finishing session")
        self.finish(FinishCause.TIME_EXPIRED)

    @staticmethod
    def _check_questions(questions: List[Question]) -> None:
        if not questions:
            raise ValidationError("Cannot start a session without questions",
                                  ["question list is empty"])
        seen = set()
        duplicates = []
        for question in questions:
            if question.id in seen:
                duplicates.append(f"duplicate question id '{question.id}'")
            seen.add(question.id)
        if duplicates:
            raise ValidationError("Session questions must have unique ids", duplicates)
