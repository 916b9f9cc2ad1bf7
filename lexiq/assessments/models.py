"""
Assessment Models

This module defines the core data models of the assessment engine:
questions, answers, scored answers, breakdowns, results, and the live
session record.
"""

import enum
import uuid
import datetime
from typing import Any, Dict, Optional, Set, Tuple
from dataclasses import dataclass, field

from lexiq.common.serialization import SerializableMixin
from lexiq.common.utils import format_clock


def utcnow() -> datetime.datetime:
    """Timezone-aware current UTC time."""
    return datetime.datetime.now(datetime.timezone.utc)


class QuestionVariant(enum.Enum):
    """Kinds of question, each with its own scoring rule."""
    SINGLE_CHOICE = "single-choice"
    TRUE_FALSE = "true-false"
    FREE_TEXT = "free-text"

    @property
    def is_objective(self) -> bool:
        """Whether answers are scored by exact comparison."""
        return self is not QuestionVariant.FREE_TEXT


class Difficulty(enum.Enum):
    """Ordered difficulty tiers for questions."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"

    @classmethod
    def from_numeric(cls, value: int) -> 'Difficulty':
        """Convert a numeric value (1-4) to a difficulty level."""
        mapping = {
            1: cls.EASY,
            2: cls.MEDIUM,
            3: cls.HARD,
            4: cls.EXPERT
        }
        return mapping.get(value, cls.MEDIUM)

    def to_numeric(self) -> int:
        """Convert difficulty level to a numeric value (1-4)."""
        return {
            Difficulty.EASY: 1,
            Difficulty.MEDIUM: 2,
            Difficulty.HARD: 3,
            Difficulty.EXPERT: 4
        }[self]

    def __lt__(self, other: 'Difficulty') -> bool:
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.to_numeric() < other.to_numeric()

    def __le__(self, other: 'Difficulty') -> bool:
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.to_numeric() <= other.to_numeric()

    def __gt__(self, other: 'Difficulty') -> bool:
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.to_numeric() > other.to_numeric()

    def __ge__(self, other: 'Difficulty') -> bool:
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.to_numeric() >= other.to_numeric()


class SessionStatus(enum.Enum):
    """Status of an assessment session."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class FinishCause(enum.Enum):
    """What triggered the transition to completed."""
    SUBMITTED = "submitted"
    TIME_EXPIRED = "time_expired"


class FeedbackTier(enum.Enum):
    """Coarse feedback band chosen from the overall percentage."""
    EXCELLENT = "excellent"
    VERY_GOOD = "very_good"
    PASSED = "passed"
    NEEDS_REVIEW = "needs_review"


@dataclass(frozen=True)
class Question(SerializableMixin):
    """
    An immutable, validated question.

    Questions are built by the bank validator and never change afterwards.
    ``correct_answer`` is an option index for single-choice questions, a
    bool for true-false questions, and None for free-text questions.
    ``metadata`` carries advisory authoring data (sources, tips, grading
    criteria) that scoring never reads.
    """

    __serializable_fields__ = [
        "id", "variant", "section", "category", "difficulty", "prompt", "options",
        "correct_answer", "points", "explanation", "time_estimate_minutes", "metadata"
    ]

    id: str
    variant: QuestionVariant
    category: str
    difficulty: Difficulty
    prompt: str
    section: str = "General"
    options: Tuple[str, ...] = ()
    correct_answer: Any = None
    points: float = 1
    explanation: str = ""
    time_estimate_minutes: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def correct_answer_display(self) -> Optional[str]:
        """The correct answer as text, for review screens."""
        if self.variant is QuestionVariant.SINGLE_CHOICE:
            return self.options[self.correct_answer]
        if self.variant is QuestionVariant.TRUE_FALSE:
            return "true" if self.correct_answer else "false"
        return None


@dataclass
class Answer(SerializableMixin):
    """A submitted answer. At most one per question; replaced on edit."""

    __serializable_fields__ = ["question_id", "value", "submitted_at"]

    question_id: str
    value: Any
    submitted_at: datetime.datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ScoredAnswer(SerializableMixin):
    """Outcome of scoring one question."""

    __serializable_fields__ = ["question_id", "points_earned", "is_correct"]

    question_id: str
    points_earned: float
    is_correct: bool


@dataclass
class BreakdownEntry(SerializableMixin):
    """Accumulated performance for one group of a breakdown."""

    __serializable_fields__ = ["correct", "total", "earned_points", "max_points"]

    correct: int = 0
    total: int = 0
    earned_points: float = 0
    max_points: float = 0

    def add(self, scored: ScoredAnswer, max_points: float) -> None:
        """Fold one scored answer into the group."""
        self.total += 1
        self.max_points += max_points
        self.earned_points += scored.points_earned
        if scored.is_correct:
            self.correct += 1

    @property
    def accuracy(self) -> float:
        """Percentage of correct answers in the group"""
        if self.total == 0:
            return 0
        return (self.correct / self.total) * 100


@dataclass(frozen=True)
class ReviewItem(SerializableMixin):
    """Per-question line of the post-assessment review."""

    __serializable_fields__ = [
        "question_id", "prompt", "submitted", "correct_answer",
        "points_earned", "max_points", "is_correct", "explanation"
    ]

    question_id: str
    prompt: str
    submitted: Any
    correct_answer: Any
    points_earned: float
    max_points: float
    is_correct: bool
    explanation: str


@dataclass(frozen=True)
class Result(SerializableMixin):
    """
    The terminal artifact of a completed session.

    Every field is a deterministic function of the questions, the scored
    answers and the values passed to the reporter, so summarizing the same
    inputs twice yields equal objects and identical JSON.

    ``correct_count`` and ``wrong_count`` cover the objective questions only;
    free-text answers count through their points and the per-question
    ``is_correct`` in the breakdowns and review.
    """

    __serializable_fields__ = [
        "earned_points", "total_points", "percentage", "correct_count", "wrong_count",
        "answered_count", "total_questions", "by_section", "by_category", "by_difficulty",
        "passed", "feedback_tier", "recommendations", "time_spent_seconds", "flagged", "review"
    ]

    earned_points: float
    total_points: float
    percentage: int
    correct_count: int
    wrong_count: int
    answered_count: int
    total_questions: int
    by_section: Dict[str, BreakdownEntry]
    by_category: Dict[str, BreakdownEntry]
    by_difficulty: Dict[str, BreakdownEntry]
    passed: bool
    feedback_tier: FeedbackTier
    recommendations: Tuple[str, ...] = ()
    time_spent_seconds: Optional[int] = None
    flagged: Tuple[str, ...] = ()
    review: Tuple[ReviewItem, ...] = ()


@dataclass
class Session(SerializableMixin):
    """
    The live assessment instance, owned by a SessionController.

    ``questions`` is a snapshot taken at start and is never mutated.
    """

    __serializable_fields__ = [
        "id", "status", "questions", "current_index", "answers", "flagged",
        "time_limit_seconds", "remaining_seconds", "started_at", "completed_at", "finish_cause"
    ]

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: SessionStatus = SessionStatus.NOT_STARTED
    questions: Tuple[Question, ...] = ()
    current_index: int = 0
    answers: Dict[str, Answer] = field(default_factory=dict)
    flagged: Set[str] = field(default_factory=set)
    time_limit_seconds: Optional[int] = None
    remaining_seconds: Optional[int] = None
    started_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    finish_cause: Optional[FinishCause] = None

    @property
    def is_timed(self) -> bool:
        return self.time_limit_seconds is not None

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def question_by_id(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def answer_for(self, question_id: str) -> Optional[Answer]:
        return self.answers.get(question_id)


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot of a session for the presentation layer."""

    status: SessionStatus
    index: int
    total: int
    question: Optional[Question]
    current_answer: Any
    remaining_seconds: Optional[int]
    answered_count: int
    is_flagged: bool

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.total == 0 or self.index == self.total - 1

    @property
    def remaining_display(self) -> Optional[str]:
        """Countdown text ("MM:SS" or "H:MM:SS"), or None if untimed."""
        if self.remaining_seconds is None:
            return None
        return format_clock(self.remaining_seconds)
