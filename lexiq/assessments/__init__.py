"""
Assessment Engine

Question banks, sessions, scoring and reporting.
"""

from lexiq.assessments.models import (
    QuestionVariant, Difficulty, SessionStatus, FinishCause, FeedbackTier,
    Question, Answer, ScoredAnswer, BreakdownEntry, ReviewItem, Result,
    Session, SessionView
)
from lexiq.assessments.validation import QuestionBankValidator, validate_bank
from lexiq.assessments.scoring import ScoringEngine, free_text_points
from lexiq.assessments.timer import TimerService, TimerHandle
from lexiq.assessments.autosave import AutosaveService
from lexiq.assessments.reporting import AggregationReporter
from lexiq.assessments.session import SessionController
from lexiq.assessments.definition import AssessmentDefinition, ExamMode
