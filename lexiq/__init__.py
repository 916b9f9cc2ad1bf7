"""
LexIQ Assessment Engine

This package runs question-bank assessments: it validates banks, drives
sessions through their lifecycle, scores answers and aggregates results.

The engine features:
1. Question bank validation with every violation reported at once
2. A single session state machine shared by every assessment
3. Per-session countdowns and debounced draft autosave
4. Point-weighted results with section, category and difficulty breakdowns
"""

__version__ = "0.1.0"

from lexiq.config import AppConfig, ConfigLoader, EngineConfig, LoggingConfig, load_config

from lexiq.assessments import (
    AggregationReporter, AssessmentDefinition, AutosaveService, ExamMode, FinishCause,
    Question, QuestionBankValidator, QuestionVariant, Result, ScoringEngine,
    SessionController, SessionStatus, TimerService, validate_bank
)

from lexiq.common.exceptions import (
    AnswerTypeError, BaseError, ConfigurationError, NotFoundError, SessionStateError,
    ValidationError
)
