"""
Assessment Definitions

An AssessmentDefinition pairs a validated question bank with engine
settings. Each bank-specific assessment is a definition rather than its own
state machine: the definition selects questions for an exam mode and hands
them to a SessionController.
"""

import enum
import logging
import random
from typing import Any, Callable, List, Optional, Sequence

from lexiq.assessments.autosave import PersistCallback
from lexiq.assessments.models import Question
from lexiq.assessments.session import CompleteCallback, SessionController
from lexiq.assessments.validation import validate_bank
from lexiq.common.scheduling import Scheduler
from lexiq.config import EngineConfig

logger = logging.getLogger(__name__)


class ExamMode(enum.Enum):
    """How much of the bank a session covers and whether it is timed."""
    PRACTICE = "practice"
    TIMED = "timed"
    COMPREHENSIVE = "comprehensive"


class AssessmentDefinition:
    """A named question bank plus the settings sessions over it run with."""

    def __init__(self, name: str, questions: Sequence[Question], config: Optional[EngineConfig] = None):
        if not questions:
            raise ValueError(f"Assessment '{name}' has no questions")
        self.name = name
        self.questions = tuple(questions)
        self.config = config or EngineConfig()

    @classmethod
    def from_raw(cls, name: str, raw_questions: Any, config: Optional[EngineConfig] = None) -> 'AssessmentDefinition':
        """
        Validate a raw bank and build a definition from it.

        Raises:
            ValidationError: If the bank has any violation
        """
        questions = validate_bank(raw_questions)
        logger.info(f"Loaded assessment '{name}' with {len(questions)} questions")
        return cls(name, questions, config)

    def select_questions(self, mode: ExamMode = ExamMode.TIMED) -> List[Question]:
        """
        Questions a session in the given mode covers, in session order.

        Practice sessions take the first practice_question_count questions
        of the bank; the other modes take all of them. When shuffling is
        enabled the selection is shuffled, reproducibly if a seed is set.
        """
        if mode is ExamMode.PRACTICE:
            selected = list(self.questions[:self.config.practice_question_count])
        else:
            selected = list(self.questions)

        if self.config.shuffle_questions:
            random.Random(self.config.shuffle_seed).shuffle(selected)
        return selected

    def time_limit_for(self, mode: ExamMode) -> Optional[int]:
        """Only timed sessions run a countdown."""
        if mode is ExamMode.TIMED:
            return self.config.time_limit_seconds
        return None

    def create_controller(
        self,
        mode: ExamMode = ExamMode.TIMED,
        scheduler: Optional[Scheduler] = None,
        on_persist: Optional[PersistCallback] = None,
        on_tick: Optional[Callable[[int], None]] = None,
        on_complete: Optional[CompleteCallback] = None
    ) -> SessionController:
        """
        Create a SessionController and start it in the given mode.

        Returns:
            A controller whose session is in progress
        """
        controller = SessionController(
            config=self.config,
            scheduler=scheduler,
            on_persist=on_persist,
            on_tick=on_tick,
            on_complete=on_complete
        )
        controller.start(self.select_questions(mode), self.time_limit_for(mode))
        logger.debug(f"Created {mode.value} session for '{self.name}'")
        return controller

    def __len__(self) -> int:
        return len(self.questions)

    def __repr__(self) -> str:
        return f"AssessmentDefinition(name={self.name!r}, questions={len(self.questions)})"
