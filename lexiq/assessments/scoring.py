"""
Answer Scoring

Maps a (question, answer) pair to a ScoredAnswer. Objective variants are
scored by exact comparison with no partial credit. Free-text answers get
length-based partial credit.

The free-text rule is content-blind: a long answer earns credit whatever it
says, and the keyword/grading-criteria lists some questions carry in their
metadata are never consulted.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from lexiq.assessments.models import Answer, Question, QuestionVariant, ScoredAnswer

logger = logging.getLogger(__name__)

# Free-text partial credit: FREE_TEXT_POINTS_PER_STEP points per full
# FREE_TEXT_CHARS_PER_STEP characters, nothing at or below that length
FREE_TEXT_CHARS_PER_STEP = 50
FREE_TEXT_POINTS_PER_STEP = 2
FREE_TEXT_PASS_RATIO = 0.6


def answer_value(answer: Any) -> Any:
    """Unwrap an Answer record; raw values pass through."""
    if isinstance(answer, Answer):
        return answer.value
    return answer


def normalize_value(question: Question, value: Any) -> Any:
    """
    Read a submitted value in the representation used by the question.

    True-false accepts the tokens "true"/"false" in any case, and
    single-choice accepts the exact text of an option in place of its index.
    Anything else is returned unchanged.
    """
    if question.variant is QuestionVariant.TRUE_FALSE and isinstance(value, str):
        token = value.strip().lower()
        if token == "true":
            return True
        if token == "false":
            return False
    if question.variant is QuestionVariant.SINGLE_CHOICE and isinstance(value, str):
        if value in question.options:
            return question.options.index(value)
    return value


def free_text_points(text: str, max_points: float) -> float:
    """
    Partial credit for a free-text answer of the given text.

    Args:
        text: Submitted text (untrimmed)
        max_points: Points the question is worth

    Returns:
        0 for answers of 50 characters or fewer, otherwise two points per
        full 50 characters, capped at max_points
    """
    length = len(text)
    if length <= FREE_TEXT_CHARS_PER_STEP:
        return 0
    return min(max_points, (length // FREE_TEXT_CHARS_PER_STEP) * FREE_TEXT_POINTS_PER_STEP)


class ScoringEngine:
    """
    Scores answers by dispatching on the question variant.

    Scoring is pure: the same question and value always give the same
    ScoredAnswer, and a missing answer scores like a wrong one.
    """

    def __init__(self):
        self._scorers: Dict[QuestionVariant, Callable[[Question, Any], ScoredAnswer]] = {
            QuestionVariant.SINGLE_CHOICE: self._score_exact,
            QuestionVariant.TRUE_FALSE: self._score_exact,
            QuestionVariant.FREE_TEXT: self._score_free_text,
        }

    def score(self, question: Question, answer: Any = None) -> ScoredAnswer:
        """
        Score one answer.

        Args:
            question: The question answered
            answer: An Answer record, a raw submitted value, or None if unanswered

        Returns:
            Points earned and correctness flag
        """
        value = answer_value(answer)
        scored = self._scorers[question.variant](question, value)
        logger.debug(
            f"Scored {question.id} ({question.variant.value}): "
            f"{scored.points_earned}/{question.points}"
        )
        return scored

    def score_all(
        self,
        questions: Iterable[Question],
        answers: Optional[Mapping[str, Any]] = None
    ) -> List[ScoredAnswer]:
        """
        Score every question, in order.

        Args:
            questions: Questions to score
            answers: Answers (records or raw values) keyed by question id

        Returns:
            One ScoredAnswer per question
        """
        answers = answers or {}
        return [self.score(question, answers.get(question.id)) for question in questions]

    @staticmethod
    def _score_exact(question: Question, value: Any) -> ScoredAnswer:
        value = normalize_value(question, value)
        # bool is an int subclass; True must never match option index 1
        if question.variant is QuestionVariant.SINGLE_CHOICE:
            is_correct = (
                isinstance(value, int)
                and not isinstance(value, bool)
                and value == question.correct_answer
            )
        else:
            is_correct = isinstance(value, bool) and value is question.correct_answer

        return ScoredAnswer(
            question_id=question.id,
            points_earned=question.points if is_correct else 0,
            is_correct=is_correct
        )

    @staticmethod
    def _score_free_text(question: Question, value: Any) -> ScoredAnswer:
        text = value if isinstance(value, str) else ""
        earned = free_text_points(text, question.points)
        return ScoredAnswer(
            question_id=question.id,
            points_earned=earned,
            is_correct=len(text) > FREE_TEXT_CHARS_PER_STEP
            and earned >= FREE_TEXT_PASS_RATIO * question.points
        )
