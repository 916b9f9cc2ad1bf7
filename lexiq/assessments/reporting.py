"""
Result Aggregation

Turns a completed session's scored answers into the final Result: overall
totals plus independent breakdowns by section, category and difficulty,
feedback tier, recommendations and a per-question review.
"""

import math
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from lexiq.assessments.models import (
    BreakdownEntry, Difficulty, FeedbackTier, Question, Result, ReviewItem, ScoredAnswer
)
from lexiq.assessments.scoring import ScoringEngine, answer_value
from lexiq.common.logger import log_execution_time

logger = logging.getLogger(__name__)

DEFAULT_PASS_THRESHOLD = 70.0
EXCELLENT_PERCENT = 90
VERY_GOOD_PERCENT = 80
FUNDAMENTALS_PERCENT = 60
WEAK_CATEGORY_PERCENT = 60
WEAK_HARD_TIER_PERCENT = 50


def round_percent(value: float) -> int:
    """Round a percentage half up, so 62.5 reports as 63."""
    return int(math.floor(value + 0.5))


def feedback_tier(percentage: int, pass_threshold: float = DEFAULT_PASS_THRESHOLD) -> FeedbackTier:
    """
    Pick the feedback band for an overall percentage.

    Anything below the pass threshold needs review; above it the band is
    excellent from 90, very good from 80, and plain passed otherwise.
    """
    if percentage < pass_threshold:
        return FeedbackTier.NEEDS_REVIEW
    if percentage >= EXCELLENT_PERCENT:
        return FeedbackTier.EXCELLENT
    if percentage >= VERY_GOOD_PERCENT:
        return FeedbackTier.VERY_GOOD
    return FeedbackTier.PASSED


def build_recommendations(
    percentage: float,
    by_category: Mapping[str, BreakdownEntry],
    by_difficulty: Mapping[str, BreakdownEntry]
) -> List[str]:
    """Study recommendations derived from the overall score and weak groups."""
    recommendations = []

    if percentage < FUNDAMENTALS_PERCENT:
        recommendations.append("Review the fundamental material before retaking the assessment")
    elif percentage < VERY_GOOD_PERCENT:
        recommendations.append("Good performance; deepen your knowledge of the more advanced topics")
    else:
        recommendations.append("Excellent performance; you have a firm command of the material")

    for category, stats in by_category.items():
        if stats.total and stats.accuracy < WEAK_CATEGORY_PERCENT:
            recommendations.append(f"Study the topic further: {category}")

    hard_tiers = [by_difficulty[d.value] for d in (Difficulty.HARD, Difficulty.EXPERT)
                  if d.value in by_difficulty]
    hard_total = sum(stats.total for stats in hard_tiers)
    hard_correct = sum(stats.correct for stats in hard_tiers)
    if hard_total and (hard_correct / hard_total) * 100 < WEAK_HARD_TIER_PERCENT:
        recommendations.append("Practice more questions at the higher difficulty levels")

    return recommendations


class AggregationReporter:
    """
    Builds Results from scored answers.

    The percentage is point-weighted (earned / total points), which equals
    plain accuracy whenever every question is worth one point.
    """

    def __init__(
        self,
        scoring_engine: Optional[ScoringEngine] = None,
        pass_threshold_percent: float = DEFAULT_PASS_THRESHOLD
    ):
        """
        Initialize the reporter.

        Args:
            scoring_engine: Used to score questions that have no ScoredAnswer
            pass_threshold_percent: Percentage needed to pass
        """
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.pass_threshold_percent = pass_threshold_percent

    @log_execution_time(logger)
    def summarize(
        self,
        questions: Sequence[Question],
        scored_answers: Union[Iterable[ScoredAnswer], Mapping[str, ScoredAnswer]],
        answers: Optional[Mapping[str, Any]] = None,
        time_spent_seconds: Optional[int] = None,
        flagged: Iterable[str] = ()
    ) -> Result:
        """
        Aggregate scored answers into a Result.

        Args:
            questions: The session's questions, in session order
            scored_answers: ScoredAnswers (list or mapping by question id);
                questions without one are scored as unanswered
            answers: Submitted answers by question id, for the review and
                the answered count
            time_spent_seconds: Elapsed time to report
            flagged: Ids of questions flagged for review

        Returns:
            The Result; identical inputs always give an identical Result
        """
        if isinstance(scored_answers, Mapping):
            scored_by_id = dict(scored_answers)
        else:
            scored_by_id = {scored.question_id: scored for scored in scored_answers}
        answers = answers or {}

        earned_points: float = 0
        total_points: float = 0
        correct_count = 0
        objective_count = 0
        answered_count = 0
        by_section: Dict[str, BreakdownEntry] = {}
        by_category: Dict[str, BreakdownEntry] = {}
        by_difficulty: Dict[str, BreakdownEntry] = {}
        review: List[ReviewItem] = []

        for question in questions:
            scored = scored_by_id.get(question.id)
            if scored is None:
                scored = self.scoring_engine.score(question, None)

            earned_points += scored.points_earned
            total_points += question.points
            # Essays are scored on points only; the counts cover objective questions
            if question.variant.is_objective:
                objective_count += 1
                if scored.is_correct:
                    correct_count += 1

            by_section.setdefault(question.section, BreakdownEntry()).add(scored, question.points)
            by_category.setdefault(question.category, BreakdownEntry()).add(scored, question.points)
            by_difficulty.setdefault(question.difficulty.value, BreakdownEntry()).add(
                scored, question.points
            )

            submitted = answer_value(answers.get(question.id))
            if submitted is not None:
                answered_count += 1

            review.append(ReviewItem(
                question_id=question.id,
                prompt=question.prompt,
                submitted=submitted,
                correct_answer=question.correct_answer,
                points_earned=scored.points_earned,
                max_points=question.points,
                is_correct=scored.is_correct,
                explanation=question.explanation
            ))

        # Difficulty groups are reported easiest first
        by_difficulty = {
            key: by_difficulty[key]
            for key in sorted(by_difficulty, key=lambda value: Difficulty(value).to_numeric())
        }

        percentage = round_percent(earned_points / total_points * 100) if total_points else 0
        flagged_ids = {question_id for question_id in flagged}

        result = Result(
            earned_points=earned_points,
            total_points=total_points,
            percentage=percentage,
            correct_count=correct_count,
            wrong_count=objective_count - correct_count,
            answered_count=answered_count,
            total_questions=len(questions),
            by_section=by_section,
            by_category=by_category,
            by_difficulty=by_difficulty,
            passed=percentage >= self.pass_threshold_percent,
            feedback_tier=feedback_tier(percentage, self.pass_threshold_percent),
            recommendations=tuple(build_recommendations(percentage, by_category, by_difficulty)),
            time_spent_seconds=time_spent_seconds,
            flagged=tuple(question.id for question in questions if question.id in flagged_ids),
            review=tuple(review)
        )

        logger.debug(
            f"Summarized {result.total_questions} questions: "
            f"{result.earned_points}/{result.total_points} ({result.percentage}%)"
        )
        return result
