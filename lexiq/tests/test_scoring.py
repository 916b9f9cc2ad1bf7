"""
Tests for the scoring engine.

This module contains tests for ScoringEngine, focusing on:
1. Exact scoring of objective variants
2. The length-based free-text rule and its boundaries
3. Answer normalization
"""

import pytest

from lexiq.assessments.models import Answer, Difficulty, Question, QuestionVariant
from lexiq.assessments.scoring import ScoringEngine, free_text_points


@pytest.fixture
def engine():
    return ScoringEngine()


@pytest.fixture
def choice():
    return Question(
        id="c1", variant=QuestionVariant.SINGLE_CHOICE, category="c",
        difficulty=Difficulty.EASY, prompt="Pick", options=("x", "y", "z"),
        correct_answer=1, points=2
    )


@pytest.fixture
def true_false():
    return Question(
        id="t1", variant=QuestionVariant.TRUE_FALSE, category="c",
        difficulty=Difficulty.EASY, prompt="True?", correct_answer=False
    )


def _essay(points):
    return Question(
        id="e1", variant=QuestionVariant.FREE_TEXT, category="c",
        difficulty=Difficulty.HARD, prompt="Discuss", points=points,
        time_estimate_minutes=10
    )


def test_single_choice_exact(engine, choice):
    """Only the correct index earns the question's points."""
    assert engine.score(choice, 1).points_earned == 2
    assert engine.score(choice, 1).is_correct
    assert engine.score(choice, 0).points_earned == 0
    assert not engine.score(choice, 0).is_correct


def test_single_choice_never_matches_bool(engine, choice):
    """True is not option index 1."""
    scored = engine.score(choice, True)
    assert not scored.is_correct
    assert scored.points_earned == 0


def test_single_choice_option_text(engine, choice):
    """An option's text counts as its index."""
    assert engine.score(choice, "y").is_correct
    assert not engine.score(choice, "z").is_correct


def test_true_false(engine, true_false):
    assert engine.score(true_false, False).is_correct
    assert engine.score(true_false, "false").is_correct
    assert engine.score(true_false, " False ").is_correct
    assert not engine.score(true_false, True).is_correct
    # 0 is falsy but not a boolean answer
    assert not engine.score(true_false, 0).is_correct


def test_missing_answer_scores_zero(engine, choice, true_false):
    """Unanswered questions score as wrong, not as errors."""
    for question in (choice, true_false, _essay(10)):
        scored = engine.score(question, None)
        assert scored.points_earned == 0
        assert not scored.is_correct


def test_answer_records_are_unwrapped(engine, choice):
    assert engine.score(choice, Answer("c1", 1)).is_correct


@pytest.mark.parametrize("length,expected", [
    (0, 0),
    (50, 0),
    (51, 2),
    (99, 2),
    (100, 4),
    (149, 4),
    (150, 6),
    (250, 10),
    (1000, 10),
])
def test_free_text_points_boundaries(length, expected):
    """Two points per full 50 characters, nothing at 50 or below, capped."""
    assert free_text_points("x" * length, 10) == expected


def test_free_text_correctness_threshold(engine):
    """A free-text answer is correct from 60% of the question's points."""
    question = _essay(10)

    at_four = engine.score(question, "x" * 100)
    assert at_four.points_earned == 4
    assert not at_four.is_correct

    at_six = engine.score(question, "x" * 150)
    assert at_six.points_earned == 6
    assert at_six.is_correct


def test_free_text_short_is_never_correct(engine):
    """Even a one-point question needs more than 50 characters."""
    question = _essay(1)
    assert not engine.score(question, "x" * 50).is_correct
    scored = engine.score(question, "x" * 51)
    assert scored.points_earned == 1
    assert scored.is_correct


def test_free_text_ignores_content(engine):
    """Scoring only looks at length; whitespace counts."""
    question = _essay(4)
    assert engine.score(question, " " * 120).points_earned == 4


def test_free_text_non_string_treated_as_empty(engine):
    assert engine.score(_essay(4), 12345).points_earned == 0


def test_score_all_keeps_order(engine, choice, true_false):
    scored = engine.score_all([true_false, choice], {"c1": 1})
    assert [s.question_id for s in scored] == ["t1", "c1"]
    assert [s.is_correct for s in scored] == [False, True]


def test_scoring_is_pure(engine, choice):
    """The same input always gives the same output."""
    assert engine.score(choice, 1) == engine.score(choice, 1)
