"""
Tests for question bank validation.

This module contains tests for the QuestionBankValidator, focusing on:
1. Normalization of authoring formats (aliases, camelCase, metadata)
2. Per-variant rules
3. Reporting of every violation in a bank
"""

import pytest

from lexiq.assessments.models import Difficulty, QuestionVariant
from lexiq.assessments.validation import QuestionBankValidator, validate_bank
from lexiq.common.exceptions import ValidationError


def _single_choice(**overrides):
    record = {
        "id": "sc",
        "variant": "single-choice",
        "category": "General",
        "difficulty": "easy",
        "prompt": "Pick one",
        "options": ["a", "b", "c"],
        "correct_answer": 1,
    }
    record.update(overrides)
    return record


def test_valid_bank_is_normalized(bank):
    """Aliases, camelCase keys and defaults resolve to canonical questions."""
    assert [q.id for q in bank] == ["q1", "q2", "q3", "q4"]

    first = bank[0]
    assert first.variant is QuestionVariant.SINGLE_CHOICE
    assert first.prompt.startswith("Which element")
    assert first.correct_answer == 0
    assert first.options[0] == "Offer and acceptance"
    assert first.metadata == {"legal_source": "Civil Code, art. 1"}

    assert bank[1].variant is QuestionVariant.TRUE_FALSE
    assert bank[1].correct_answer is False
    assert bank[1].options == ()

    essay = bank[3]
    assert essay.variant is QuestionVariant.FREE_TEXT
    assert essay.difficulty is Difficulty.EXPERT
    assert essay.points == 10
    assert isinstance(essay.points, int)
    assert essay.time_estimate_minutes == 15
    assert essay.correct_answer is None
    assert essay.metadata["key_points"] == ["defect", "causation"]


def test_section_defaults_to_general():
    """A record without a section is filed under General."""
    questions = validate_bank([_single_choice()])
    assert questions[0].section == "General"
    assert questions[0].points == 1


def test_correct_answer_given_as_option_text():
    """A single-choice answer may name the option instead of indexing it."""
    questions = validate_bank([_single_choice(correct_answer="c")])
    assert questions[0].correct_answer == 2


def test_true_false_tokens():
    """True-false answers accept booleans and true/false strings."""
    questions = validate_bank([
        {"id": "t1", "type": "true-false", "category": "c", "difficulty": "easy",
         "prompt": "p", "correct_answer": "TRUE"},
        {"id": "t2", "type": "true_false", "category": "c", "difficulty": "easy",
         "prompt": "p", "correct_answer": False},
    ])
    assert questions[0].correct_answer is True
    assert questions[1].correct_answer is False


def test_empty_bank_rejected():
    """A bank without questions cannot be used."""
    with pytest.raises(ValidationError) as exc_info:
        validate_bank([])
    assert "empty" in str(exc_info.value)


def test_non_sequence_rejected():
    """A single mapping or a string is not a bank."""
    with pytest.raises(ValidationError):
        validate_bank(_single_choice())
    with pytest.raises(ValidationError):
        validate_bank("not a bank")


@pytest.mark.parametrize("correct_answer", [3, -1, True, "z", None])
def test_single_choice_answer_must_be_valid_index(correct_answer):
    """Out-of-range, boolean and unknown answers are rejected."""
    with pytest.raises(ValidationError) as exc_info:
        validate_bank([_single_choice(correct_answer=correct_answer)])
    assert "not a valid option index" in str(exc_info.value)


def test_single_choice_needs_two_options():
    with pytest.raises(ValidationError) as exc_info:
        validate_bank([_single_choice(options=["only"], correct_answer=0)])
    assert "at least 2 options" in str(exc_info.value)


def test_free_text_requires_points_and_estimate():
    """Free-text questions must declare points and a time estimate."""
    with pytest.raises(ValidationError) as exc_info:
        validate_bank([{
            "id": "e1", "type": "essay", "category": "c",
            "difficulty": "hard", "prompt": "Discuss."
        }])

    violations = exc_info.value.violations
    assert len(violations) == 2
    assert any("points" in v for v in violations)
    assert any("time_estimate_minutes" in v for v in violations)


def test_options_only_on_single_choice():
    with pytest.raises(ValidationError) as exc_info:
        validate_bank([{
            "id": "t1", "type": "true-false", "category": "c", "difficulty": "easy",
            "prompt": "p", "correct_answer": True, "options": ["yes", "no"]
        }])
    assert "only allowed on single-choice" in str(exc_info.value)


def test_every_violation_is_reported():
    """Validation collects all problems rather than stopping at the first."""
    raw = [
        _single_choice(id="a"),
        _single_choice(id="a"),
        _single_choice(id="b", difficulty="impossible"),
        _single_choice(id="c", variant="matching"),
        _single_choice(id="d", points=0),
        {"variant": "single-choice"},
        "not a record",
    ]

    with pytest.raises(ValidationError) as exc_info:
        QuestionBankValidator().validate(raw)

    error = exc_info.value
    text = str(error)
    assert "duplicate id" in text
    assert "unknown difficulty" in text
    assert "unknown variant" in text
    assert "points must be positive" in text
    assert "question[6]: record must be a mapping" in text
    # The id-less record reports each missing field
    assert sum(1 for v in error.violations if v.startswith("question[5]")) >= 4
    assert error.errors[0] == error.violations[0]


@pytest.mark.parametrize("first,second", [
    ({"id": "a"}, {"id": "a", "points": 0}),
    ({"id": "a", "points": 0}, {"id": "a"}),
    ({"id": "a", "difficulty": "impossible"}, {"id": " a ", "points": -1}),
])
def test_duplicate_id_reported_for_invalid_records(first, second):
    """A repeated id is listed even when either record fails other checks."""
    with pytest.raises(ValidationError) as exc_info:
        QuestionBankValidator().validate([_single_choice(**first), _single_choice(**second)])

    violations = exc_info.value.violations
    assert any("question[1] 'a': duplicate id (first used by question[0])" in v
               for v in violations)
    assert len([v for v in violations if "duplicate id" in v]) == 1


def test_blank_fields_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_bank([_single_choice(prompt="   ")])
    assert "prompt" in str(exc_info.value)
