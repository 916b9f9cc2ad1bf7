"""
Question Bank Validation

Raw question records (parsed from a bundled constant, a file, or an API
response by the caller) are checked and normalized here before any session
may start. Validation fails fast but reports every violation in the bank,
not just the first one.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, validator
from pydantic import ValidationError as PydanticValidationError

from lexiq.assessments.models import Difficulty, Question, QuestionVariant
from lexiq.common.exceptions import ValidationError
from lexiq.common.utils import normalize_keys

# Configure logging
logger = logging.getLogger(__name__)

# Names used by older banks for the same variants
VARIANT_ALIASES = {
    "multiple-choice": QuestionVariant.SINGLE_CHOICE.value,
    "multiple_choice": QuestionVariant.SINGLE_CHOICE.value,
    "single_choice": QuestionVariant.SINGLE_CHOICE.value,
    "true_false": QuestionVariant.TRUE_FALSE.value,
    "essay": QuestionVariant.FREE_TEXT.value,
    "free_text": QuestionVariant.FREE_TEXT.value,
}

# Raw key -> canonical field, applied after camelCase normalization
FIELD_ALIASES = {
    "type": "variant",
    "question": "prompt",
    "text": "prompt",
    "time_estimate": "time_estimate_minutes",
}

TRUE_TOKENS = {"true"}
FALSE_TOKENS = {"false"}


class QuestionRecord(BaseModel):
    """Field-level schema for one raw question record."""
    id: str
    variant: str
    category: str
    difficulty: str
    prompt: str
    section: str = "General"
    options: Optional[List[str]] = None
    correct_answer: Any = None
    points: Optional[float] = None
    explanation: str = ""
    time_estimate_minutes: Optional[float] = None

    @validator('id', 'category', 'prompt', 'section')
    def validate_not_blank(cls, v):
        """Strip text fields and reject blank ones"""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @validator('variant', pre=True)
    def validate_variant(cls, v):
        """Resolve variant aliases"""
        value = str(v).strip().lower()
        value = VARIANT_ALIASES.get(value, value)
        valid = [variant.value for variant in QuestionVariant]
        if value not in valid:
            raise ValueError(f"unknown variant '{v}', expected one of {valid}")
        return value

    @validator('difficulty', pre=True)
    def validate_difficulty(cls, v):
        """Validate difficulty against the ordered tiers"""
        value = str(v).strip().lower()
        valid = [difficulty.value for difficulty in Difficulty]
        if value not in valid:
            raise ValueError(f"unknown difficulty '{v}', expected one of {valid}")
        return value


RECORD_FIELDS = frozenset([
    "id", "variant", "category", "difficulty", "prompt", "section", "options",
    "correct_answer", "points", "explanation", "time_estimate_minutes"
])


def _whole(value: float) -> Union[int, float]:
    """Keep integral point values as ints so totals read naturally."""
    return int(value) if float(value).is_integer() else value


def _boolean_token(value: Any) -> Optional[bool]:
    """Read a true/false token, or None if the value is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in TRUE_TOKENS:
            return True
        if token in FALSE_TOKENS:
            return False
    return None


class QuestionBankValidator:
    """
    Validates and normalizes a raw question bank.

    Checks performed:
    - the bank is a non-empty sequence of mappings
    - ids are present and unique
    - single-choice questions carry at least two options and a correct
      answer that is a valid index (or the exact text of an option)
    - true-false questions carry a true/false correct answer
    - free-text questions declare points and a time estimate
    - points are positive, and only single-choice questions carry options
    """

    def validate(self, raw_questions: Any) -> List[Question]:
        """
        Validate a raw bank.

        Args:
            raw_questions: Sequence of question mappings

        Returns:
            Validated, immutable questions in bank order

        Raises:
            ValidationError: Enumerating every violation found
        """
        if isinstance(raw_questions, (str, bytes, Mapping)) or not isinstance(raw_questions, Iterable):
            raise ValidationError("Question bank must be a sequence of records",
                                  [f"got {type(raw_questions).__name__}"])

        records = list(raw_questions)
        if not records:
            raise ValidationError("Question bank is empty", ["bank contains no questions"])

        violations: List[str] = []
        questions: List[Question] = []
        seen_ids: Dict[str, int] = {}

        for index, raw in enumerate(records):
            question, problems = self._validate_record(index, raw)
            violations.extend(problems)

            # Invalid records still claim their id
            question_id = question.id if question is not None else self._record_id(raw)
            if question_id is not None:
                if question_id in seen_ids:
                    violations.append(
                        f"question[{index}] '{question_id}': duplicate id "
                        f"(first used by question[{seen_ids[question_id]}])"
                    )
                    continue
                seen_ids[question_id] = index
            if question is not None:
                questions.append(question)

        if violations:
            logger.warning(f"Question bank rejected with {len(violations)} violation(s)")
            raise ValidationError(
                f"{len(violations)} violation(s) in question bank", violations
            )

        logger.info(f"Validated question bank of {len(questions)} questions")
        return questions

    def _validate_record(self, index: int, raw: Any) -> Tuple[Optional[Question], List[str]]:
        """Validate one record, returning the question (if buildable) and its violations."""
        label = f"question[{index}]"
        if not isinstance(raw, Mapping):
            return None, [f"{label}: record must be a mapping, got {type(raw).__name__}"]

        known, metadata = self._split_fields(raw)
        if known.get("id"):
            label = f"{label} '{known['id']}'"

        try:
            record = QuestionRecord(**known)
        except PydanticValidationError as e:
            problems = []
            for error in e.errors():
                location = ".".join(str(part) for part in error.get("loc", ())) or "record"
                problems.append(f"{label}: {location}: {error.get('msg')}")
            return None, problems

        variant = QuestionVariant(record.variant)
        problems: List[str] = []
        correct_answer: Any = None
        options: Tuple[str, ...] = tuple(record.options or ())

        if record.points is not None and record.points <= 0:
            problems.append(f"{label}: points must be positive, got {record.points}")

        if variant is QuestionVariant.SINGLE_CHOICE:
            if len(options) < 2:
                problems.append(f"{label}: single-choice question needs at least 2 options")
            correct_answer = self._option_index(record.correct_answer, options)
            if correct_answer is None:
                problems.append(
                    f"{label}: correct answer {record.correct_answer!r} is not a valid option index"
                )
        else:
            if options:
                problems.append(f"{label}: options are only allowed on single-choice questions")

        if variant is QuestionVariant.TRUE_FALSE:
            correct_answer = _boolean_token(record.correct_answer)
            if correct_answer is None:
                problems.append(
                    f"{label}: true-false correct answer must be true or false, "
                    f"got {record.correct_answer!r}"
                )

        if variant is QuestionVariant.FREE_TEXT:
            if record.points is None:
                problems.append(f"{label}: free-text question must declare points")
            if record.time_estimate_minutes is None:
                problems.append(f"{label}: free-text question must declare time_estimate_minutes")
            elif record.time_estimate_minutes <= 0:
                problems.append(
                    f"{label}: time_estimate_minutes must be positive, "
                    f"got {record.time_estimate_minutes}"
                )

        if problems:
            return None, problems

        question = Question(
            id=record.id,
            variant=variant,
            section=record.section,
            category=record.category,
            difficulty=Difficulty(record.difficulty),
            prompt=record.prompt,
            options=options,
            correct_answer=correct_answer,
            points=_whole(record.points) if record.points is not None else 1,
            explanation=record.explanation,
            time_estimate_minutes=(
                record.time_estimate_minutes if variant is QuestionVariant.FREE_TEXT else None
            ),
            metadata=metadata
        )
        return question, []

    @classmethod
    def _record_id(cls, raw: Any) -> Optional[str]:
        """The stripped id of a raw record, if it has a usable one."""
        if not isinstance(raw, Mapping):
            return None
        value = cls._split_fields(raw)[0].get("id")
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @staticmethod
    def _split_fields(raw: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Separate schema fields from advisory metadata."""
        normalized = normalize_keys(raw)
        known: Dict[str, Any] = {}
        metadata: Dict[str, Any] = dict(normalized.pop("metadata", None) or {})

        for key, value in normalized.items():
            key = FIELD_ALIASES.get(key, key)
            if key in RECORD_FIELDS:
                known.setdefault(key, value)
            else:
                metadata[key] = value
        return known, metadata

    @staticmethod
    def _option_index(value: Any, options: Tuple[str, ...]) -> Optional[int]:
        """Resolve a single-choice correct answer to an option index."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value if 0 <= value < len(options) else None
        if isinstance(value, str) and value in options:
            return options.index(value)
        return None


def validate_bank(raw_questions: Any) -> List[Question]:
    """
    Validate a raw question bank.

    Args:
        raw_questions: Sequence of question mappings

    Returns:
        Validated questions

    Raises:
        ValidationError: If the bank has any violation
    """
    return QuestionBankValidator().validate(raw_questions)
