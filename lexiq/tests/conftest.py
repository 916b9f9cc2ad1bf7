"""
Shared fixtures for the assessment engine tests.

ManualScheduler stands in for the threading scheduler so countdown and
autosave behavior can be driven tick by tick without sleeping.
"""

import heapq
import itertools
from typing import Any, Callable, List, Tuple

import pytest

from lexiq.assessments.validation import validate_bank
from lexiq.common.scheduling import ScheduledCall, Scheduler


class ManualScheduler(Scheduler):
    """Fake clock; callbacks run only when advance() passes their due time."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._order = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        call = ScheduledCall(self._now + max(0.0, delay), callback, args)
        heapq.heappush(self._queue, (call.when, next(self._order), call))
        return call

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running due callbacks in time order."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, call = heapq.heappop(self._queue)
            self._now = max(self._now, when)
            call.run()
        self._now = target

    @property
    def pending(self) -> int:
        """Number of scheduled calls that have not run or been cancelled."""
        return sum(1 for _, _, call in self._queue if not (call.cancelled or call.done))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def raw_bank():
    """A small mixed bank in the authoring format banks are written in."""
    return [
        {
            "id": "q1",
            "type": "multiple-choice",
            "section": "Contracts",
            "category": "Formation",
            "difficulty": "easy",
            "question": "Which element is required to form a contract?",
            "options": ["Offer and acceptance", "A witness", "A notary", "A deposit"],
            "correctAnswer": 0,
            "explanation": "A contract is formed by offer and acceptance.",
            "legalSource": "Civil Code, art. 1",
        },
        {
            "id": "q2",
            "type": "true-false",
            "section": "Contracts",
            "category": "Formation",
            "difficulty": "medium",
            "question": "A verbal agreement can never be binding.",
            "correctAnswer": False,
        },
        {
            "id": "q3",
            "type": "multiple-choice",
            "section": "Torts",
            "category": "Liability",
            "difficulty": "hard",
            "question": "Which is not an element of negligence?",
            "options": ["Duty", "Breach", "Intent", "Damage"],
            "correctAnswer": 2,
        },
        {
            "id": "q4",
            "type": "essay",
            "section": "Torts",
            "category": "Liability",
            "difficulty": "expert",
            "question": "Discuss strict liability for defective products.",
            "points": 10,
            "timeEstimate": 15,
            "keyPoints": ["defect", "causation"],
        },
    ]


@pytest.fixture
def bank(raw_bank):
    return validate_bank(raw_bank)


@pytest.fixture
def objective_bank():
    """Thirteen one-point questions across two sections."""
    raw = []
    for i in range(13):
        raw.append({
            "id": f"o{i}",
            "variant": "true-false" if i % 2 else "single-choice",
            "section": "Part A" if i < 7 else "Part B",
            "category": "Basics" if i % 3 else "Procedure",
            "difficulty": ["easy", "medium", "hard"][i % 3],
            "prompt": f"Objective question {i}",
            "options": None if i % 2 else ["a", "b", "c"],
            "correct_answer": True if i % 2 else 1,
        })
    return validate_bank(raw)
