"""Percentage to letter grade mapping and the pass/fail predicate.

Only the 6-band scale below is used, for every finalization path. A percentage
gets the letter of the first band whose lower bound it reaches, scanning from
the highest band down.
"""
from typing import List, Tuple

LETTER_BANDS: List[Tuple[float, str]] = [
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
    (50.0, "E"),
]
FAILING_LETTER = "F"


def letter_grade(percentage: float) -> str:
    for lower_bound, letter in LETTER_BANDS:
        if percentage >= lower_bound:
            return letter
    return FAILING_LETTER


def percentage_of(score: float, max_score: float) -> float:
    if max_score <= 0:
        raise ValueError("max_score must be positive")
    # Multiply first: 57 * 100 / 100 is exact where 57 / 100 * 100 is not
    return score * 100 / max_score


def is_passing(score: float, passing_grade: float) -> bool:
    """Absolute rule: the raw score is compared with the exam's passing points."""
    return score >= passing_grade
