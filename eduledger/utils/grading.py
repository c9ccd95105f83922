# eduledger/utils/grading.py
"""Percentage and letter-grade banding."""
from typing import Iterable, Optional

# Inclusive lower bounds, evaluated from the top
GRADE_LADDER = (
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
    (30, "D"),
)
FAILING_GRADE = "F"
NO_GRADE = "N/A"


def compute_percentage(obtained_marks: float, max_marks: float) -> float:
    if max_marks <= 0:
        raise ValueError("max_marks must be greater than zero")
    return obtained_marks * 100 / max_marks


def letter_grade_for(percentage: float) -> str:
    for lower_bound, letter in GRADE_LADDER:
        if percentage >= lower_bound:
            return letter
    return FAILING_GRADE


def mean_percentage(percentages: Iterable[float]) -> Optional[float]:
    values = list(percentages)
    if not values:
        return None
    return sum(values) / len(values)
