"""Quiz scoring."""

import math
from collections.abc import Mapping, Sequence

from pydantic import BaseModel

from learnsphere.models.content import QuizQuestion


class QuizScore(BaseModel):
    score_percent: int
    correct_count: int
    total_questions: int


def _normalize(text: str) -> str:
    return " ".join(text.split()).casefold()


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def all_answered(questions: Sequence[QuizQuestion], answers: Mapping[int, str]) -> bool:
    """True when every question index has a selected option."""
    return all(i in answers for i in range(len(questions)))


def score_quiz(
    questions: Sequence[QuizQuestion],
    answers: Mapping[int, str],
    *,
    normalize: bool = False,
) -> QuizScore:
    """Score submitted answers against the answer key.

    Args:
        questions: Ordered questions, each carrying its correct option.
        answers: Question index -> selected option string.
        normalize: Compare case-folded, whitespace-collapsed strings instead
            of exact matches.

    Returns:
        QuizScore with a 0-100 integer percentage.
    """
    correct = 0
    for index, question in enumerate(questions):
        selected = answers.get(index)
        if selected is None:
            continue
        if normalize:
            hit = _normalize(selected) == _normalize(question.answer)
        else:
            hit = selected == question.answer
        if hit:
            correct += 1

    total = len(questions)
    percent = _round_half_up(correct / total * 100) if total else 0
    return QuizScore(score_percent=percent, correct_count=correct, total_questions=total)
