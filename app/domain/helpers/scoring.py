from __future__ import annotations

from typing import Sequence

from app.store.models import AnswerStore

MAX_SCORE = 1000
SCORE_STEP = 100
MIN_SCORE = 100


def score_for_position(position: int) -> int:
    return max(MIN_SCORE, MAX_SCORE - position * SCORE_STEP)


def calculate_score(answers: Sequence[AnswerStore], target: AnswerStore) -> int:
    """
    Rank-based speed score.
    Correct answers are ordered by submitted_at (stable, so equal timestamps
    keep input order) and the target scores by its 0-based position:
    1000, 900, 800 ... floored at 100. Anything not correct scores 0.
    """
    if target.correct is not True:
        return 0

    ranked = sorted((a for a in answers if a.correct is True), key=lambda a: a.submitted_at)
    for position, a in enumerate(ranked):
        if a is target:
            return score_for_position(position)
    return 0
