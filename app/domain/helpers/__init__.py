from __future__ import annotations

from .questions import check_answer, normalize_answer, public_question, reveal_payload
from .scoring import calculate_score

__all__ = [
    "calculate_score",
    "check_answer",
    "normalize_answer",
    "public_question",
    "reveal_payload",
]
