from __future__ import annotations

from typing import Any, Dict, Optional

from app.domain.common.errors import ValidationFailed
from app.domain.common.types import FLASHCARD_VIEWED
from app.store.models import (
    DecisionQuestion,
    FlashcardQuestion,
    MultiSelectQuestion,
    OpenTextQuestion,
    Question,
    SingleChoiceQuestion,
)

MAX_TEXT_ANSWER = 500


def _unknown(question: Any) -> ValueError:
    return ValueError(f"Unsupported question kind: {type(question).__name__}")


def _is_index(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def public_question(question: Question) -> Dict[str, Any]:
    """Question as players and presenters may see it before the reveal."""
    if isinstance(question, (SingleChoiceQuestion, MultiSelectQuestion, FlashcardQuestion, OpenTextQuestion)):
        return question.model_dump(exclude={"answer"})
    if isinstance(question, DecisionQuestion):
        return question.model_dump()
    raise _unknown(question)


def host_question(question: Question) -> Dict[str, Any]:
    return question.model_dump()


def normalize_answer(question: Question, value: Any) -> Any:
    """
    Check the submitted value has the shape this kind expects.
    Returns the value to store; raises ValidationFailed otherwise.
    """
    if isinstance(question, SingleChoiceQuestion) or isinstance(question, DecisionQuestion):
        if not _is_index(value) or not 0 <= value < len(question.options):
            raise ValidationFailed("Answer must be a valid option index")
        return value
    if isinstance(question, MultiSelectQuestion):
        if not isinstance(value, list) or not all(_is_index(v) for v in value):
            raise ValidationFailed("Answer must be a list of option indices")
        if any(not 0 <= v < len(question.options) for v in value):
            raise ValidationFailed("Answer contains an invalid option index")
        return value
    if isinstance(question, OpenTextQuestion):
        if not isinstance(value, str) or not value.strip():
            raise ValidationFailed("Answer must be non-empty text")
        return value.strip()[:MAX_TEXT_ANSWER]
    if isinstance(question, FlashcardQuestion):
        return FLASHCARD_VIEWED
    raise _unknown(question)


def check_answer(question: Question, value: Any) -> Optional[bool]:
    """True/False for kinds with a right answer, None for the rest."""
    if isinstance(question, SingleChoiceQuestion):
        return value == question.answer
    if isinstance(question, MultiSelectQuestion):
        return isinstance(value, list) and set(value) == set(question.answer) and len(set(value)) == len(value)
    if isinstance(question, (OpenTextQuestion, FlashcardQuestion, DecisionQuestion)):
        return None
    raise _unknown(question)


def reveal_payload(question: Question) -> Dict[str, Any]:
    """correct_answer + explanation as disclosed on reveal."""
    if isinstance(question, SingleChoiceQuestion):
        correct: Any = question.answer
    elif isinstance(question, MultiSelectQuestion):
        correct = sorted(question.answer)
    elif isinstance(question, (OpenTextQuestion, FlashcardQuestion)):
        correct = question.answer
    elif isinstance(question, DecisionQuestion):
        correct = None
    else:
        raise _unknown(question)
    return {"correct_answer": correct, "explanation": question.explanation}
