# app/services/questions.py
from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.store.models import QUESTION_ADAPTER, QUESTION_TYPES, Question

logger = logging.getLogger(__name__)

MAX_CUSTOM_QUESTIONS = 500
MAX_TEXT_LENGTH = 5000
MAX_OPTIONS = 10


@dataclass
class CustomSetResult:
    questions: List[Question] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return bool(self.questions)


def _subject_name(subject_id: str) -> str:
    return " ".join(w.capitalize() for w in subject_id.split("-"))


def _format_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        # first loc item is the union tag (the question type); drop it
        loc = ".".join(str(x) for x in err.get("loc", ())[1:])
        msg = err.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


class QuestionBank:
    """
    Question Set Provider.
    Holds the pre-loaded subjects and validates host-uploaded custom sets.
    """

    def __init__(
        self,
        subjects: Optional[Dict[str, List[Question]]] = None,
        *,
        max_questions: int = MAX_CUSTOM_QUESTIONS,
        max_text_length: int = MAX_TEXT_LENGTH,
        max_options: int = MAX_OPTIONS,
    ):
        self.subjects: Dict[str, List[Question]] = dict(subjects or {})
        self.max_questions = max_questions
        self.max_text_length = max_text_length
        self.max_options = max_options

    @classmethod
    def from_directory(cls, questions_dir: str, files_map: str = "question-files.json", **limits: int) -> "QuestionBank":
        """
        Load subjects listed in <questions_dir>/<files_map> ({subject: filename}).
        Unreadable files degrade to a missing subject, invalid entries are skipped.
        """
        base = Path(questions_dir)
        subjects: Dict[str, List[Question]] = {}
        try:
            mapping = json.loads((base / files_map).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not load question file mapping from %s: %s", base / files_map, e)
            return cls(subjects, **limits)

        if not isinstance(mapping, dict):
            logger.warning("Question file mapping %s is not an object", base / files_map)
            return cls(subjects, **limits)

        for subject, filename in mapping.items():
            if not isinstance(filename, str):
                logger.warning("Skipping subject %s: filename must be a string", subject)
                continue
            try:
                raw = json.loads((base / filename).read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Could not load questions for %s: %s", subject, e)
                continue
            loaded: List[Question] = []
            for i, item in enumerate(raw if isinstance(raw, list) else []):
                try:
                    loaded.append(QUESTION_ADAPTER.validate_python(item))
                except ValidationError as e:
                    logger.warning("Skipping %s question %d: %s", subject, i + 1, _format_error(e))
            subjects[subject] = loaded
            logger.info("Loaded %d questions for %s", len(loaded), subject)
        return cls(subjects, **limits)

    # ----------------------------
    # Subjects
    # ----------------------------
    def list_subjects(self) -> List[Dict[str, Any]]:
        return [
            {"id": key, "name": _subject_name(key), "question_count": len(qs)}
            for key, qs in self.subjects.items()
        ]

    def has_subject(self, subject: str) -> bool:
        return subject in self.subjects

    def get_questions(self, subject: str) -> List[Question]:
        return list(self.subjects.get(subject, []))

    # ----------------------------
    # Custom sets
    # ----------------------------
    def _clean(self, s: Any) -> Any:
        if not isinstance(s, str):
            return s
        return html.escape(s, quote=True)[: self.max_text_length]

    def _sanitize(self, q: Dict[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": q["type"],
            "question": self._clean(q["question"]),
            "explanation": self._clean(q.get("explanation") or ""),
        }
        if "options" in q:
            opts = q["options"]
            out["options"] = [self._clean(str(o)) for o in opts][: self.max_options] if isinstance(opts, list) else opts
        if "answer" in q:
            out["answer"] = self._clean(q["answer"])
        return out

    def validate_custom_set(self, raw: Any) -> CustomSetResult:
        """
        Partial acceptance: every valid entry is kept, every invalid entry is
        reported as "Question N: ..." in errors.
        The whole set is refused (no questions) only when it is not a list,
        is too large, or has no valid entry.
        """
        result = CustomSetResult()
        if not isinstance(raw, list):
            result.errors.append("Invalid format: Expected an array of questions")
            return result
        if len(raw) > self.max_questions:
            result.errors.append(f"Too many questions. Maximum is {self.max_questions} questions per set.")
            return result

        for index, q in enumerate(raw, start=1):
            if not isinstance(q, dict) or not q.get("type") or not q.get("question"):
                result.errors.append(f"Question {index}: Missing required fields (type, question)")
                continue
            if q["type"] not in QUESTION_TYPES:
                result.errors.append(f'Question {index}: Invalid type "{q["type"]}"')
                continue
            try:
                result.questions.append(QUESTION_ADAPTER.validate_python(self._sanitize(q)))
            except ValidationError as e:
                result.errors.append(f"Question {index}: {_format_error(e)}")
        return result
