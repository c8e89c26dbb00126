# app/domain/game/handlers_subject.py
from __future__ import annotations

import logging
from typing import List, Tuple

from app.domain.common.errors import InvalidState, ValidationFailed
from app.domain.common.events import Targeted, to_presenters
from app.domain.common.identity import ConnIdentity
from app.domain.common.types import CUSTOM_SUBJECT
from app.domain.common.validation import require_host
from app.store.models import Question, RoomStore
from app.transport.protocols import (
    InListSubjects,
    InSetCustomQuestions,
    InSetSubject,
    OutgoingEvent,
    OutSubjectChanged,
    OutSubjectInfo,
    OutSubjects,
)
from app.util.timeutil import now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[Targeted]]


def _swap_questions(room: RoomStore, subject: str, questions: List[Question]) -> None:
    if room.phase == "RUNNING":
        raise InvalidState("Cannot change questions while a game is running")
    room.subject = subject
    room.questions = list(questions)
    room.question_index = -1
    room.current_question = None
    room.answers = {}
    room.revealed = False
    room.last_activity = now_ts()


async def handle_list_subjects(*, app, conn: ConnIdentity, msg: InListSubjects) -> Result:
    return [OutSubjects(subjects=app.state.questions.list_subjects())], []


async def handle_set_subject(*, app, conn: ConnIdentity, msg: InSetSubject) -> Result:
    bank = app.state.questions
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)

    if not bank.has_subject(msg.subject):
        raise ValidationFailed(f"Invalid subject: {msg.subject}")

    _swap_questions(room, msg.subject, bank.get_questions(msg.subject))
    logger.info("Room %s subject changed to %s", room.code, msg.subject)

    count = len(room.questions)
    return (
        [OutSubjectChanged(subject=room.subject, question_count=count)],
        [to_presenters(room, OutSubjectInfo(subject=room.subject, question_count=count))],
    )


async def handle_set_custom_questions(*, app, conn: ConnIdentity, msg: InSetCustomQuestions) -> Result:
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)
    if room.phase == "RUNNING":
        raise InvalidState("Cannot change questions while a game is running")

    checked = app.state.questions.validate_custom_set(msg.questions)
    if not checked.valid:
        raise ValidationFailed("; ".join(checked.errors) or "Invalid questions array", checked.errors)

    _swap_questions(room, CUSTOM_SUBJECT, checked.questions)
    logger.info("Room %s loaded %d custom questions (%d rejected)", room.code, len(checked.questions), len(checked.errors))

    count = len(room.questions)
    return (
        [OutSubjectChanged(subject=CUSTOM_SUBJECT, question_count=count, warnings=checked.errors)],
        [to_presenters(room, OutSubjectInfo(subject=CUSTOM_SUBJECT, question_count=count))],
    )
