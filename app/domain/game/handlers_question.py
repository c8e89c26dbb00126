# app/domain/game/handlers_question.py
from __future__ import annotations

import logging
from typing import List, Tuple

from app.domain.common.errors import InvalidState, NoActiveQuestion
from app.domain.common.events import Targeted
from app.domain.common.identity import ConnIdentity
from app.domain.common.validation import require_host
from app.domain.game.rounds import finish_game, load_question, question_events, reveal_events
from app.transport.protocols import InNextQuestion, InRevealAnswer, OutgoingEvent
from app.util.timeutil import now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[Targeted]]


async def handle_next_question(*, app, conn: ConnIdentity, msg: InNextQuestion) -> Result:
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)

    if room.phase == "ENDED":
        raise InvalidState("Game has ended. Cannot load more questions.")
    if room.phase == "LOBBY":
        raise InvalidState("Game has not started")

    room.last_activity = now_ts()
    index = room.question_index + 1
    if index >= len(room.questions):
        room.question_index = index
        logger.info("Room %s ran out of questions", room.code)
        return [], finish_game(room, "No more questions!")

    load_question(room, index)
    logger.info("Room %s: question %d sent", room.code, index + 1)
    return [], question_events(room)


async def handle_reveal_answer(*, app, conn: ConnIdentity, msg: InRevealAnswer) -> Result:
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)

    if room.current_question is None:
        raise NoActiveQuestion()

    room.last_activity = now_ts()
    logger.info("Host revealed answer in room %s", room.code)
    return [], reveal_events(room)
