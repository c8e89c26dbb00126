# app/domain/game/handlers_answer.py
from __future__ import annotations

import logging
from typing import List, Tuple

from app.domain.common.errors import InvalidState, NoActiveQuestion, Unauthorized
from app.domain.common.events import Targeted, to_host, to_room
from app.domain.common.identity import ConnIdentity
from app.domain.common.validation import is_player
from app.domain.game.rounds import answer_stats_event, player_list_event, reveal_events
from app.domain.helpers.questions import check_answer, normalize_answer
from app.domain.helpers.scoring import calculate_score
from app.store.models import AnswerStore
from app.transport.protocols import (
    InSubmitAnswer,
    OutAnswerSubmitted,
    OutgoingEvent,
    OutPlayerAnswered,
)
from app.util.timeutil import monotonic_ns, now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[Targeted]]


async def handle_submit_answer(*, app, conn: ConnIdentity, msg: InSubmitAnswer) -> Result:
    """
    One answer per player per question; a second one is rejected.
    Score is fixed here from the answers already in the room, so a later
    reveal only reports it.
    """
    room = app.state.registry.get(msg.room_code)
    if not is_player(room, conn.conn_id):
        raise Unauthorized("Only players in this room can answer")

    question = room.current_question
    if question is None:
        raise NoActiveQuestion()
    if room.revealed:
        raise InvalidState("Answers are closed for this question")
    if conn.conn_id in room.answers:
        raise InvalidState("Answer already submitted for this question")

    value = normalize_answer(question, msg.answer)
    player = room.players[conn.conn_id]
    answer = AnswerStore(
        conn_id=conn.conn_id,
        name=player.name,
        value=value,
        correct=check_answer(question, value),
        submitted_at=monotonic_ns(),
    )
    room.answers[conn.conn_id] = answer
    answer.score = calculate_score(list(room.answers.values()), answer)
    player.score += answer.score
    room.last_activity = now_ts()

    logger.info("Player %s answered in room %s", player.name, room.code)

    to_room_events: List[Targeted] = [
        to_host(
            room,
            OutPlayerAnswered(
                conn_id=conn.conn_id,
                name=player.name,
                answer=value,
                correct=answer.correct,
                score=answer.score,
            ),
        ),
        to_room(room, answer_stats_event(room)),
        to_room(room, player_list_event(room)),
    ]

    if room.all_answered():
        to_room_events.extend(reveal_events(room))

    return [OutAnswerSubmitted()], to_room_events
