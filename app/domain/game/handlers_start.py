# app/domain/game/handlers_start.py
from __future__ import annotations

import logging
from typing import List, Tuple

from app.domain.common.errors import InvalidState
from app.domain.common.events import Targeted, to_room
from app.domain.common.identity import ConnIdentity
from app.domain.common.validation import require_host, require_transition
from app.domain.game.rounds import load_question, player_list_event, question_events
from app.transport.protocols import InStartGame, OutGameStarted, OutgoingEvent
from app.util.timeutil import now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[Targeted]]


async def handle_start_game(*, app, conn: ConnIdentity, msg: InStartGame) -> Result:
    """
    Starting *is* showing question 1: there is no armed-but-empty state.
    Works from the lobby and again after a game has ended.
    """
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)
    require_transition(room, "RUNNING", "Game is already running")
    if not room.questions:
        raise InvalidState("No questions loaded for this room")

    room.game_started = True
    room.game_ended = False
    room.clap_count = 0
    for p in room.players.values():
        p.score = 0
    load_question(room, 0)
    room.last_activity = now_ts()

    logger.info("Game started in room %s (%d questions)", room.code, len(room.questions))

    to_room_events = [
        to_room(room, OutGameStarted()),
        to_room(room, player_list_event(room)),
        *question_events(room),
    ]
    return [], to_room_events
