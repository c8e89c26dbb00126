# app/domain/game/handlers_end.py
from __future__ import annotations

import logging
from typing import List, Tuple

from app.domain.common.events import Targeted, to_room
from app.domain.common.identity import ConnIdentity
from app.domain.common.validation import require_host, require_transition
from app.domain.game.rounds import finish_game
from app.transport.protocols import InEndGame, InEndRoom, OutgoingEvent, OutRoomClosed
from app.util.timeutil import now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[Targeted]]


async def handle_end_game(*, app, conn: ConnIdentity, msg: InEndGame) -> Result:
    """End the current game but keep the room and its players for another one."""
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)
    require_transition(room, "ENDED", "No game is running")

    room.last_activity = now_ts()
    logger.info("Game ended in room %s (room still active)", room.code)
    return [], finish_game(room, "Game ended by host. Waiting for next game...")


async def handle_end_room(*, app, conn: ConnIdentity, msg: InEndRoom) -> Result:
    registry = app.state.registry
    room = registry.get(msg.room_code)
    require_host(room, conn.conn_id)

    # recipients resolved before the room is gone
    events = [to_room(room, OutRoomClosed())]
    registry.destroy_room(room.code)
    logger.info("Room %s closed by host", room.code)
    return [], events
