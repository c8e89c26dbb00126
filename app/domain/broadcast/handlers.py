# app/domain/broadcast/handlers.py
from __future__ import annotations

from typing import List, Tuple

from app.domain.common.events import Targeted, only, to_players, to_presenters
from app.domain.common.identity import ConnIdentity
from app.domain.common.validation import require_host
from app.transport.protocols import (
    InBroadcastMessage,
    InBroadcastPresenter,
    InBroadcastTargeted,
    OutgoingEvent,
    OutHostMessage,
    OutPresenterMessage,
)

Result = Tuple[List[OutgoingEvent], List[Targeted]]


async def handle_broadcast_message(*, app, conn: ConnIdentity, msg: InBroadcastMessage) -> Result:
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)
    return [], [to_players(room, OutHostMessage(message=msg.message))]


async def handle_broadcast_targeted(*, app, conn: ConnIdentity, msg: InBroadcastTargeted) -> Result:
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)
    # unknown or departed ids are dropped silently
    targets = [t for t in dict.fromkeys(msg.targets) if t in room.players]
    return [], [only(targets, OutHostMessage(message=msg.message))]


async def handle_broadcast_presenter(*, app, conn: ConnIdentity, msg: InBroadcastPresenter) -> Result:
    room = app.state.registry.get(msg.room_code)
    require_host(room, conn.conn_id)
    return [], [to_presenters(room, OutPresenterMessage(message=msg.message))]
