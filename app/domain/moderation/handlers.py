# app/domain/moderation/handlers.py
from __future__ import annotations

import logging
from typing import List, Tuple

from app.domain.common.errors import ValidationFailed
from app.domain.common.events import Targeted, only
from app.domain.common.identity import ConnIdentity
from app.domain.common.validation import require_host
from app.domain.game.rounds import remove_player
from app.services.moderation import new_request_id
from app.store.models import BanRequest
from app.transport.protocols import (
    InKickPlayer,
    InRequestBan,
    OutBanRequested,
    OutgoingEvent,
    OutKicked,
)
from app.util.timeutil import now_ms, now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[Targeted]]


async def handle_kick_player(*, app, conn: ConnIdentity, msg: InKickPlayer) -> Result:
    """
    Remove a player from the room. The socket stays open; the client
    decides what to show after `kicked`.
    """
    registry = app.state.registry
    room = registry.get(msg.room_code)
    require_host(room, conn.conn_id)

    target = room.players.get(msg.target)
    if target is None:
        raise ValidationFailed("Player not found")

    events = [only([msg.target], OutKicked())]
    events.extend(remove_player(registry, room, msg.target))
    room.last_activity = now_ts()

    logger.info("Player %s kicked from room %s", target.name, room.code)
    return [], events


async def handle_request_ban(*, app, conn: ConnIdentity, msg: InRequestBan) -> Result:
    """Queue a ban for an operator to review; nothing is banned here."""
    registry = app.state.registry
    room = registry.get(msg.room_code)
    require_host(room, conn.conn_id)

    target = room.players.get(msg.target)
    if target is None:
        raise ValidationFailed("Player not found")

    request = BanRequest(
        id=new_request_id(),
        player_name=target.name,
        uuid=target.external_id,
        player_ip=target.ip or "unknown",
        reason=msg.reason,
        requested_by=conn.conn_id,
        room_code=room.code,
        timestamp=now_ms(),
    )
    await app.state.moderation.submit_ban_request(request)

    logger.info("Ban requested for %s in room %s (%s)", target.name, room.code, request.id)
    return [OutBanRequested(target=msg.target, request_id=request.id)], []
