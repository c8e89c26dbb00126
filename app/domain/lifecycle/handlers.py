# app/domain/lifecycle/handlers.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from app.domain.common.errors import Banned, InvalidState, Unauthorized, ValidationFailed
from app.domain.common.events import Targeted, to_room
from app.domain.common.identity import ConnIdentity, role_of
from app.domain.game.rounds import answer_stats_event, new_question_event, player_list_event, remove_player
from app.domain.helpers.questions import reveal_payload
from app.services.moderation import ModerationGate
from app.store.models import BanInfo, PlayerStore, RoomStore
from app.store.registry import RoomRegistry
from app.transport.protocols import (
    InClap,
    InCreateRoom,
    InJoin,
    InLeave,
    InPresenterJoin,
    OutClapUpdate,
    OutgoingEvent,
    OutHostDisconnected,
    OutPresenterJoined,
    OutRevealAnswer,
    OutRoomCreated,
    OutRoomJoined,
    OutSubjectInfo,
)
from app.util.timeutil import now_ts

logger = logging.getLogger(__name__)

# Returns: (to_sender, to_room)
Result = Tuple[List[OutgoingEvent], List[Targeted]]


def _banned(info: BanInfo) -> Banned:
    return Banned(
        "You have been banned from this service",
        kind=info.kind,
        info={"reason": info.reason, "banned_at": info.banned_at, "unban_date": info.unban_date},
    )


def _require_free(registry: RoomRegistry, conn_id: str) -> None:
    if registry.room_of(conn_id) is not None:
        raise InvalidState("Already in a room. Leave it first.")


def _depart(registry: RoomRegistry, room: RoomStore, conn_id: str) -> List[Targeted]:
    """
    Take one connection out of a room.
    The host going away closes the room for everybody else.
    """
    role = role_of(room, conn_id)
    if role == "host":
        events = [to_room(room, OutHostDisconnected(), exclude=[conn_id])]
        registry.destroy_room(room.code)
        logger.info("Host left room %s; room closed", room.code)
        return events

    if role == "player":
        name = room.players[conn_id].name
        events = remove_player(registry, room, conn_id)
        room.last_activity = now_ts()
        logger.info("Player %s left room %s", name, room.code)
        return events

    if role == "presenter":
        room.presenters.remove(conn_id)
        registry.detach(conn_id)
        return []

    registry.detach(conn_id)
    return []


# -------------------------
# Handlers
# -------------------------

async def handle_create_room(*, app, conn: ConnIdentity, msg: InCreateRoom) -> Result:
    """
    The creating connection becomes the host.
    Codes are generated server-side and never reused while live.
    """
    registry = app.state.registry
    _require_free(registry, conn.conn_id)

    room = registry.create_room(host=conn.conn_id)
    return [OutRoomCreated(room_code=room.code)], []


async def handle_join(*, app, conn: ConnIdentity, msg: InJoin) -> Result:
    """
    Join as a player:
    - moderation first (nothing is touched for a banned caller)
    - then room lookup, name checks, insert
    - joiner gets the question in progress, if any
    """
    gate: ModerationGate = app.state.moderation

    # awaited before the room is resolved; nothing below yields
    if msg.external_id:
        info = await gate.ban_info("uuid", msg.external_id)
        if info is not None:
            raise _banned(info)
    if conn.ip:
        info = await gate.ban_info("ip", conn.ip)
        if info is not None:
            raise _banned(info)

    registry = app.state.registry
    room = registry.get(msg.room_code)
    _require_free(registry, conn.conn_id)

    name = msg.name.strip()
    if not name:
        raise ValidationFailed("Name is required")
    if not app.state.word_filter.is_appropriate(name):
        raise ValidationFailed("Please choose an appropriate name")

    ts = now_ts()
    room.players[conn.conn_id] = PlayerStore(
        conn_id=conn.conn_id,
        name=name,
        external_id=msg.external_id,
        ip=conn.ip,
        joined_at=ts,
    )
    registry.attach(conn.conn_id, room.code)
    room.last_activity = ts
    logger.info("Player %s joined room %s", name, room.code)

    to_sender: List[OutgoingEvent] = [OutRoomJoined(room_code=room.code, name=name)]
    if room.current_question is not None:
        to_sender.append(new_question_event(room))

    return to_sender, [to_room(room, player_list_event(room))]


async def handle_presenter_join(*, app, conn: ConnIdentity, msg: InPresenterJoin) -> Result:
    """Presenter screens need no host approval; they only mirror the room."""
    registry = app.state.registry
    room = registry.get(msg.room_code)
    _require_free(registry, conn.conn_id)

    room.presenters.append(conn.conn_id)
    registry.attach(conn.conn_id, room.code)

    to_sender: List[OutgoingEvent] = [
        OutPresenterJoined(room_code=room.code),
        player_list_event(room),
        OutSubjectInfo(subject=room.subject, question_count=len(room.questions)),
    ]

    q = room.current_question
    if q is not None:
        to_sender.append(new_question_event(room))
        to_sender.append(answer_stats_event(room))
        if room.revealed or room.all_answered():
            to_sender.append(OutRevealAnswer(**reveal_payload(q)))

    return to_sender, []


async def handle_leave(*, app, conn: ConnIdentity, msg: InLeave) -> Result:
    registry = app.state.registry
    room = registry.get(msg.room_code)
    if role_of(room, conn.conn_id) is None:
        raise Unauthorized("You are not in this room")
    return [], _depart(registry, room, conn.conn_id)


async def handle_disconnect(*, app, conn: ConnIdentity) -> Result:
    """
    Called by transport when the socket goes away.
    Mirrors leave for whatever room the connection was in.
    """
    registry = app.state.registry
    room: Optional[RoomStore] = registry.room_of(conn.conn_id)
    if room is None:
        return [], []
    return [], _depart(registry, room, conn.conn_id)


async def handle_clap(*, app, conn: ConnIdentity, msg: InClap) -> Result:
    room = app.state.registry.get(msg.room_code)
    room.clap_count += 1
    return [], [to_room(room, OutClapUpdate(total_claps=room.clap_count))]
