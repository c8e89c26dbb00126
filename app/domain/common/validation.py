# app/domain/common/validation.py
from __future__ import annotations

from app.domain.common.errors import InvalidState, Unauthorized
from app.domain.common.fsm import can_transition_to
from app.domain.common.types import RoomPhase
from app.store.models import RoomStore


def is_host(room: RoomStore, conn_id: str) -> bool:
    return room.host is not None and room.host == conn_id


def is_player(room: RoomStore, conn_id: str) -> bool:
    return conn_id in room.players


def is_presenter(room: RoomStore, conn_id: str) -> bool:
    return conn_id in room.presenters


def require_host(room: RoomStore, conn_id: str) -> None:
    if not is_host(room, conn_id):
        raise Unauthorized("Only the host can do that")


def require_transition(room: RoomStore, target: RoomPhase, message: str) -> None:
    if not can_transition_to(room.phase, target):
        raise InvalidState(message)
