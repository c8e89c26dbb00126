# app/domain/common/identity.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.domain.common.types import Role
from app.domain.common.validation import is_host, is_player, is_presenter


@dataclass(frozen=True)
class ConnIdentity:
    """
    One transport connection as the domain sees it.
    conn_id is opaque and stable for the life of the socket.
    """
    conn_id: str
    ip: str = ""


def role_of(room, conn_id: str) -> Optional[Role]:
    if is_host(room, conn_id):
        return "host"
    if is_player(room, conn_id):
        return "player"
    if is_presenter(room, conn_id):
        return "presenter"
    return None
