# app/transport/admin.py
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, Field

from app.domain.common.errors import RoomNotFound
from app.domain.common.identity import ConnIdentity
from app.domain.common.types import BanKind
from app.services.moderation import normalize_ip
from app.transport.dispatcher import dispatch_disconnect
from app.transport.protocols import OutBanned, OutRoomClosed
from app.transport.ws import WS_CLOSE_BANNED

logger = logging.getLogger(__name__)


async def require_admin(request: Request, x_admin_token: Optional[str] = Header(default=None)) -> None:
    token = request.app.state.settings.ADMIN_TOKEN
    if token and x_admin_token != token:
        raise HTTPException(status_code=401, detail="Invalid admin token")


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


class BanCreate(BaseModel):
    kind: BanKind
    value: str = Field(min_length=1, max_length=128)
    reason: str = Field(default="", max_length=500)
    duration_hours: Optional[float] = Field(default=None, gt=0)
    player_name: Optional[str] = None


@router.get("/rooms")
async def list_rooms(request: Request):
    """
    List all active rooms (debug/admin).
    """
    registry = request.app.state.registry
    rooms = []
    for room in sorted(registry.rooms(), key=lambda r: r.created_at):
        rooms.append(
            {
                "room_code": room.code,
                "phase": room.phase,
                "subject": room.subject,
                "players": len(room.players),
                "presenters": len(room.presenters),
                "question_number": room.question_index + 1,
                "total_questions": len(room.questions),
                "claps": room.clap_count,
                "created_at": room.created_at,
                "last_activity": room.last_activity,
            }
        )
    return {"rooms": rooms}


@router.post("/rooms/{room_code}/close")
async def close_room(room_code: str, request: Request):
    """
    Force close a room. Members are told, their sockets stay open.
    """
    registry = request.app.state.registry
    wsman = request.app.state.wsman

    try:
        room = registry.destroy_room(room_code)
    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")

    event = OutRoomClosed(message="Room has been closed by an administrator")
    await wsman.send_many(room.members(), event.model_dump())
    logger.info("Room %s closed by admin", room_code)
    return {"ok": True, "room_code": room_code}


@router.get("/ban-requests")
async def list_ban_requests(request: Request):
    requests = await request.app.state.moderation.list_ban_requests()
    return {"requests": [r.model_dump() for r in requests]}


@router.delete("/ban-requests/{request_id}")
async def clear_ban_request(request_id: str, request: Request):
    if not await request.app.state.moderation.clear_ban_request(request_id):
        raise HTTPException(status_code=404, detail="Ban request not found")
    return {"ok": True}


async def _connections_for(app, kind: BanKind, value: str) -> List[str]:
    if kind == "ip":
        return await app.state.wsman.find_by_ip(value)
    return [
        p.conn_id
        for room in app.state.registry.rooms()
        for p in room.players.values()
        if p.external_id == value
    ]


@router.post("/bans")
async def create_ban(body: BanCreate, request: Request):
    """
    Ban an address or a client id, then drop every live connection it matches.
    """
    app = request.app
    wsman = app.state.wsman
    value = normalize_ip(body.value) if body.kind == "ip" else body.value

    info = await app.state.moderation.ban(
        body.kind,
        value,
        body.reason,
        duration_hours=body.duration_hours,
        player_name=body.player_name,
    )

    evicted = await _connections_for(app, body.kind, value)
    banned = OutBanned(
        kind=body.kind,
        message="You have been banned from this service",
        reason=info.reason,
        banned_at=info.banned_at,
        unban_date=info.unban_date,
    ).model_dump()
    for conn_id in evicted:
        conn = await wsman.get(conn_id)
        _, deliveries = await dispatch_disconnect(app=app, conn=ConnIdentity(conn_id=conn_id, ip=conn.ip if conn else ""))
        for payload, targets in deliveries:
            await wsman.send_many(targets, payload)
        await wsman.send_to(conn_id, banned)
        await wsman.close(conn_id, code=WS_CLOSE_BANNED)

    logger.info("Banned %s %s (%d connections dropped)", body.kind, value, len(evicted))
    return {"ok": True, "ban": info.model_dump(), "evicted": len(evicted)}


@router.delete("/bans/{kind}/{value}")
async def remove_ban(kind: BanKind, value: str, request: Request):
    if kind == "ip":
        value = normalize_ip(value)
    removed = await request.app.state.moderation.unban(kind, value)
    if not removed:
        raise HTTPException(status_code=404, detail="Ban not found")
    logger.info("Unbanned %s %s", kind, value)
    return {"ok": True}
