# app/transport/ws.py
from __future__ import annotations

import ipaddress
import json
import logging
import uuid
from typing import Any, Dict, List
from urllib.parse import urlparse

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.domain.common.identity import ConnIdentity
from app.services.moderation import normalize_ip
from app.settings import Settings
from app.transport.dispatcher import Delivery, dispatch_disconnect, dispatch_message
from app.transport.protocols import OutBanned, OutError, OutHello

logger = logging.getLogger(__name__)

router = APIRouter()

WS_CLOSE_BANNED = 4003


def _is_private_ip(host: str) -> bool:
    """Return True if host is a private IP (192.168.x.x, 10.x.x.x, 172.16-31.x.x)."""
    try:
        ip = ipaddress.ip_address(host)
        return ip.is_private
    except ValueError:
        return False


async def _check_origin_or_close(websocket: WebSocket, settings: Settings) -> bool:
    allowed = {o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()}

    origin = websocket.headers.get("origin")
    if origin is not None:
        if origin in allowed:
            return True
        if settings.WS_ALLOW_LAN_ORIGINS:
            o = urlparse(origin)
            host = o.hostname or ""
            port = o.port
            if _is_private_ip(host) and port == 5173:
                return True
            await websocket.close(code=1008)
            return False
        await websocket.close(code=1008)
        return False
    return True


def _client_ip(websocket: WebSocket, settings: Settings) -> str:
    if settings.TRUST_FORWARDED_FOR:
        forwarded = websocket.headers.get("x-forwarded-for")
        if forwarded:
            return normalize_ip(forwarded)
    client = websocket.client
    return normalize_ip(client.host if client else "")


async def _deliver(wsman, deliveries: List[Delivery]) -> None:
    for payload, targets in deliveries:
        await wsman.send_many(targets, payload)


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
    app = websocket.app
    settings: Settings = app.state.settings
    if not await _check_origin_or_close(websocket, settings):
        return

    await websocket.accept()

    conn = ConnIdentity(conn_id=uuid.uuid4().hex[:12], ip=_client_ip(websocket, settings))

    info = await app.state.moderation.ban_info("ip", conn.ip) if conn.ip else None
    if info is not None:
        logger.info("Refused banned address %s", conn.ip)
        banned = OutBanned(
            kind="ip",
            message="You have been banned from this service",
            reason=info.reason,
            banned_at=info.banned_at,
            unban_date=info.unban_date,
        )
        await websocket.send_json(banned.model_dump())
        await websocket.close(code=WS_CLOSE_BANNED)
        return

    wsman = app.state.wsman
    await wsman.add(conn.conn_id, websocket, ip=conn.ip)
    await websocket.send_json(OutHello(conn_id=conn.conn_id).model_dump())

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            text = message.get("text")
            if text is None:
                err = OutError(code="BAD_MESSAGE", message="Binary frames are not supported")
                await websocket.send_json(err.model_dump())
                continue
            try:
                raw: Dict[str, Any] = json.loads(text)
            except ValueError:
                err = OutError(code="BAD_MESSAGE", message="Message is not valid JSON")
                await websocket.send_json(err.model_dump())
                continue

            to_sender, to_room = await dispatch_message(app=app, conn=conn, raw=raw)

            # unicast
            for e in to_sender:
                await websocket.send_json(e)

            # role-scoped fan-out
            await _deliver(wsman, to_room)

            if any(e.get("type") == "banned" for e in to_sender):
                await websocket.close(code=WS_CLOSE_BANNED)
                break

    except WebSocketDisconnect:
        pass

    finally:
        await wsman.remove(conn.conn_id)
        _, to_room = await dispatch_disconnect(app=app, conn=conn)
        await _deliver(wsman, to_room)

