# app/transport/ws_manager.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass
class Conn:
    conn_id: str
    ws: WebSocket
    ip: str = ""


class WSManager:
    """
    In-memory connection registry.
    - conn_id -> websocket
    Transport-only: no domain rules. Rooms resolve recipients; this only delivers.
    """
    def __init__(self) -> None:
        self._conns: Dict[str, Conn] = {}
        self._lock = asyncio.Lock()

    async def add(self, conn_id: str, ws: WebSocket, ip: str = "") -> None:
        async with self._lock:
            self._conns[conn_id] = Conn(conn_id=conn_id, ws=ws, ip=ip)

    async def remove(self, conn_id: str) -> None:
        async with self._lock:
            self._conns.pop(conn_id, None)

    async def get(self, conn_id: str) -> Optional[Conn]:
        async with self._lock:
            return self._conns.get(conn_id)

    async def send_to(self, conn_id: str, event: dict) -> bool:
        conn = await self.get(conn_id)
        if conn is None:
            return False
        try:
            await conn.ws.send_json(event)
        except Exception as e:
            # dead socket; its own receive loop cleans up
            logger.debug("Send to %s failed: %s", conn_id, e)
            return False
        return True

    async def send_many(self, conn_ids: Iterable[str], event: dict) -> None:
        # copy conns under lock, send outside lock
        async with self._lock:
            conns = [self._conns[c] for c in conn_ids if c in self._conns]

        for c in conns:
            try:
                await c.ws.send_json(event)
            except Exception as e:
                logger.debug("Send to %s failed: %s", c.conn_id, e)

    async def close(self, conn_id: str, code: int = 4000) -> None:
        """
        Close a specific websocket and remove it from the registry.
        """
        conn = await self.get(conn_id)
        if conn is None:
            return
        try:
            await conn.ws.close(code=code)
        except Exception as e:
            logger.debug("Close of %s failed: %s", conn_id, e)
        await self.remove(conn_id)

    async def find_by_ip(self, ip: str) -> List[str]:
        async with self._lock:
            return [c.conn_id for c in self._conns.values() if ip and c.ip == ip]
