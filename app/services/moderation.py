# app/services/moderation.py
from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.domain.common.types import BanKind
from app.store.models import BanInfo, BanRequest
from app.store.redis_keys import BK
from app.util.timeutil import now_ms

logger = logging.getLogger(__name__)

HOUR_MS = 60 * 60 * 1000


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def normalize_ip(ip: Optional[str]) -> str:
    """Fold IPv4-mapped and IPv6 loopback forms so one ban covers them all."""
    if not ip:
        return ""
    ip = ip.split(",")[0].strip().replace("::ffff:", "")
    if ip == "::1":
        return "127.0.0.1"
    return ip


def _make_ban(
    kind: BanKind,
    value: str,
    reason: str,
    duration_hours: Optional[float],
    player_name: Optional[str],
) -> BanInfo:
    ts = now_ms()
    unban = ts + int(duration_hours * HOUR_MS) if duration_hours and duration_hours > 0 else None
    return BanInfo(
        kind=kind,
        value=value,
        reason=reason or "Prohibited conduct",
        player_name=player_name,
        banned_at=ts,
        unban_date=unban,
    )


class ModerationGate(Protocol):
    async def is_banned(self, kind: BanKind, value: str) -> bool: ...

    async def ban_info(self, kind: BanKind, value: str) -> Optional[BanInfo]: ...

    async def submit_ban_request(self, request: BanRequest) -> None: ...

    async def ban(
        self,
        kind: BanKind,
        value: str,
        reason: str = "",
        *,
        duration_hours: Optional[float] = None,
        player_name: Optional[str] = None,
    ) -> BanInfo: ...

    async def unban(self, kind: BanKind, value: str) -> bool: ...

    async def list_ban_requests(self) -> List[BanRequest]: ...

    async def clear_ban_request(self, request_id: str) -> bool: ...


class MemoryModerationGate:
    """Process-local bans. Expired bans are dropped on lookup."""

    def __init__(self) -> None:
        self._bans: Dict[Tuple[str, str], BanInfo] = {}
        self._requests: Dict[str, BanRequest] = {}

    async def ban_info(self, kind: BanKind, value: str) -> Optional[BanInfo]:
        info = self._bans.get((kind, value))
        if info is None:
            return None
        if info.expired(now_ms()):
            self._bans.pop((kind, value), None)
            return None
        return info

    async def is_banned(self, kind: BanKind, value: str) -> bool:
        return await self.ban_info(kind, value) is not None

    async def ban(self, kind, value, reason="", *, duration_hours=None, player_name=None) -> BanInfo:
        info = _make_ban(kind, value, reason, duration_hours, player_name)
        self._bans[(kind, value)] = info
        return info

    async def unban(self, kind: BanKind, value: str) -> bool:
        return self._bans.pop((kind, value), None) is not None

    async def submit_ban_request(self, request: BanRequest) -> None:
        self._requests[request.id] = request

    async def list_ban_requests(self) -> List[BanRequest]:
        return sorted(self._requests.values(), key=lambda r: r.timestamp)

    async def clear_ban_request(self, request_id: str) -> bool:
        return self._requests.pop(request_id, None) is not None


class RedisModerationGate:
    """
    Bans live in Redis as JSON strings and expire via PEXPIREAT at unban_date.
    Lookups that fail on Redis errors degrade to "not banned".
    """

    def __init__(self, r: Redis, keys: BK = BK()):
        self.r = r
        self.keys = keys

    def _dec(self, x):
        if x is None:
            return None
        if isinstance(x, bytes):
            return x.decode("utf-8")
        return x

    async def ban_info(self, kind: BanKind, value: str) -> Optional[BanInfo]:
        try:
            raw = await self.r.get(self.keys.ban(kind, value))
        except RedisError as e:
            logger.warning("Ban lookup failed for %s %s: %s", kind, value, e)
            return None
        if not raw:
            return None
        try:
            info = BanInfo.model_validate_json(self._dec(raw))
        except ValidationError as e:
            logger.warning("Unreadable ban record for %s %s: %s", kind, value, e)
            return None
        # key expiry is the source of truth; this covers clock skew
        if info.expired(now_ms()):
            return None
        return info

    async def is_banned(self, kind: BanKind, value: str) -> bool:
        return await self.ban_info(kind, value) is not None

    async def ban(self, kind, value, reason="", *, duration_hours=None, player_name=None) -> BanInfo:
        info = _make_ban(kind, value, reason, duration_hours, player_name)
        key = self.keys.ban(kind, value)
        pipe = self.r.pipeline()
        pipe.set(key, info.model_dump_json())
        if info.unban_date is not None:
            pipe.pexpireat(key, info.unban_date)
        await pipe.execute()
        return info

    async def unban(self, kind: BanKind, value: str) -> bool:
        return bool(await self.r.delete(self.keys.ban(kind, value)))

    async def submit_ban_request(self, request: BanRequest) -> None:
        try:
            await self.r.hset(self.keys.ban_requests(), request.id, request.model_dump_json())
        except RedisError as e:
            logger.warning("Could not store ban request %s: %s", request.id, e)

    async def list_ban_requests(self) -> List[BanRequest]:
        data = await self.r.hgetall(self.keys.ban_requests())
        out = [BanRequest.model_validate_json(self._dec(raw)) for raw in data.values()]
        out.sort(key=lambda r: r.timestamp)
        return out

    async def clear_ban_request(self, request_id: str) -> bool:
        return bool(await self.r.hdel(self.keys.ban_requests(), request_id))
