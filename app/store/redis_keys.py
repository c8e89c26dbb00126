# app/store/redis_keys.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BK:
    """
    Redis key builder for the moderation store.
    Bans are plain STRING keys holding JSON so they can expire on their own.
    """
    prefix: str = "quiz"

    def ban(self, kind: str, value: str) -> str:
        return f"{self.prefix}:ban:{kind}:{value}"  # STRING BanInfo JSON (+ PEXPIREAT)

    def ban_requests(self) -> str:
        return f"{self.prefix}:ban_requests"  # HASH request_id -> BanRequest JSON
