# app/domain/common/types.py
from __future__ import annotations

from typing import Literal

RoomPhase = Literal["LOBBY", "RUNNING", "ENDED"]
Role = Literal["host", "player", "presenter"]
BanKind = Literal["ip", "uuid"]

CUSTOM_SUBJECT = "custom"
FLASHCARD_VIEWED = "viewed"
