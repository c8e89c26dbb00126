# app/domain/common/fsm.py
from __future__ import annotations

from app.domain.common.types import RoomPhase


def can_transition_to(current: RoomPhase, target: RoomPhase) -> bool:
    """
    Validate room lifecycle transitions.
    CLOSED is not a phase: a closed room is simply gone from the registry.
    """
    transitions: dict[RoomPhase, list[RoomPhase]] = {
        "LOBBY": ["RUNNING"],
        "RUNNING": ["ENDED"],
        "ENDED": ["RUNNING"],
    }
    return target in transitions.get(current, [])
