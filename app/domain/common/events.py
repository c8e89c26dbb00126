# app/domain/common/events.py
from __future__ import annotations

"""
Role-scoped fan-out.
Handlers resolve recipients against the room *at emit time* and hand the
transport a list of Targeted events; the transport only knows conn ids.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List

from app.store.models import RoomStore


@dataclass
class Targeted:
    event: Any  # OutgoingEvent
    targets: List[str] = field(default_factory=list)


def only(targets: Iterable[str], event) -> Targeted:
    return Targeted(event=event, targets=list(targets))


def to_room(room: RoomStore, event, *, exclude: Iterable[str] = ()) -> Targeted:
    skip = set(exclude)
    return Targeted(event=event, targets=[c for c in room.members() if c not in skip])


def to_players(room: RoomStore, event) -> Targeted:
    return Targeted(event=event, targets=list(room.players.keys()))


def to_presenters(room: RoomStore, event) -> Targeted:
    return Targeted(event=event, targets=list(room.presenters))


def to_host(room: RoomStore, event) -> Targeted:
    return Targeted(event=event, targets=[room.host] if room.host else [])


def to_audience(room: RoomStore, event) -> Targeted:
    """Players + presenters (everyone except the host)."""
    return Targeted(event=event, targets=[c for c in room.members() if c != room.host])
