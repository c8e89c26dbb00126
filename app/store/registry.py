# app/store/registry.py
from __future__ import annotations

import logging
import random
import string
from typing import Dict, Iterable, List, Optional

from app.domain.common.errors import RoomNotFound
from app.store.models import Question, RoomStore
from app.util.timeutil import now_ts

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def _gen_room_code(n: int = CODE_LENGTH) -> str:
    return "".join(random.choice(CODE_ALPHABET) for _ in range(n))


class RoomRegistry:
    """
    Owns every live room of this process.
    - code -> RoomStore
    - conn_id -> code (membership index; one live room per connection)
    Only create/destroy mutate the code table.
    """

    def __init__(self, *, default_subject: str = "general", default_questions: Iterable[Question] = ()):
        self._rooms: Dict[str, RoomStore] = {}
        self._membership: Dict[str, str] = {}
        self.default_subject = default_subject
        self.default_questions: List[Question] = list(default_questions)

    # ----------------------------
    # Rooms
    # ----------------------------
    def new_code(self) -> str:
        code = _gen_room_code()
        while self.exists(code):
            code = _gen_room_code()
        return code

    def create_room(self, host: Optional[str] = None) -> RoomStore:
        ts = now_ts()
        code = self.new_code()
        room = RoomStore(
            code=code,
            subject=self.default_subject,
            questions=list(self.default_questions),
            question_index=-1,
            created_at=ts,
            last_activity=ts,
        )
        self._rooms[code] = room
        if host is not None:
            self.bind_host(code, host)
        logger.info("Room %s created", code)
        return room

    def bind_host(self, code: str, conn_id: str) -> RoomStore:
        room = self.get(code)
        room.host = conn_id
        self.attach(conn_id, code)
        return room

    def destroy_room(self, code: str) -> RoomStore:
        room = self._rooms.pop(code, None)
        if room is None:
            raise RoomNotFound(code)
        for conn_id in room.members():
            if self._membership.get(conn_id) == code:
                self._membership.pop(conn_id, None)
        logger.info("Room %s destroyed", code)
        return room

    def get(self, code: str) -> RoomStore:
        room = self._rooms.get(code)
        if room is None:
            raise RoomNotFound(code)
        return room

    def exists(self, code: str) -> bool:
        return code in self._rooms

    def rooms(self) -> List[RoomStore]:
        return list(self._rooms.values())

    def __len__(self) -> int:
        return len(self._rooms)

    # ----------------------------
    # Membership
    # ----------------------------
    def attach(self, conn_id: str, code: str) -> None:
        self._membership[conn_id] = code

    def detach(self, conn_id: str) -> None:
        self._membership.pop(conn_id, None)

    def room_of(self, conn_id: str) -> Optional[RoomStore]:
        code = self._membership.get(conn_id)
        if code is None:
            return None
        room = self._rooms.get(code)
        if room is None:
            # room went away underneath the binding
            self._membership.pop(conn_id, None)
        return room
