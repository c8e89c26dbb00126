# app/transport/dispatcher.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from app.domain.broadcast.handlers import (
    handle_broadcast_message,
    handle_broadcast_presenter,
    handle_broadcast_targeted,
)
from app.domain.common.errors import Banned, QuizError
from app.domain.common.events import Targeted
from app.domain.common.identity import ConnIdentity
from app.domain.game import (
    handle_end_game,
    handle_end_room,
    handle_list_subjects,
    handle_next_question,
    handle_reveal_answer,
    handle_set_custom_questions,
    handle_set_subject,
    handle_start_game,
    handle_submit_answer,
)
from app.domain.lifecycle.handlers import (
    handle_clap,
    handle_create_room,
    handle_disconnect,
    handle_join,
    handle_leave,
    handle_presenter_join,
)
from app.domain.moderation.handlers import handle_kick_player, handle_request_ban
from app.transport.protocols import OutBanned, OutError, OutgoingEvent, parse_incoming

logger = logging.getLogger(__name__)

Delivery = Tuple[Dict[str, Any], List[str]]
DispatchResult = Tuple[List[Dict[str, Any]], List[Delivery]]
# (to_sender_events, to_room_deliveries); each event is a JSON dict,
# each delivery pairs one event with the conn ids that should get it

_ROUTES = {
    "create_room": handle_create_room,
    "list_subjects": handle_list_subjects,
    "set_subject": handle_set_subject,
    "set_custom_questions": handle_set_custom_questions,
    "start_game": handle_start_game,
    "next_question": handle_next_question,
    "reveal_answer": handle_reveal_answer,
    "end_game": handle_end_game,
    "end_room": handle_end_room,
    "kick_player": handle_kick_player,
    "broadcast_message": handle_broadcast_message,
    "broadcast_targeted": handle_broadcast_targeted,
    "broadcast_presenter": handle_broadcast_presenter,
    "request_ban": handle_request_ban,
    "join": handle_join,
    "submit_answer": handle_submit_answer,
    "leave": handle_leave,
    "presenter_join": handle_presenter_join,
    "clap": handle_clap,
}


async def dispatch_message(
    *,
    app,
    conn: ConnIdentity,
    raw: Dict[str, Any],
) -> DispatchResult:
    """
    Transport layer calls this.
    - Parses + validates raw JSON
    - Routes to the correct domain handler
    - Turns domain errors into an `error` (or `banned`) event for the caller only

    NOTE: This file contains NO game rules.
    """
    try:
        msg = parse_incoming(raw)
    except (ValidationError, ValueError) as e:
        err = OutError(code="BAD_MESSAGE", message=str(e)).model_dump()
        return [err], []

    handler = _ROUTES.get(msg.type)
    if handler is None:
        # If protocol exists but we didn't route it yet:
        err = OutError(code="NOT_IMPLEMENTED", message=f"Handler not implemented for type={msg.type}").model_dump()
        return [err], []

    try:
        to_sender, to_room = await handler(app=app, conn=conn, msg=msg)
    except Banned as e:
        banned = OutBanned(kind=e.kind, message=e.message, **e.info)
        return [banned.model_dump()], []
    except QuizError as e:
        err = OutError(code=e.code, message=e.message, errors=getattr(e, "errors", []))
        return [err.model_dump()], []
    except Exception:
        logger.exception("Unhandled error while handling %s from %s", msg.type, conn.conn_id)
        err = OutError(code="INTERNAL_ERROR", message="Something went wrong")
        return [err.model_dump()], []

    return _dump(to_sender), _dump_targeted(to_room)


async def dispatch_disconnect(*, app, conn: ConnIdentity) -> DispatchResult:
    """Socket went away: run the same cleanup a leave would, for whichever room it was in."""
    try:
        to_sender, to_room = await handle_disconnect(app=app, conn=conn)
    except QuizError as e:
        logger.warning("Disconnect cleanup for %s failed: %s", conn.conn_id, e.message)
        return [], []
    return _dump(to_sender), _dump_targeted(to_room)


def _dump(events: List[OutgoingEvent]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts.
    """
    return [e.model_dump() for e in events]


def _dump_targeted(events: List[Targeted]) -> List[Delivery]:
    return [(t.event.model_dump(), list(t.targets)) for t in events if t.targets]
