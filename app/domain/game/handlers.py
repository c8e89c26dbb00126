# app/domain/game/handlers.py
from __future__ import annotations

from app.domain.game.handlers_answer import handle_submit_answer
from app.domain.game.handlers_end import handle_end_game, handle_end_room
from app.domain.game.handlers_question import handle_next_question, handle_reveal_answer
from app.domain.game.handlers_start import handle_start_game
from app.domain.game.handlers_subject import (
    handle_list_subjects,
    handle_set_custom_questions,
    handle_set_subject,
)

__all__ = [
    "handle_list_subjects",
    "handle_set_subject",
    "handle_set_custom_questions",
    "handle_start_game",
    "handle_next_question",
    "handle_reveal_answer",
    "handle_submit_answer",
    "handle_end_game",
    "handle_end_room",
]
