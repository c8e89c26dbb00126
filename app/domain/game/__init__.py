from __future__ import annotations

from .handlers import (
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
