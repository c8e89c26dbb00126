# app/domain/game/rounds.py
from __future__ import annotations

"""
Shared round mechanics used by several handlers.
Everything here is synchronous: a caller mutates the room and collects the
resulting events without yielding to the event loop in between.
"""

import logging
from typing import List

from app.domain.common.events import Targeted, only, to_audience, to_host, to_players, to_presenters, to_room
from app.domain.helpers.questions import host_question, public_question, reveal_payload
from app.store.models import RoomStore
from app.store.registry import RoomRegistry
from app.transport.protocols import (
    OutAnswerResult,
    OutAnswerStats,
    OutGameEnded,
    OutNewQuestion,
    OutPlayerListUpdated,
    OutRevealAnswer,
    OutRevealAnswerPlayers,
)

logger = logging.getLogger(__name__)


def player_list_event(room: RoomStore) -> OutPlayerListUpdated:
    return OutPlayerListUpdated(players=room.player_list())


def answer_stats_event(room: RoomStore) -> OutAnswerStats:
    # values only: correctness stays private until the reveal
    return OutAnswerStats(
        answered=len(room.answers),
        total=len(room.players),
        answers=[{"conn_id": a.conn_id, "name": a.name, "answer": a.value} for a in room.answers.values()],
    )


def new_question_event(room: RoomStore, *, for_host: bool = False) -> OutNewQuestion:
    q = room.current_question
    return OutNewQuestion(
        question=host_question(q) if for_host else public_question(q),
        question_number=room.question_index + 1,
        total_questions=len(room.questions),
    )


def load_question(room: RoomStore, index: int) -> None:
    room.question_index = index
    room.current_question = room.questions[index]
    room.answers = {}
    room.revealed = False


def question_events(room: RoomStore) -> List[Targeted]:
    """Full question to the host, stripped one to everybody else."""
    return [
        to_host(room, new_question_event(room, for_host=True)),
        to_audience(room, new_question_event(room)),
    ]


def reveal_events(room: RoomStore) -> List[Targeted]:
    """
    Disclose the answer for the current question.
    Safe to repeat: scores were fixed at submission time and are only reported here.
    """
    payload = reveal_payload(room.current_question)
    room.revealed = True

    events = [
        to_presenters(room, OutRevealAnswer(**payload)),
        to_players(room, OutRevealAnswerPlayers(**payload)),
    ]
    for conn_id in room.players:
        answer = room.answers.get(conn_id)
        if answer is None:
            continue
        events.append(
            only(
                [conn_id],
                OutAnswerResult(
                    correct=answer.correct,
                    correct_answer=payload["correct_answer"],
                    explanation=payload["explanation"],
                    score=answer.score,
                ),
            )
        )
    return events


def finish_game(room: RoomStore, message: str) -> List[Targeted]:
    room.game_started = False
    room.game_ended = True
    room.current_question = None
    room.answers = {}
    room.revealed = False
    room.clap_count = 0
    return [to_room(room, OutGameEnded(message=message, final_scores=room.final_scores()))]


def remove_player(registry: RoomRegistry, room: RoomStore, conn_id: str) -> List[Targeted]:
    """
    Drop a player (leave, disconnect or kick) and re-sync the room.
    A pending answer goes with the player, which can complete a round.
    """
    player = room.players.pop(conn_id, None)
    room.answers.pop(conn_id, None)
    registry.detach(conn_id)
    if player is None:
        return []

    events: List[Targeted] = [to_room(room, player_list_event(room))]
    if room.current_question is not None and not room.revealed:
        events.append(to_room(room, answer_stats_event(room)))
        if room.all_answered():
            logger.info("Room %s: remaining players all answered, revealing", room.code)
            events.extend(reveal_events(room))
    return events
