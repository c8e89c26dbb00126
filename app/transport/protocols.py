# app/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field


# =========================
# Shared enums / literals
# =========================

RoomCode = str
BanKindField = Literal["ip", "uuid"]


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(BaseModel):
    type: str


class InRoomBase(InBase):
    room_code: RoomCode = Field(min_length=1, max_length=12)


# ---- Host ----

class InCreateRoom(InBase):
    type: Literal["create_room"] = "create_room"


class InListSubjects(InBase):
    type: Literal["list_subjects"] = "list_subjects"


class InSetSubject(InRoomBase):
    type: Literal["set_subject"] = "set_subject"
    subject: str = Field(min_length=1, max_length=100)


class InSetCustomQuestions(InRoomBase):
    """Raw entries; validated item by item so a partly broken set still loads."""
    type: Literal["set_custom_questions"] = "set_custom_questions"
    questions: List[Any]


class InStartGame(InRoomBase):
    type: Literal["start_game"] = "start_game"


class InNextQuestion(InRoomBase):
    type: Literal["next_question"] = "next_question"


class InRevealAnswer(InRoomBase):
    type: Literal["reveal_answer"] = "reveal_answer"


class InEndGame(InRoomBase):
    type: Literal["end_game"] = "end_game"


class InEndRoom(InRoomBase):
    type: Literal["end_room"] = "end_room"


class InKickPlayer(InRoomBase):
    type: Literal["kick_player"] = "kick_player"
    target: str


class InBroadcastMessage(InRoomBase):
    type: Literal["broadcast_message"] = "broadcast_message"
    message: str = Field(min_length=1, max_length=500)


class InBroadcastTargeted(InRoomBase):
    type: Literal["broadcast_targeted"] = "broadcast_targeted"
    message: str = Field(min_length=1, max_length=500)
    targets: List[str]


class InBroadcastPresenter(InRoomBase):
    type: Literal["broadcast_presenter"] = "broadcast_presenter"
    message: str = Field(min_length=1, max_length=500)


class InRequestBan(InRoomBase):
    type: Literal["request_ban"] = "request_ban"
    target: str
    reason: str = Field(default="", max_length=500)


# ---- Player ----

class InJoin(InRoomBase):
    type: Literal["join"] = "join"
    name: str = Field(min_length=1, max_length=24)
    external_id: Optional[str] = Field(default=None, max_length=64)


class InSubmitAnswer(InRoomBase):
    type: Literal["submit_answer"] = "submit_answer"
    answer: Any = None


class InLeave(InRoomBase):
    type: Literal["leave"] = "leave"


class InClap(InRoomBase):
    type: Literal["clap"] = "clap"


# ---- Presenter ----

class InPresenterJoin(InRoomBase):
    type: Literal["presenter_join"] = "presenter_join"


# Union of all incoming messages you support right now
IncomingMessage = Union[
    InCreateRoom,
    InListSubjects,
    InSetSubject,
    InSetCustomQuestions,
    InStartGame,
    InNextQuestion,
    InRevealAnswer,
    InEndGame,
    InEndRoom,
    InKickPlayer,
    InBroadcastMessage,
    InBroadcastTargeted,
    InBroadcastPresenter,
    InRequestBan,
    InJoin,
    InSubmitAnswer,
    InLeave,
    InClap,
    InPresenterJoin,
]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    type: str


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: str
    message: str
    errors: List[str] = Field(default_factory=list)


class OutHello(OutBase):
    type: Literal["hello"] = "hello"
    conn_id: str


class OutBanned(OutBase):
    type: Literal["banned"] = "banned"
    kind: BanKindField
    message: str
    reason: str = "Prohibited conduct"
    banned_at: Optional[int] = None
    unban_date: Optional[int] = None


# ---- Room lifecycle ----

class OutRoomCreated(OutBase):
    type: Literal["room_created"] = "room_created"
    room_code: RoomCode


class OutRoomJoined(OutBase):
    type: Literal["room_joined"] = "room_joined"
    room_code: RoomCode
    name: str
    score: int = 0


class OutPresenterJoined(OutBase):
    type: Literal["presenter_joined"] = "presenter_joined"
    room_code: RoomCode


class OutPlayerListUpdated(OutBase):
    type: Literal["player_list_updated"] = "player_list_updated"
    players: List[Dict[str, Any]]


class OutRoomClosed(OutBase):
    type: Literal["room_closed"] = "room_closed"
    message: str = "Room has been closed by the host"


class OutHostDisconnected(OutBase):
    type: Literal["host_disconnected"] = "host_disconnected"
    message: str = "The host has left. This room is closed."


class OutKicked(OutBase):
    type: Literal["kicked"] = "kicked"
    message: str = "You have been removed from the game by the host"


# ---- Subjects ----

class OutSubjects(OutBase):
    type: Literal["subjects"] = "subjects"
    subjects: List[Dict[str, Any]]


class OutSubjectChanged(OutBase):
    type: Literal["subject_changed"] = "subject_changed"
    subject: str
    question_count: int
    warnings: List[str] = Field(default_factory=list)


class OutSubjectInfo(OutBase):
    type: Literal["subject_info"] = "subject_info"
    subject: str
    question_count: int


# ---- Game flow ----

class OutGameStarted(OutBase):
    type: Literal["game_started"] = "game_started"


class OutNewQuestion(OutBase):
    type: Literal["new_question"] = "new_question"
    question: Dict[str, Any]
    question_number: int
    total_questions: int


class OutAnswerSubmitted(OutBase):
    type: Literal["answer_submitted"] = "answer_submitted"
    message: str = "Answer submitted! Waiting for results..."


class OutPlayerAnswered(OutBase):
    type: Literal["player_answered"] = "player_answered"
    conn_id: str
    name: str
    answer: Any
    correct: Optional[bool] = None
    score: int = 0


class OutAnswerStats(OutBase):
    type: Literal["answer_stats"] = "answer_stats"
    answered: int
    total: int
    answers: List[Dict[str, Any]]


class OutRevealAnswer(OutBase):
    """Presenter variant."""
    type: Literal["reveal_answer"] = "reveal_answer"
    correct_answer: Any = None
    explanation: str = ""


class OutRevealAnswerPlayers(OutBase):
    type: Literal["reveal_answer_players"] = "reveal_answer_players"
    correct_answer: Any = None
    explanation: str = ""


class OutAnswerResult(OutBase):
    type: Literal["answer_result"] = "answer_result"
    correct: Optional[bool] = None
    correct_answer: Any = None
    explanation: str = ""
    score: int = 0


class OutGameEnded(OutBase):
    type: Literal["game_ended"] = "game_ended"
    message: str
    final_scores: List[Dict[str, Any]]


# ---- Messaging / engagement / moderation ----

class OutHostMessage(OutBase):
    type: Literal["host_message"] = "host_message"
    message: str


class OutPresenterMessage(OutBase):
    type: Literal["presenter_message"] = "presenter_message"
    message: str


class OutClapUpdate(OutBase):
    type: Literal["clap_update"] = "clap_update"
    total_claps: int


class OutBanRequested(OutBase):
    type: Literal["ban_requested"] = "ban_requested"
    target: str
    request_id: str


OutgoingEvent = Union[
    OutError,
    OutHello,
    OutBanned,
    OutRoomCreated,
    OutRoomJoined,
    OutPresenterJoined,
    OutPlayerListUpdated,
    OutRoomClosed,
    OutHostDisconnected,
    OutKicked,
    OutSubjects,
    OutSubjectChanged,
    OutSubjectInfo,
    OutGameStarted,
    OutNewQuestion,
    OutAnswerSubmitted,
    OutPlayerAnswered,
    OutAnswerStats,
    OutRevealAnswer,
    OutRevealAnswerPlayers,
    OutAnswerResult,
    OutGameEnded,
    OutHostMessage,
    OutPresenterMessage,
    OutClapUpdate,
    OutBanRequested,
]


# =========================
# Parser helpers
# =========================

# A small map so we can parse by "type" quickly (simple & readable)
_INCOMING_BY_TYPE = {
    "create_room": InCreateRoom,
    "list_subjects": InListSubjects,
    "set_subject": InSetSubject,
    "set_custom_questions": InSetCustomQuestions,
    "start_game": InStartGame,
    "next_question": InNextQuestion,
    "reveal_answer": InRevealAnswer,
    "end_game": InEndGame,
    "end_room": InEndRoom,
    "kick_player": InKickPlayer,
    "broadcast_message": InBroadcastMessage,
    "broadcast_targeted": InBroadcastTargeted,
    "broadcast_presenter": InBroadcastPresenter,
    "request_ban": InRequestBan,
    "join": InJoin,
    "submit_answer": InSubmitAnswer,
    "leave": InLeave,
    "clap": InClap,
    "presenter_join": InPresenterJoin,
}


def parse_incoming(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> validated message model.
    Raises ValueError (pydantic ValidationError is one) if invalid.
    """
    if not isinstance(payload, dict):
        raise ValueError("Message must be a JSON object")

    t = payload.get("type")
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)
