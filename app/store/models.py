# app/store/models.py
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from app.domain.common.types import BanKind, RoomPhase


# =========================
# Questions (immutable)
# =========================

class QuestionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str = Field(min_length=1)
    explanation: str = ""


class SingleChoiceQuestion(QuestionBase):
    type: Literal["multiple-choice", "truefalse"]
    options: List[str] = Field(min_length=2)
    answer: int

    @model_validator(mode="after")
    def _answer_in_range(self):
        if not 0 <= self.answer < len(self.options):
            raise ValueError("Invalid answer index")
        return self


class MultiSelectQuestion(QuestionBase):
    type: Literal["multi-choice"]
    options: List[str] = Field(min_length=2)
    answer: List[int] = Field(min_length=1)

    @model_validator(mode="after")
    def _answers_in_range(self):
        if len(set(self.answer)) != len(self.answer):
            raise ValueError("Duplicate answer index")
        if any(not 0 <= i < len(self.options) for i in self.answer):
            raise ValueError("Invalid answer index")
        return self


class OpenTextQuestion(QuestionBase):
    type: Literal["text", "open"]
    answer: Optional[str] = None  # model answer, shown on reveal only


class FlashcardQuestion(QuestionBase):
    type: Literal["flashcard"]
    answer: str = ""  # back of the card


class DecisionQuestion(QuestionBase):
    type: Literal["decision"]
    options: List[str] = Field(min_length=2)


Question = Annotated[
    Union[
        SingleChoiceQuestion,
        MultiSelectQuestion,
        OpenTextQuestion,
        FlashcardQuestion,
        DecisionQuestion,
    ],
    Field(discriminator="type"),
]

QUESTION_ADAPTER: TypeAdapter = TypeAdapter(Question)
QUESTION_TYPES = ("multiple-choice", "truefalse", "multi-choice", "text", "open", "flashcard", "decision")


# =========================
# Room state
# =========================

class PlayerStore(BaseModel):
    conn_id: str
    name: str
    score: int = 0
    external_id: Optional[str] = None
    ip: str = ""
    joined_at: int

    def public(self) -> Dict[str, Any]:
        return {"conn_id": self.conn_id, "name": self.name, "score": self.score}


class AnswerStore(BaseModel):
    conn_id: str
    name: str
    value: Any
    correct: Optional[bool] = None  # None: kind has no correctness
    submitted_at: int
    score: int = 0


class RoomStore(BaseModel):
    code: str
    host: Optional[str] = None
    presenters: List[str] = Field(default_factory=list)
    players: Dict[str, PlayerStore] = Field(default_factory=dict)
    subject: str = "general"
    questions: List[Question] = Field(default_factory=list)
    question_index: int = -1
    current_question: Optional[Question] = None
    answers: Dict[str, AnswerStore] = Field(default_factory=dict)
    revealed: bool = False
    game_started: bool = False
    game_ended: bool = False
    clap_count: int = 0
    created_at: int
    last_activity: int

    @property
    def phase(self) -> RoomPhase:
        if self.game_started and not self.game_ended:
            return "RUNNING"
        if self.game_ended:
            return "ENDED"
        return "LOBBY"

    def members(self) -> List[str]:
        """Every connection subscribed to this room: host, players, presenters."""
        out = [self.host] if self.host else []
        out.extend(self.players.keys())
        out.extend(p for p in self.presenters if p not in out)
        return out

    def player_list(self) -> List[Dict[str, Any]]:
        return [p.public() for p in self.players.values()]

    def final_scores(self) -> List[Dict[str, Any]]:
        return sorted(self.player_list(), key=lambda p: p["score"], reverse=True)

    def all_answered(self) -> bool:
        return len(self.players) > 0 and len(self.answers) == len(self.players)


# =========================
# Moderation
# =========================

class BanInfo(BaseModel):
    kind: BanKind
    value: str
    reason: str = "Prohibited conduct"
    player_name: Optional[str] = None
    banned_at: int  # ms
    unban_date: Optional[int] = None  # ms; None = permanent

    def expired(self, now_ms: int) -> bool:
        return self.unban_date is not None and self.unban_date <= now_ms


class BanRequest(BaseModel):
    id: str
    player_name: str
    uuid: Optional[str] = None
    player_ip: str = "unknown"
    reason: str = ""
    requested_by: str
    room_code: str
    timestamp: int  # ms
