# app/domain/common/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class QuizError(Exception):
    """
    Base for per-event rejections.
    Reported back to the caller only; never fatal for the room or the process.
    """
    code = "QUIZ_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RoomNotFound(QuizError):
    code = "ROOM_NOT_FOUND"

    def __init__(self, room_code: str):
        super().__init__(f"Room {room_code} not found")
        self.room_code = room_code


class Unauthorized(QuizError):
    code = "UNAUTHORIZED"


class InvalidState(QuizError):
    code = "INVALID_STATE"


class NoActiveQuestion(QuizError):
    code = "NO_ACTIVE_QUESTION"

    def __init__(self, message: str = "No active question"):
        super().__init__(message)


class ValidationFailed(QuizError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class Banned(QuizError):
    """Connection must be told why and then dropped."""
    code = "BANNED"

    def __init__(self, message: str, *, kind: str, info: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.kind = kind
        self.info = info or {}
