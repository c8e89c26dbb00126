# app/settings.py
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel
import os

BASE_DIR = Path(__file__).resolve().parent.parent


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y", "on")


class Settings(BaseModel):
    APP_NAME: str = "quizroom-server"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Dev
    LOG_LEVEL: str = "INFO"

    # WebSocket origin policy (comma-separated)
    WS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173,null"
    # Dev helper: allow any private LAN IP on port 5173
    WS_ALLOW_LAN_ORIGINS: bool = True
    # Take the client address from X-Forwarded-For (behind a proxy only)
    TRUST_FORWARDED_FOR: bool = False

    # Moderation store: "redis" or "memory"
    MODERATION_BACKEND: str = "redis"
    REDIS_URL: str = "redis://localhost:6379/0"

    # Content
    QUESTIONS_DIR: str = str(BASE_DIR / "questions")
    QUESTION_FILES: str = "question-files.json"
    DEFAULT_SUBJECT: str = "general"
    WORDS_FILE: str = str(BASE_DIR / "data" / "inappropriate-words.json")

    # Custom question set limits
    MAX_CUSTOM_QUESTIONS: int = 500
    MAX_TEXT_LENGTH: int = 5000
    MAX_OPTIONS: int = 10

    # Admin HTTP; empty = no token required
    ADMIN_TOKEN: str = ""


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "quizroom-server"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "8000")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),

        WS_ALLOWED_ORIGINS=os.getenv(
            "WS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,null",
        ),
        WS_ALLOW_LAN_ORIGINS=_flag("WS_ALLOW_LAN_ORIGINS", "true"),
        TRUST_FORWARDED_FOR=_flag("TRUST_FORWARDED_FOR", "false"),

        MODERATION_BACKEND=os.getenv("MODERATION_BACKEND", "redis").lower(),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),

        QUESTIONS_DIR=os.getenv("QUESTIONS_DIR", str(BASE_DIR / "questions")),
        QUESTION_FILES=os.getenv("QUESTION_FILES", "question-files.json"),
        DEFAULT_SUBJECT=os.getenv("DEFAULT_SUBJECT", "general"),
        WORDS_FILE=os.getenv("WORDS_FILE", str(BASE_DIR / "data" / "inappropriate-words.json")),

        MAX_CUSTOM_QUESTIONS=int(os.getenv("MAX_CUSTOM_QUESTIONS", "500")),
        MAX_TEXT_LENGTH=int(os.getenv("MAX_TEXT_LENGTH", "5000")),
        MAX_OPTIONS=int(os.getenv("MAX_OPTIONS", "10")),

        ADMIN_TOKEN=os.getenv("ADMIN_TOKEN", ""),
    )
