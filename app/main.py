# app/main.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.logging_config import configure_logging
from app.services.moderation import MemoryModerationGate, ModerationGate, RedisModerationGate
from app.services.profanity import UsernameFilter
from app.services.questions import QuestionBank
from app.settings import Settings, get_settings
from app.store.registry import RoomRegistry
from app.transport.admin import router as admin_router
from app.transport.ws import router as ws_router
from app.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    allowed_origins = [o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()]
    if "null" not in allowed_origins:
        allowed_origins.append("null")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    bank = QuestionBank.from_directory(
        settings.QUESTIONS_DIR,
        settings.QUESTION_FILES,
        max_questions=settings.MAX_CUSTOM_QUESTIONS,
        max_text_length=settings.MAX_TEXT_LENGTH,
        max_options=settings.MAX_OPTIONS,
    )

    app.state.settings = settings
    app.state.questions = bank
    app.state.registry = RoomRegistry(
        default_subject=settings.DEFAULT_SUBJECT,
        default_questions=bank.get_questions(settings.DEFAULT_SUBJECT),
    )
    app.state.word_filter = UsernameFilter.from_file(settings.WORDS_FILE)
    app.state.wsman = WSManager()

    moderation: ModerationGate
    if settings.MODERATION_BACKEND == "redis":
        r = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        app.state.redis = r
        moderation = RedisModerationGate(r)
    else:
        app.state.redis = None
        moderation = MemoryModerationGate()
    app.state.moderation = moderation

    @app.on_event("startup")
    async def _startup() -> None:
        r: Optional[Redis] = app.state.redis
        if r is None:
            logger.info("Moderation store: memory")
            return
        try:
            await r.ping()
            logger.info("Moderation store: redis at %s", settings.REDIS_URL)
        except RedisError as e:
            logger.warning("Redis not reachable at startup (%s); ban checks will pass until it is", e)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        r: Optional[Redis] = app.state.redis
        if r is not None:
            await r.aclose()

    @app.get("/health")
    async def health():
        r: Optional[Redis] = app.state.redis
        if r is None:
            redis_status = "disabled"
        else:
            try:
                redis_status = str(await r.ping())
            except RedisError as e:
                redis_status = f"error: {e}"
        return {"ok": True, "rooms": len(app.state.registry), "redis": redis_status}

    app.include_router(ws_router)
    app.include_router(admin_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("app.main:app", host=s.HOST, port=s.PORT, log_level=s.LOG_LEVEL.lower())
