"""HTTP surface: query endpoint, LINE webhook, reload and stats."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from starlette.concurrency import run_in_threadpool

from .config import config
from .conversation import AnswerGenerator
from .memory import ConversationMemory
from .messaging import LineMessagingClient
from .pipeline import KnowledgePipeline

logger = config.get_logger(__name__)

TEXT_ONLY_REPLY = "ส่งข้อความเป็นตัวอักษรเท่านั้นนะครับ"
MISSING_TEXT_ERROR = "กรุณาส่ง query ?text=..."


@dataclass
class ChatServices:
    """Components shared by every request."""

    pipeline: KnowledgePipeline
    generator: AnswerGenerator
    messenger: LineMessagingClient

    @classmethod
    def from_config(cls) -> ChatServices:
        """Build the default component graph from configuration.

        Returns:
            ChatServices wired together.
        """
        pipeline = KnowledgePipeline()
        generator = AnswerGenerator(pipeline, memory=ConversationMemory())
        return cls(
            pipeline=pipeline, generator=generator, messenger=LineMessagingClient()
        )


def handle_events(services: ChatServices, events: list[dict[str, Any]]) -> None:
    """Answer each text message event and reply to everything else.

    A failure on one event is logged and the remaining events are still answered.
    """
    for event in events:
        reply_token = event.get("replyToken")
        if not reply_token:
            logger.debug("Skipping %s event without reply token", event.get("type"))
            continue

        try:
            reply_to_event(services, event, reply_token)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to answer %s event", event.get("type"))


def reply_to_event(
    services: ChatServices, event: dict[str, Any], reply_token: str
) -> None:
    message = event.get("message") or {}
    if event.get("type") == "message" and message.get("type") == "text":
        user_id = (event.get("source") or {}).get("userId") or "default"
        reply = services.generator.generate(message.get("text", ""), user_id)
    else:
        reply = TEXT_ONLY_REPLY
    services.messenger.reply_text(reply_token, reply)


def create_app(services: ChatServices | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        services: Pre-built components. If None, the application validates
            configuration, builds the components and loads the sheets on
            startup.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "services", None) is None:
            config.validate()
            app.state.services = ChatServices.from_config()
            await run_in_threadpool(app.state.services.pipeline.reload)
        logger.info("campusbot ready")
        yield
        logger.info("campusbot shutting down")

    app = FastAPI(
        title="CMTC IT Chatbot API",
        description="Answers questions about the CMTC IT department.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    def get_services(request: Request) -> ChatServices:
        current = request.app.state.services
        if current is None:
            raise HTTPException(status_code=503, detail="Service is starting up")
        return current

    @app.get("/")
    def index() -> dict[str, Any]:
        return {
            "status": "running",
            "message": "CMTC IT Chatbot API",
            "endpoints": {
                "ask": "/ask?text=your_question",
                "webhook": "/webhook (POST)",
                "reload": "/reload-sheets",
                "stats": "/stats",
            },
        }

    @app.get("/stats")
    def stats(request: Request) -> dict[str, int]:
        current = get_services(request)
        return {
            **current.pipeline.stats(),
            "activeConversations": current.generator.memory.active_conversations,
        }

    @app.get("/reload-sheets")
    def reload_sheets(request: Request) -> dict[str, str]:
        current = get_services(request)
        try:
            current.pipeline.reload()
        except Exception as e:  # noqa: BLE001
            logger.exception("Sheet reload failed")
            return {"status": "error", "message": str(e)}
        return {"status": "success", "message": "Sheets reloaded successfully"}

    @app.get("/ask")
    def ask(
        request: Request,
        text: str | None = None,
        user_id: str | None = Query(default=None, alias="userId"),
    ) -> dict[str, str]:
        if not text:
            return {"error": MISSING_TEXT_ERROR}
        user_id = user_id or "web-user"
        answer = get_services(request).generator.generate(text, user_id)
        return {"question": text, "answer": answer, "userId": user_id}

    @app.post("/webhook")
    async def webhook(request: Request) -> dict[str, str]:
        current = get_services(request)
        body = await request.body()
        if not current.messenger.verify_signature(
            body, request.headers.get("X-Line-Signature")
        ):
            raise HTTPException(status_code=400, detail="Invalid signature")

        # The platform retries on non-200 responses, so errors are only logged.
        try:
            payload = json.loads(body or b"{}")
            events = payload.get("events") or []
            await run_in_threadpool(handle_events, current, events)
        except Exception:  # noqa: BLE001
            logger.exception("Webhook error")
        return {"status": "ok"}

    return app
