"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from ai_agents.api.handlers import chat_event_stream, handle_chat
from ai_agents.client import AgentClient, create_client
from ai_agents.core.config import AGENT_ID, AGENT_INSTRUCTIONS, AGENT_MODEL
from ai_agents.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)
router = APIRouter()

_client: AgentClient | None = None


def get_client() -> AgentClient:
    """Process-wide client built from the environment on first use."""
    global _client
    if _client is None:
        _client = create_client()
        if AGENT_MODEL:
            _client.create_agent({"name": AGENT_ID, "model": AGENT_MODEL, "instructions": AGENT_INSTRUCTIONS})
    return _client


async def close_client() -> None:
    """Flush pending persistence and release HTTP connections (app shutdown)."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "AI agents service running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat ---

@router.post(
    "/chat",
    tags=["chat"],
    summary="Run one agent turn",
    description="Send a message; receive conversation_id, output_text, response ids, usage and cost. 422 when message is missing.",
)
async def post_chat(body: ChatRequest) -> Any:
    logger.info("[api:post_chat] IN  conversation_id=%s user_id=%s", body.conversation_id, body.user_id)
    return await handle_chat(get_client(), body)


@router.post(
    "/chat/stream",
    tags=["chat"],
    summary="Run one agent turn (SSE stream)",
    description="Stream the answer via Server-Sent Events. Events: status, delta, done, error.",
)
async def post_chat_stream(body: ChatRequest) -> StreamingResponse:
    logger.info("[api:post_chat_stream] IN  conversation_id=%s user_id=%s", body.conversation_id, body.user_id)
    return StreamingResponse(
        chat_event_stream(get_client(), body),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
