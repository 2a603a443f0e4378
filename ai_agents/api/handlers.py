"""
API handlers: turn chat requests into client calls, map library errors to HTTP.

Responsibility: Bridge HTTP types and the client. Lives in the API layer so the
orchestration code stays free of FastAPI/HTTP types.
"""

import json
import logging
from typing import Any, AsyncIterator

from fastapi import HTTPException

from ai_agents.client import AgentClient
from ai_agents.core.config import AGENT_ID
from ai_agents.core.errors import AgentsError
from ai_agents.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)

CLIENT_APP = "fastapi-chat"


def build_run_params(body: ChatRequest, agent: str = AGENT_ID) -> dict[str, Any]:
    return {
        "agent": agent,
        "message": body.message,
        "conversation_id": body.conversation_id,
        "replying_to": body.replying_to,
        "previous_response_id": body.replying_to,
        "user_id": body.user_id,
        "metadata": {"client_app": CLIENT_APP, **(body.metadata or {})},
    }


async def handle_chat(client: AgentClient, body: ChatRequest) -> Any:
    """Run one turn; library errors keep their status code, anything else is a 500."""
    try:
        return await client.run(build_run_params(body))
    except AgentsError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except Exception as e:
        logger.exception("Chat request failed")
        raise HTTPException(status_code=500, detail=str(e) or "Chat request failed.") from e


def _sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def chat_event_stream(client: AgentClient, body: ChatRequest) -> AsyncIterator[str]:
    """Yield Server-Sent Events: status, delta (one per fragment), then done or error."""
    try:
        yield _sse("status", {"text": "Preprocessing context..."})
        fragments = client.run_stream(build_run_params(body))
        yield _sse("status", {"text": "Model is responding..."})
        async for chunk in fragments:
            yield _sse("delta", {"text": chunk})
        yield _sse("done", {"ok": True})
    except Exception as e:
        logger.exception("SSE stream failed")
        message = e.message if isinstance(e, AgentsError) else (str(e) or "Streaming failed.")
        yield _sse("error", {"message": message})
