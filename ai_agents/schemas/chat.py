"""Schemas for the chat endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for POST /chat and POST /chat/stream. History is kept by the client per conversation."""

    message: str = Field(..., min_length=1, description="User message for the agent.")
    conversation_id: Any = Field(None, description="Backend conversation id to continue, if known.")
    user_id: Any = Field(None, description="Caller's user id; scopes the in-memory conversation when no id is given.")
    replying_to: str | None = Field(None, description="Response id this message replies to.")
    metadata: dict[str, Any] = Field(default_factory=dict)
