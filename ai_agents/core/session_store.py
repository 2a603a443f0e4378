"""
In-memory conversation state store. Keyed by a derived state key; one
ConversationState per key for the lifetime of the store (no eviction).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ai_agents.core.config import MAX_HISTORY_MESSAGES
from ai_agents.schemas.agent import Agent
from ai_agents.schemas.run import RunParams

logger = logging.getLogger(__name__)


@dataclass
class ConversationState:
    """Session record for one logical conversation."""

    conversation_id: Any = None
    last_response_id: str | None = None
    # list of {"role": "user"|"assistant", "content": str}
    messages: list[dict[str, Any]] = field(default_factory=list)
    # tail of the persistence chain; see services.persistence
    persistence_chain: asyncio.Task | None = None
    # serializes state read/write-back for turns on one key; never held across a stream yield
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ConversationStateStore:
    """Process-local map of state key -> ConversationState, created with the client."""

    def __init__(self) -> None:
        self._states: dict[str, ConversationState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def states(self) -> list[ConversationState]:
        return list(self._states.values())

    @staticmethod
    def derive_key(agent: Agent | None, params: RunParams) -> str:
        """
        Key precedence: explicit conversation_key > conversation_id > agent:user pair.
        Callers must keep supplying the same key/id to continue a conversation.
        """
        if params.conversation_key:
            return str(params.conversation_key)
        if params.conversation_id is not None:
            return f"conversation:{params.conversation_id}"

        if isinstance(params.agent, (str, int)) and not isinstance(params.agent, bool):
            agent_key = str(params.agent)
        elif agent is not None and (agent.id is not None or agent.name):
            agent_key = str(agent.id if agent.id is not None else agent.name)
        else:
            agent_key = "default-agent"
        user_key = f"user:{params.user_id}" if params.user_id is not None else "user:anon"
        return f"{agent_key}:{user_key}"

    def get(self, key: str) -> ConversationState | None:
        return self._states.get(key)

    def get_or_create(self, key: str) -> ConversationState:
        """Return the state for key, installing a fresh one on first use."""
        state = self._states.get(key)
        if state is None:
            state = ConversationState()
            self._states[key] = state
            logger.info("[session_store:get_or_create] created state key=%s", key[:64])
        return state

    @staticmethod
    def resolve_messages(params: RunParams, state: ConversationState) -> list[dict[str, Any]]:
        """History for the request: explicit params.messages if non-empty, else stored history."""
        if params.messages:
            return list(params.messages)
        return list(state.messages)

    @staticmethod
    def update_after_completion(
        state: ConversationState,
        *,
        user_text: str,
        assistant_text: str,
        conversation_id: Any = None,
        response_id: str | None = None,
        output_message_id: str | None = None,
        max_history: int | None = None,
    ) -> None:
        """Append user then assistant text, bound history, refresh linkage ids."""
        if conversation_id is not None:
            state.conversation_id = conversation_id

        next_response_id = response_id or output_message_id
        if next_response_id:
            state.last_response_id = next_response_id

        if not user_text and not assistant_text:
            return

        messages = list(state.messages)
        if user_text:
            messages.append({"role": "user", "content": user_text})
        if assistant_text:
            messages.append({"role": "assistant", "content": assistant_text})

        keep = max(1, int(max_history or MAX_HISTORY_MESSAGES))
        state.messages = messages[-keep:]
        logger.info(
            "[session_store:update_after_completion] messages=%d last_response_id=%s",
            len(state.messages),
            state.last_response_id,
        )
