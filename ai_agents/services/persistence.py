"""
Best-effort, per-conversation ordered persistence of turn messages.

Each task is chained after the state's current tail so user-message
persistence always lands before the matching assistant message, while the
caller never waits. A failing task is logged and swallowed; later tasks still run.
"""

import asyncio
import logging
import math
from typing import Any, Awaitable, Callable

from ai_agents.agent.llm import field_of
from ai_agents.core.session_store import ConversationState
from ai_agents.schemas.agent import Agent
from ai_agents.schemas.run import PersistenceEvent, RunParams
from ai_agents.services.backend import BackendClient

logger = logging.getLogger(__name__)

MESSAGE_UPSERT_EVENT = "agent.message.upsert"


def as_numeric_id(value: Any) -> int | float | None:
    """Backend agent ids are numeric; anything that does not parse becomes None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def user_idempotency_key(
    agent: Agent, params: RunParams, conversation_id: Any, replying_to: str | None
) -> str:
    """Same agent, conversation, reply target and text -> same key, so resubmits dedupe."""
    if params.idempotency_key:
        return params.idempotency_key
    return (
        f"user:{agent.id}:{conversation_id or 'new'}:{replying_to or 'none'}:"
        f"{str(params.message or '').strip()}"
    )


def assistant_idempotency_key(
    agent: Agent,
    params: RunParams,
    conversation_id: Any,
    response_id: str | None,
    output_message_id: str | None,
    text: str,
) -> str:
    if params.idempotency_key_response:
        return params.idempotency_key_response
    return f"assistant:{agent.id}:{conversation_id or 'new'}:{response_id or output_message_id or text}"


class PersistenceChain:
    """Schedules persistence tasks per ConversationState and writes back conversation ids."""

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend

    def enqueue(
        self,
        state: ConversationState,
        task: Callable[[], Awaitable[Any]],
        on_resolved: Callable[[Any], None] | None = None,
    ) -> asyncio.Task:
        """Run task after the state's current tail. Returns the new tail; it never raises."""
        previous = state.persistence_chain

        async def _run() -> Any:
            if previous is not None and not previous.done():
                await asyncio.wait([previous])
            try:
                value = await task()
            except Exception as e:
                logger.warning("[persistence:enqueue] task failed: %s", e)
                return None
            if on_resolved is not None:
                on_resolved(value)
            return value

        tail = asyncio.create_task(_run())
        state.persistence_chain = tail
        return tail

    @staticmethod
    def _write_back(state: ConversationState) -> Callable[[Any], None]:
        def _apply(conversation_id: Any) -> None:
            if conversation_id is not None:
                state.conversation_id = conversation_id
        return _apply

    def enqueue_user_message(
        self,
        state: ConversationState,
        *,
        agent: Agent,
        params: RunParams,
        conversation_id: Any,
        replying_to: str | None,
    ) -> asyncio.Task:
        return self.enqueue(
            state,
            lambda: self.persist_user_message(
                agent=agent, params=params, conversation_id=conversation_id, replying_to=replying_to
            ),
            self._write_back(state),
        )

    def enqueue_assistant_message(
        self,
        state: ConversationState,
        *,
        agent: Agent,
        params: RunParams,
        conversation_id: Any,
        response: Any,
        response_id: str | None,
        output_message_id: str | None,
        text: str,
    ) -> asyncio.Task:
        return self.enqueue(
            state,
            lambda: self.persist_assistant_message(
                agent=agent,
                params=params,
                conversation_id=conversation_id,
                response=response,
                response_id=response_id,
                output_message_id=output_message_id,
                text=text,
            ),
            self._write_back(state),
        )

    async def persist_user_message(
        self, *, agent: Agent, params: RunParams, conversation_id: Any, replying_to: str | None
    ) -> Any:
        """Upsert the user's message. Returns the backend's conversation id, else the one passed in."""
        agent_id = as_numeric_id(agent.id)
        payload: dict[str, Any] = {
            "agent_id": agent_id,
            "conversation_id": conversation_id,
            "role": "user",
            "message": params.message,
            "user_id": params.user_id,
            "metadata": params.metadata or {},
            "source_message_id": params.client_message_id,
        }
        if replying_to:
            payload["external_id"] = replying_to
        event = PersistenceEvent(
            event_name=MESSAGE_UPSERT_EVENT,
            idempotency_key=user_idempotency_key(agent, params, conversation_id, replying_to),
            agent_id=agent_id,
            conversation_id=conversation_id,
            payload=payload,
            metadata=params.metadata or {},
        )
        res = await self.backend.ingest_event(event.model_dump(mode="json"))
        return _conversation_id_from(res, conversation_id)

    async def persist_assistant_message(
        self,
        *,
        agent: Agent,
        params: RunParams,
        conversation_id: Any,
        response: Any,
        response_id: str | None,
        output_message_id: str | None,
        text: str,
    ) -> Any:
        usage = field_of(response, "usage")
        agent_id = as_numeric_id(agent.id)
        payload: dict[str, Any] = {
            "agent_id": agent_id,
            "conversation_id": conversation_id,
            "role": "assistant",
            "message": text,
            "model": agent.model,
            "usage": {
                "input_tokens": field_of(usage, "input_tokens", 0),
                "output_tokens": field_of(usage, "output_tokens", 0),
                "total_tokens": field_of(usage, "total_tokens", 0),
            },
            "source_message_id": output_message_id or response_id,
            "metadata": {
                **(params.metadata or {}),
                "openai_response_id": response_id,
                "openai_message_id": output_message_id,
            },
        }
        if response_id:
            payload["external_id"] = response_id
        event = PersistenceEvent(
            event_name=MESSAGE_UPSERT_EVENT,
            idempotency_key=assistant_idempotency_key(
                agent, params, conversation_id, response_id, output_message_id, text
            ),
            agent_id=agent_id,
            conversation_id=conversation_id,
            payload=payload,
            metadata=params.metadata or {},
        )
        res = await self.backend.ingest_event(event.model_dump(mode="json"))
        return _conversation_id_from(res, conversation_id)

    @staticmethod
    async def drain(states: list[ConversationState]) -> None:
        """Wait for every pending chain tail (shutdown, tests)."""
        tails = [s.persistence_chain for s in states if s.persistence_chain is not None]
        if tails:
            await asyncio.wait(tails)


def _conversation_id_from(res: dict[str, Any] | None, fallback: Any) -> Any:
    if res and res.get("conversation_id") is not None:
        return res["conversation_id"]
    return fallback
