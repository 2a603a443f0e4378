"""
Agent: orchestrate one conversational turn in direct mode.

Responsibility: Resolve the agent, load keyed conversation state, persist the
user message in the background, run the tool-calling loop (or a stream),
persist the assistant message, update state and return the result.
Called by the client facade; no HTTP here.
"""

import asyncio
import logging
from functools import partial
from typing import Any, AsyncIterator

from ai_agents.agent.graph import ToolLoop, TurnSettings
from ai_agents.agent.llm import (
    build_request,
    extract_output_message_id,
    extract_output_text,
    extract_usage,
    field_of,
    get_openai_client,
    normalize_messages,
    stream_response,
)
from ai_agents.agent.registry import AgentRegistry
from ai_agents.agent.tools import ToolRegistry
from ai_agents.core.config import ClientConfig
from ai_agents.core.pricing import calculate_cost
from ai_agents.core.session_store import ConversationState, ConversationStateStore
from ai_agents.schemas.agent import Agent
from ai_agents.schemas.run import RunParams, RunResult
from ai_agents.services.backend import BackendClient
from ai_agents.services.persistence import PersistenceChain

logger = logging.getLogger(__name__)

TOOL_CALLED_EVENT = "AgentToolCalled"


class AgentService:
    """Direct-mode run/stream orchestration over injected registries and stores."""

    def __init__(
        self,
        config: ClientConfig,
        agents: AgentRegistry,
        tools: ToolRegistry,
        states: ConversationStateStore,
        backend: BackendClient | None = None,
        openai: Any = None,
    ) -> None:
        self.config = config
        self.agents = agents
        self.tools = tools
        self.states = states
        self.backend = backend
        self.persistence = PersistenceChain(backend) if backend is not None else None
        self._openai = openai
        self._tool_loop: ToolLoop | None = None
        self._background: set[asyncio.Task] = set()

    @property
    def openai(self) -> Any:
        if self._openai is None:
            self._openai = get_openai_client(self.config)
        return self._openai

    @property
    def tool_loop(self) -> ToolLoop:
        """Compiled once, on the first direct-mode run."""
        if self._tool_loop is None:
            self._tool_loop = ToolLoop(self.openai, self.tools)
        return self._tool_loop

    async def _prepare(self, params: RunParams) -> tuple[Agent, ConversationState]:
        agent = await self.agents.resolve(params.agent)
        key = self.states.derive_key(agent, params)
        logger.info("[agent_service:prepare] agent=%r model=%s state_key=%s", agent.id, agent.model, key[:64])
        return agent, self.states.get_or_create(key)

    def _begin_turn(
        self, agent: Agent, params: RunParams, state: ConversationState
    ) -> tuple[Any, str | None, list[dict[str, Any]]]:
        """Pick conversation/linkage ids (params override state), queue user persistence, build input."""
        conversation_id = params.conversation_id if params.conversation_id is not None else state.conversation_id
        previous_response_id = params.replying_to or params.previous_response_id or state.last_response_id or None

        if self.persistence is not None:
            self.persistence.enqueue_user_message(
                state,
                agent=agent,
                params=params,
                conversation_id=conversation_id,
                replying_to=previous_response_id,
            )

        history = self.states.resolve_messages(params, state)
        input_items = normalize_messages(
            agent, params.message, history, params.history_limit, previous_response_id
        )
        logger.info(
            "[agent_service:begin_turn] conversation_id=%s previous_response_id=%s history_len=%d",
            conversation_id,
            previous_response_id,
            len(history),
        )
        return conversation_id, previous_response_id, input_items

    def _finish_turn(
        self,
        agent: Agent,
        params: RunParams,
        state: ConversationState,
        conversation_id: Any,
        response: Any,
        text: str,
    ) -> tuple[str | None, str | None]:
        response_id = field_of(response, "id")
        output_message_id = extract_output_message_id(response)

        if self.persistence is not None:
            self.persistence.enqueue_assistant_message(
                state,
                agent=agent,
                params=params,
                conversation_id=conversation_id,
                response=response,
                response_id=response_id,
                output_message_id=output_message_id,
                text=text,
            )

        self.states.update_after_completion(
            state,
            user_text=params.message,
            assistant_text=text,
            conversation_id=conversation_id,
            response_id=response_id,
            output_message_id=output_message_id,
            max_history=params.history_limit,
        )
        return response_id, output_message_id

    def _emit_tool_called(self, agent: Agent, conversation_id: Any, info: dict[str, Any]) -> None:
        """Fire-and-forget tool-call event; never blocks the loop, failures are only logged."""
        if self.backend is None:
            return
        event = {
            "event_name": TOOL_CALLED_EVENT,
            "payload": {"agent_id": agent.id, "conversation_id": conversation_id, **info},
        }
        task = asyncio.create_task(self.backend.sync_event(event))
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("[agent_service] background event failed: %s", task.exception())

    async def run(self, params: RunParams) -> dict[str, Any]:
        """Run one turn with the tool-calling loop. Provider errors propagate unchanged."""
        agent, state = await self._prepare(params)
        async with state.lock:
            conversation_id, previous_response_id, input_items = self._begin_turn(agent, params, state)
            turn = TurnSettings(
                agent=agent,
                previous_response_id=previous_response_id,
                max_iterations=params.iteration_limit,
                context=params.context,
                on_tool_called=partial(self._emit_tool_called, agent, conversation_id),
            )
            response = await self.tool_loop.run(input_items, turn)
            text = extract_output_text(response)
            response_id, output_message_id = self._finish_turn(
                agent, params, state, conversation_id, response, text
            )

        usage = extract_usage(response)
        result = RunResult(
            conversation_id=conversation_id if conversation_id is not None else state.conversation_id,
            output_text=text,
            response_id=response_id,
            output_message_id=output_message_id,
            usage=usage,
            cost_usd=calculate_cost(
                self.config.pricing, agent.model, usage.prompt_tokens, usage.completion_tokens
            ),
        )
        logger.info(
            "[agent_service:run] END response_id=%s output_len=%d total_tokens=%d",
            response_id,
            len(text),
            usage.total_tokens,
        )
        return {**result.model_dump(exclude={"raw"}), "raw": response}

    async def run_stream(self, params: RunParams) -> AsyncIterator[str]:
        """
        Stream one turn, yielding text deltas as they arrive. No tool execution
        mid-stream. State and persistence are finalized once the stream completes;
        a stream abandoned part-way leaves the state untouched.

        The state lock is taken for the read and for the write-back only, never
        while a fragment is with the consumer.
        """
        agent, state = await self._prepare(params)
        async with state.lock:
            conversation_id, previous_response_id, input_items = self._begin_turn(agent, params, state)
        request = build_request(
            agent, input_items, self.tools.build_response_tools(agent), previous_response_id
        )
        parts: list[str] = []
        final = None
        async for item in stream_response(self.openai, request):
            if item[0] == "delta":
                parts.append(item[1])
                yield item[1]
            elif item[0] == "final":
                final = item[1]

        text = "".join(parts) or extract_output_text(final)
        async with state.lock:
            response_id, _ = self._finish_turn(agent, params, state, conversation_id, final, text)
        logger.info("[agent_service:run_stream] END response_id=%s output_len=%d", response_id, len(text))

    async def drain(self) -> None:
        """Wait for queued persistence and tool-event tasks."""
        if self.persistence is not None:
            await self.persistence.drain(self.states.states())
        if self._background:
            await asyncio.wait(list(self._background))
