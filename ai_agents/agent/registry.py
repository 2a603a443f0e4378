"""
Agent registry: locally declared agents plus a memoized remote resolver.
"""

import logging
from typing import Any

from ai_agents.core.errors import UnknownAgentError
from ai_agents.schemas.agent import Agent, InlineAgentRef, LocalAgentRef, to_agent_ref
from ai_agents.services.backend import BackendClient

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Holds agents created on the client and caches agents resolved from the backend."""

    def __init__(self, backend: BackendClient | None = None) -> None:
        self.backend = backend
        self._local: dict[Any, Agent] = {}
        self._remote: dict[str, Agent] = {}

    def register(self, definition: Agent | dict[str, Any]) -> Agent:
        """Store under id, str(id) and name. Last write wins on collision."""
        agent = definition if isinstance(definition, Agent) else Agent.model_validate(definition)
        for key in (agent.id, str(agent.id), agent.name):
            if key is not None:
                self._local[key] = agent
        logger.info("[registry:register] agent id=%r name=%r model=%s", agent.id, agent.name, agent.model)
        return agent

    def get(self, key: Any) -> Agent | None:
        return self._local.get(key) or self._local.get(str(key))

    async def resolve(self, value: Any) -> Agent:
        """
        Resolve an agent reference: inline definitions verbatim, then local
        registrations, then the backend (memoized).
        """
        ref = to_agent_ref(value)
        if isinstance(ref, InlineAgentRef):
            return ref.agent

        local = self.get(ref.key)
        if local is not None:
            return local

        remote = await self._resolve_remote(ref)
        if remote is not None:
            return remote
        raise UnknownAgentError(ref.key)

    async def _resolve_remote(self, ref: LocalAgentRef) -> Agent | None:
        if self.backend is None:
            return None

        key = str(ref.key)
        cached = self._remote.get(key)
        if cached is not None:
            return cached

        data = await self.backend.resolve_agent(ref.key)
        if data is None:
            return None

        resolved = Agent.model_validate({
            "id": data.get("id") if data.get("id") is not None else ref.key,
            "name": data.get("name") if data.get("name") is not None else key,
            "model": data.get("model"),
            "instructions": data.get("instructions"),
            "temperature": data.get("temperature"),
            "max_output_tokens": data.get("max_output_tokens"),
            "tools": data.get("tools"),
            "metadata": data.get("metadata"),
        })
        for cache_key in (key, str(resolved.id), resolved.name):
            if cache_key:
                self._remote[cache_key] = resolved
        logger.info("[registry:resolve_remote] ref=%r -> id=%r model=%s", ref.key, resolved.id, resolved.model)
        return resolved
