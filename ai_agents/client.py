"""
Public entry point: create_client() returns an AgentClient running turns in
direct mode (OpenAI) or proxy mode (backend HTTP).

Registries and conversation state belong to the client instance and live as
long as it does; call aclose() to flush background persistence and release
HTTP connections.
"""

import logging
from typing import Any, AsyncIterator

import httpx

from ai_agents.agent.registry import AgentRegistry
from ai_agents.agent.tools import Tool, ToolRegistry
from ai_agents.core.config import PROXY_MODE, ClientConfig
from ai_agents.core.session_store import ConversationStateStore
from ai_agents.schemas.agent import Agent
from ai_agents.schemas.run import RunParams, parse_run_params
from ai_agents.services.agent_service import AgentService
from ai_agents.services.backend import BackendClient
from ai_agents.services.proxy import ProxyDispatcher

logger = logging.getLogger(__name__)


class AgentClient:
    def __init__(
        self,
        config: ClientConfig,
        *,
        openai: Any = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.backend = (
            BackendClient(config.backend_url, timeout=config.backend_timeout, http_client=http_client)
            if config.has_backend
            else None
        )
        self.tools = ToolRegistry()
        self.agents = AgentRegistry(self.backend)
        self.states = ConversationStateStore()
        self.service = AgentService(config, self.agents, self.tools, self.states, self.backend, openai=openai)
        self.proxy = ProxyDispatcher(self.backend) if config.mode == PROXY_MODE else None
        logger.info("[client] mode=%s backend=%s", config.mode, config.backend_url or "-")

    @property
    def mode(self) -> str:
        return self.config.mode

    def register_tool(self, tool: Tool | dict[str, Any]) -> Tool:
        return self.tools.register(tool)

    def create_agent(self, definition: Agent | dict[str, Any]) -> Agent:
        return self.agents.register(definition)

    async def run(self, params: RunParams | dict[str, Any]) -> Any:
        """Run one turn and return the RunResult dict (proxy mode: the backend's body as-is)."""
        run_params = parse_run_params(params)
        if self.proxy is not None:
            return await self.proxy.run(run_params)
        return await self.service.run(run_params)

    async def run_stream(self, params: RunParams | dict[str, Any]) -> AsyncIterator[str]:
        """Stream one turn as text fragments. Validation errors surface on first iteration."""
        run_params = parse_run_params(params)
        if self.proxy is not None:
            async for chunk in self.proxy.run_stream(run_params):
                yield chunk
            return
        async for chunk in self.service.run_stream(run_params):
            yield chunk

    async def drain(self) -> None:
        await self.service.drain()

    async def aclose(self) -> None:
        await self.drain()
        if self.backend is not None:
            await self.backend.aclose()


def create_client(
    config: ClientConfig | None = None,
    *,
    openai: Any = None,
    http_client: httpx.AsyncClient | None = None,
    **settings: Any,
) -> AgentClient:
    """
    Build a client. Without an explicit config, settings come from the
    environment with keyword overrides (backend_url=..., api_key=..., mode=...).
    """
    if config is None:
        config = ClientConfig.from_env(**settings)
    return AgentClient(config, openai=openai, http_client=http_client)
