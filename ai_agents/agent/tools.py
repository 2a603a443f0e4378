"""
Agent tools: registration, provider-facing definitions, and execution for the
tool-calling loop.

Builtin tools (e.g. web_search_preview) are passed to the provider by name;
function tools are described with a JSON schema and executed locally.
"""

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from ai_agents.schemas.agent import Agent

logger = logging.getLogger(__name__)

BUILTIN = "builtin"
FUNCTION = "function"

EMPTY_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}

# handler(args, context) -> result, sync or async
ToolHandler = Callable[[dict[str, Any], Any], Any]


@dataclass
class Tool:
    name: str
    type: str = FUNCTION
    description: str = ""
    parameters_schema: dict[str, Any] | None = None
    handler: ToolHandler | None = None

    def to_response_tool(self) -> dict[str, Any]:
        """Provider definition: builtin by type name, everything else as a function."""
        if self.type == BUILTIN:
            return {"type": self.name}
        return {
            "type": "function",
            "name": self.name,
            "description": self.description or "",
            "parameters": self.parameters_schema or dict(EMPTY_SCHEMA),
        }


def parse_arguments(raw: Any) -> dict[str, Any]:
    """Decode function-call arguments. Malformed or non-object JSON becomes {}; never raises."""
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw or "{}")
    except (TypeError, ValueError):
        logger.info("[tools:parse_arguments] malformed arguments=%r", raw)
        return {}
    return value if isinstance(value, dict) else {}


class ToolRegistry:
    """Tools registered on a client, keyed by name. Last registration wins."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def register(self, tool: Tool | dict[str, Any]) -> Tool:
        if isinstance(tool, dict):
            tool = Tool(
                name=tool["name"],
                type=tool.get("type") or FUNCTION,
                description=tool.get("description") or "",
                parameters_schema=tool.get("parameters_schema"),
                handler=tool.get("handler"),
            )
        self._tools[tool.name] = tool
        logger.info("[tools:register] name=%s type=%s", tool.name, tool.type)
        return tool

    def build_response_tools(self, agent: Agent) -> list[dict[str, Any]]:
        """Tool set for a request: the agent's declared subset, else every registered tool."""
        names = agent.tools or self.names()
        return [
            (self._tools.get(name) or Tool(name=name, type=BUILTIN)).to_response_tool()
            for name in names
        ]

    async def execute_tool(self, name: str, arguments: dict[str, Any], context: Any = None) -> Any:
        """
        Run a tool by name with parsed arguments. A missing tool or one without a
        callable handler yields a structured error result instead of raising.
        """
        logger.info("[tools] execute_tool name=%r arguments=%r", name, arguments)
        tool = self._tools.get(name)
        if tool is None or not callable(tool.handler):
            return {"error": f"Tool not registered: {name}"}
        result = tool.handler(arguments, context if context is not None else {})
        if inspect.isawaitable(result):
            result = await result
        return result
