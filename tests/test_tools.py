"""
Unit tests for the tool registry: argument parsing, provider definitions, execution.
"""

import pytest

from ai_agents.agent.tools import Tool, ToolRegistry, parse_arguments
from ai_agents.schemas.agent import Agent


class TestParseArguments:
    """Tests for parse_arguments()."""

    def test_valid_json_object(self) -> None:
        assert parse_arguments('{"city": "Oslo"}') == {"city": "Oslo"}

    def test_malformed_json_becomes_empty(self) -> None:
        assert parse_arguments('{"city": ') == {}
        assert parse_arguments("not json") == {}

    def test_empty_and_none(self) -> None:
        assert parse_arguments("") == {}
        assert parse_arguments(None) == {}

    def test_non_object_json_becomes_empty(self) -> None:
        assert parse_arguments("[1, 2]") == {}

    def test_dict_passes_through(self) -> None:
        assert parse_arguments({"a": 1}) == {"a": 1}


class TestBuildResponseTools:
    """Tests for ToolRegistry.build_response_tools()."""

    def _registry(self) -> ToolRegistry:
        registry = ToolRegistry()
        registry.register(Tool(
            name="get_weather",
            description="Weather for a city",
            parameters_schema={"type": "object", "properties": {"city": {"type": "string"}}},
            handler=lambda args, ctx: "sunny",
        ))
        registry.register({"name": "current_date", "handler": lambda args, ctx: "2026-01-01"})
        registry.register(Tool(name="web_search_preview", type="builtin"))
        return registry

    def test_all_registered_tools_when_agent_declares_none(self) -> None:
        tools = self._registry().build_response_tools(Agent(name="a", model="m"))
        assert tools == [
            {
                "type": "function",
                "name": "get_weather",
                "description": "Weather for a city",
                "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
            },
            {
                "type": "function",
                "name": "current_date",
                "description": "",
                "parameters": {"type": "object", "properties": {}},
            },
            {"type": "web_search_preview"},
        ]

    def test_agent_subset_and_unknown_names_pass_as_builtin(self) -> None:
        agent = Agent(name="a", model="m", tools=["current_date", "file_search"])
        tools = self._registry().build_response_tools(agent)
        assert [t.get("name", t["type"]) for t in tools] == ["current_date", "file_search"]
        assert tools[1] == {"type": "file_search"}

    def test_api_type_is_exposed_as_function(self) -> None:
        registry = ToolRegistry()
        registry.register({"name": "lookup", "type": "api", "description": "d"})
        assert registry.build_response_tools(Agent(name="a", model="m"))[0]["type"] == "function"


class TestExecuteTool:
    """Tests for ToolRegistry.execute_tool()."""

    @pytest.mark.asyncio
    async def test_missing_tool_returns_error_result(self) -> None:
        result = await ToolRegistry().execute_tool("nope", {})
        assert result == {"error": "Tool not registered: nope"}

    @pytest.mark.asyncio
    async def test_tool_without_handler_returns_error_result(self) -> None:
        registry = ToolRegistry()
        registry.register(Tool(name="no_handler"))
        assert await registry.execute_tool("no_handler", {}) == {"error": "Tool not registered: no_handler"}

    @pytest.mark.asyncio
    async def test_sync_handler_receives_args_and_context(self) -> None:
        registry = ToolRegistry()
        registry.register(Tool(name="echo", handler=lambda args, ctx: {"args": args, "ctx": ctx}))
        result = await registry.execute_tool("echo", {"x": 1}, {"tenant": "t1"})
        assert result == {"args": {"x": 1}, "ctx": {"tenant": "t1"}}

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self) -> None:
        async def handler(args, ctx):
            return args["a"] + args["b"]

        registry = ToolRegistry()
        registry.register(Tool(name="add", handler=handler))
        assert await registry.execute_tool("add", {"a": 2, "b": 3}) == 5

    @pytest.mark.asyncio
    async def test_context_defaults_to_empty_dict(self) -> None:
        registry = ToolRegistry()
        registry.register(Tool(name="ctx", handler=lambda args, ctx: ctx))
        assert await registry.execute_tool("ctx", {}) == {}
