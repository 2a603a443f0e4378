"""
LangGraph tool loop: request_completion → (execute_tools → request_completion)* → END.

The graph is compiled once per ToolLoop and reused for every turn; per-turn
settings (agent, linkage id, bound, tool context) travel in the graph state.
The loop ends when a response carries no function calls; asking for a
completion past max_iterations raises ToolLoopExceededError.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, TypedDict

from langgraph.graph import END, StateGraph

from ai_agents.agent.llm import build_request, create_response, extract_function_calls
from ai_agents.agent.tools import ToolRegistry, parse_arguments
from ai_agents.core.config import MAX_TOOL_ITERATIONS
from ai_agents.core.errors import ToolLoopExceededError
from ai_agents.schemas.agent import Agent

logger = logging.getLogger(__name__)


@dataclass
class TurnSettings:
    agent: Agent
    previous_response_id: str | None = None
    max_iterations: int = MAX_TOOL_ITERATIONS
    context: Any = None
    on_tool_called: Callable[[dict[str, Any]], None] | None = None


class ToolLoopState(TypedDict):
    turn: TurnSettings
    input: list  # request input items, grows with function calls and their outputs
    response: Any
    function_calls: list
    iteration: int  # provider calls made so far


class ToolLoop:
    """Bounded request/execute/continue cycle, shared by every direct-mode turn of a client."""

    def __init__(self, openai: Any, tools: ToolRegistry) -> None:
        self.openai = openai
        self.tools = tools
        self.graph = self.build_graph()

    async def _request_completion(self, state: ToolLoopState) -> dict:
        turn = state["turn"]
        it = state.get("iteration") or 0
        if it >= turn.max_iterations:
            logger.warning("[graph:request_completion] iteration=%d reached max=%d", it, turn.max_iterations)
            raise ToolLoopExceededError(turn.max_iterations)
        request = build_request(
            turn.agent,
            state["input"],
            self.tools.build_response_tools(turn.agent),
            # linkage applies to the first request only; later rounds carry their own input
            previous_response_id=turn.previous_response_id if it == 0 else None,
        )
        response = await create_response(self.openai, request)
        calls = extract_function_calls(response)
        logger.info("[graph:request_completion] OUT iteration=%d function_calls=%s", it + 1, [c["name"] for c in calls])
        return {"response": response, "function_calls": calls, "iteration": it + 1}

    async def _execute_tools(self, state: ToolLoopState) -> dict:
        turn = state["turn"]
        items = list(state["input"])
        for call in state.get("function_calls") or []:
            name = call.get("name", "")
            raw_args = call.get("arguments")
            args = parse_arguments(raw_args)
            result = await self.tools.execute_tool(name, args, turn.context)

            if turn.on_tool_called is not None:
                turn.on_tool_called({"tool_name": name, "tool_arguments": args, "tool_result": result})

            items.append({
                "type": "function_call",
                "call_id": call.get("call_id", ""),
                "name": name,
                "arguments": raw_args if isinstance(raw_args, str) else json.dumps(raw_args or {}),
            })
            items.append({
                "type": "function_call_output",
                "call_id": call.get("call_id", ""),
                "output": json.dumps(result, default=str),
            })
        return {"input": items, "function_calls": []}

    def _route_after_request(self, state: ToolLoopState) -> Literal["execute_tools", "__end__"]:
        next_node = "execute_tools" if state.get("function_calls") else END
        logger.info("[graph:route_after_request] iteration=%d -> %s", state.get("iteration") or 0, next_node)
        return next_node

    def build_graph(self):
        graph = StateGraph(ToolLoopState)

        graph.add_node("request_completion", self._request_completion)
        graph.add_node("execute_tools", self._execute_tools)

        graph.set_entry_point("request_completion")
        graph.add_conditional_edges("request_completion", self._route_after_request)
        graph.add_edge("execute_tools", "request_completion")

        return graph.compile()

    async def run(self, input_items: list[dict[str, Any]], turn: TurnSettings) -> Any:
        """Drive the loop and return the final provider response (the one without function calls)."""
        initial: ToolLoopState = {
            "turn": turn,
            "input": list(input_items),
            "response": None,
            "function_calls": [],
            "iteration": 0,
        }
        # two graph steps per round plus the final request
        config = {"recursion_limit": 2 * turn.max_iterations + 4}
        final = await self.graph.ainvoke(initial, config=config)
        logger.info("[graph:run] END iterations=%d", final.get("iteration") or 0)
        return final["response"]
