"""
Agent LLM: OpenAI Responses API (direct mode).

Builds request input from agent + history, calls responses.create /
responses.stream, and reads text, ids, function calls and usage back out of
the response. Response objects may be SDK models or plain dicts.
"""

import logging
from typing import Any, AsyncIterator

from openai import AsyncOpenAI

from ai_agents.core.config import MAX_HISTORY_MESSAGES, ClientConfig
from ai_agents.schemas.agent import Agent
from ai_agents.schemas.run import Usage

logger = logging.getLogger(__name__)

TEXT_DELTA_EVENT = "response.output_text.delta"


def field_of(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK model or a dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        value = obj.get(name, default)
    else:
        value = getattr(obj, name, default)
    return default if value is None else value


def get_openai_client(config: ClientConfig) -> AsyncOpenAI:
    """Create the async OpenAI client for direct mode."""
    return AsyncOpenAI(
        api_key=config.api_key or None,
        organization=config.org_id or None,
        project=config.project_id or None,
    )


def _text_entry(role: str, text: str) -> dict[str, Any]:
    return {"role": role, "content": [{"type": "input_text", "text": text}]}


def normalize_messages(
    agent: Agent,
    message: str,
    history: list[dict[str, Any]],
    max_history: int | None = None,
    previous_response_id: str | None = None,
) -> list[dict[str, Any]]:
    """
    Request input for one turn. When continuing from a previous response the
    provider already holds the history, so only the new user turn is sent.
    Instructions lead as a system entry in both cases.
    """
    items: list[dict[str, Any]] = []
    if agent.instructions:
        items.append(_text_entry("system", agent.instructions))
    if not previous_response_id:
        limit = max_history or MAX_HISTORY_MESSAGES
        items.extend(list(history)[-limit:])
    items.append(_text_entry("user", message))
    return items


def build_request(
    agent: Agent,
    input_items: list[dict[str, Any]],
    tools: list[dict[str, Any]],
    previous_response_id: str | None = None,
) -> dict[str, Any]:
    """Keyword arguments for responses.create / responses.stream; unset options are omitted."""
    request: dict[str, Any] = {"model": agent.model, "input": input_items}
    if previous_response_id:
        request["previous_response_id"] = previous_response_id
    if tools:
        request["tools"] = tools
    if agent.temperature is not None:
        request["temperature"] = agent.temperature
    if agent.max_output_tokens is not None:
        request["max_output_tokens"] = agent.max_output_tokens
    return request


async def create_response(openai: Any, request: dict[str, Any]) -> Any:
    logger.info(
        "[llm:create_response] IN  model=%s input_items=%d previous_response_id=%s",
        request.get("model"),
        len(request.get("input") or []),
        request.get("previous_response_id"),
    )
    response = await openai.responses.create(**request)
    logger.info("[llm:create_response] OUT response_id=%s", field_of(response, "id"))
    return response


async def stream_response(openai: Any, request: dict[str, Any]) -> AsyncIterator[tuple]:
    """
    Stream a response. Yields:
    - ("delta", str) for each output text fragment;
    - ("final", response) once, after the stream completes.
    """
    logger.info("[llm:stream_response] IN  model=%s", request.get("model"))
    async with openai.responses.stream(**request) as stream:
        async for event in stream:
            if field_of(event, "type") == TEXT_DELTA_EVENT:
                delta = field_of(event, "delta", "")
                if delta:
                    yield ("delta", delta)
        final = await stream.get_final_response()
    logger.info("[llm:stream_response] OUT response_id=%s", field_of(final, "id"))
    yield ("final", final)


def extract_output_text(response: Any) -> str:
    """Concatenate output_text blocks from every output item."""
    chunks: list[str] = []
    for item in field_of(response, "output", []) or []:
        for block in field_of(item, "content", []) or []:
            text = field_of(block, "text")
            if field_of(block, "type") == "output_text" and text:
                chunks.append(text)
    return "\n".join(chunks).strip()


def extract_output_message_id(response: Any) -> str | None:
    for item in field_of(response, "output", []) or []:
        if field_of(item, "type") == "message" and field_of(item, "id"):
            return field_of(item, "id")
    return None


def extract_function_calls(response: Any) -> list[dict[str, Any]]:
    """Function calls requested by the model, as {call_id, name, arguments} dicts."""
    calls = []
    for item in field_of(response, "output", []) or []:
        if field_of(item, "type") != "function_call":
            continue
        calls.append({
            "call_id": field_of(item, "call_id", ""),
            "name": field_of(item, "name", ""),
            "arguments": field_of(item, "arguments", "{}"),
        })
    return calls


def extract_usage(response: Any) -> Usage:
    usage = field_of(response, "usage")
    return Usage(
        prompt_tokens=field_of(usage, "input_tokens", 0),
        completion_tokens=field_of(usage, "output_tokens", 0),
        total_tokens=field_of(usage, "total_tokens", 0),
    )
