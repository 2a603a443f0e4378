"""Schemas for a single turn: request parameters, result and persistence events."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ai_agents.core.config import MAX_HISTORY_MESSAGES, MAX_TOOL_ITERATIONS
from ai_agents.core.errors import MessageRequiredError


class RunParams(BaseModel):
    """
    Caller-supplied turn request. Unknown keys are kept so proxy mode can
    forward the caller's object unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    agent: Any = Field(None, description="Agent id, name, or inline definition carrying a model.")
    message: str = Field(..., description="User message for this turn.")
    messages: list[dict[str, Any]] | None = Field(None, description="Explicit history; overrides stored state when non-empty.")
    conversation_id: Any = None
    conversation_key: Any = None
    user_id: Any = None
    replying_to: str | None = None
    previous_response_id: str | None = None
    metadata: dict[str, Any] | None = None
    max_history_messages: int | None = None
    max_tool_iterations: int | None = Field(None, alias="maxToolIterations")
    idempotency_key: str | None = None
    idempotency_key_response: str | None = None
    client_message_id: str | None = None
    context: Any = Field(None, exclude=True, description="Opaque object handed to tool handlers.")

    @property
    def history_limit(self) -> int:
        return self.max_history_messages or MAX_HISTORY_MESSAGES

    @property
    def iteration_limit(self) -> int:
        return self.max_tool_iterations or MAX_TOOL_ITERATIONS

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the backend: only what the caller set, context excluded."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


def parse_run_params(params: "RunParams | dict[str, Any]") -> RunParams:
    """
    Validate caller input. A missing, empty or non-string message raises
    MessageRequiredError before anything touches the network.
    """
    if isinstance(params, RunParams):
        return params
    raw = dict(params or {})
    message = raw.get("message")
    if not message or not isinstance(message, str):
        raise MessageRequiredError()
    return RunParams.model_validate(raw)


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class RunResult(BaseModel):
    """Outcome of one completed turn."""

    conversation_id: Any = None
    output_text: str = ""
    response_id: str | None = None
    output_message_id: str | None = None
    usage: Usage = Field(default_factory=Usage)
    cost_usd: float = 0
    raw: Any = None


class PersistenceEvent(BaseModel):
    """Event body POSTed to the backend events endpoint."""

    event_name: str
    idempotency_key: str | None = None
    process_now: bool = True
    agent_id: int | float | None = None
    conversation_id: Any = None
    payload: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
