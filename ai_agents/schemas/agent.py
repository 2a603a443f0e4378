"""Schemas for agents and agent references."""

from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Agent(BaseModel):
    """A named configuration of model, instructions, sampling settings and allowed tools."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | int | None = Field(None, description="Agent id; defaults to the name.")
    name: str | None = Field(None, description="Human-readable agent name, also usable as a lookup key.")
    model: str | None = Field(None, description="Provider model identifier, e.g. gpt-4.1-mini.")
    instructions: str = Field("", description="System instructions sent ahead of the conversation.")
    temperature: float | None = None
    max_output_tokens: int | None = None
    tools: list[str] = Field(default_factory=list, description="Tool names this agent may call; empty means all.")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") in (None, ""):
                data["id"] = data.get("name")
            for key, empty in (("instructions", ""), ("tools", []), ("metadata", {})):
                if data.get(key) is None:
                    data[key] = empty
        return data


@dataclass(frozen=True)
class LocalAgentRef:
    """Reference to an agent by id or name, resolved through the registry."""

    key: str | int


@dataclass(frozen=True)
class InlineAgentRef:
    """Ad-hoc agent definition passed with the turn; never registered."""

    agent: Agent


AgentRef = Union[LocalAgentRef, InlineAgentRef]


def to_agent_ref(value: Any) -> AgentRef:
    """
    Classify a caller-supplied agent reference.

    Inline definitions must carry a model; anything else (string id, numeric id,
    name, or a dict without a model) is treated as a key to look up.
    """
    if isinstance(value, (LocalAgentRef, InlineAgentRef)):
        return value
    if isinstance(value, Agent):
        if value.model:
            return InlineAgentRef(value)
        return LocalAgentRef(value.id if value.id is not None else str(value.name))
    if isinstance(value, dict):
        if value.get("model"):
            return InlineAgentRef(Agent.model_validate(value))
        key = value.get("id") if value.get("id") is not None else value.get("name")
        return LocalAgentRef(key if key is not None else str(value))
    return LocalAgentRef(value)
