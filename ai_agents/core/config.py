"""
Client configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and
library-wide defaults. Keeps the rest of the package decoupled from how
config is sourced.
"""

import os
from dataclasses import dataclass, field
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# Backend collaborator (persistence, remote agents, proxy mode)
BACKEND_URL: str = os.getenv("BACKEND_URL", "").strip().rstrip("/")
BACKEND_TIMEOUT: float = float(os.getenv("BACKEND_TIMEOUT", "30") or 30)

# OpenAI (direct mode)
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_ORG_ID: str = os.getenv("OPENAI_ORG_ID", "").strip()
OPENAI_PROJECT_ID: str = os.getenv("OPENAI_PROJECT_ID", "").strip()

# "direct" or "proxy"; empty means infer from BACKEND_URL / OPENAI_API_KEY
AGENT_MODE: str = os.getenv("AGENT_MODE", "").strip().lower()

# Agent used by the HTTP chat adapter
AGENT_ID: str = os.getenv("AGENT_ID", "default-agent").strip() or "default-agent"
# When set, the chat adapter registers AGENT_ID locally instead of resolving it via the backend
AGENT_MODEL: str = os.getenv("AGENT_MODEL", "").strip()
AGENT_INSTRUCTIONS: str = os.getenv("AGENT_INSTRUCTIONS", "").strip()

# Turn defaults
MAX_HISTORY_MESSAGES: int = 30
MAX_TOOL_ITERATIONS: int = 8

# USD per million tokens
DEFAULT_PRICING: dict[str, dict[str, float]] = {
    "gpt-4.1": {"prompt_per_million": 2.0, "completion_per_million": 8.0},
    "gpt-4.1-mini": {"prompt_per_million": 0.4, "completion_per_million": 1.6},
    "gpt-4.1-nano": {"prompt_per_million": 0.1, "completion_per_million": 0.4},
}

DIRECT_MODE = "direct"
PROXY_MODE = "proxy"


@dataclass
class ClientConfig:
    """Settings for one AgentClient. Empty strings mean "not configured"."""

    backend_url: str = ""
    api_key: str = ""
    org_id: str = ""
    project_id: str = ""
    mode: str = ""
    pricing: dict[str, dict[str, float]] = field(default_factory=lambda: dict(DEFAULT_PRICING))
    backend_timeout: float = BACKEND_TIMEOUT

    def __post_init__(self) -> None:
        self.backend_url = (self.backend_url or "").strip().rstrip("/")
        self.mode = (self.mode or "").strip().lower()
        if not self.mode:
            self.mode = PROXY_MODE if self.backend_url and not self.api_key else DIRECT_MODE
        if self.mode not in (DIRECT_MODE, PROXY_MODE):
            raise ValueError(f"Unsupported mode: {self.mode!r} (expected 'direct' or 'proxy')")
        if self.mode == PROXY_MODE and not self.backend_url:
            raise ValueError("Proxy mode requires a backend_url")

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """Build a config from environment constants; keyword overrides win."""
        values: dict[str, Any] = {
            "backend_url": BACKEND_URL,
            "api_key": OPENAI_API_KEY,
            "org_id": OPENAI_ORG_ID,
            "project_id": OPENAI_PROJECT_ID,
            "mode": AGENT_MODE,
            "backend_timeout": BACKEND_TIMEOUT,
        }
        values.update(overrides)
        return cls(**values)

    @property
    def has_backend(self) -> bool:
        return bool(self.backend_url)
