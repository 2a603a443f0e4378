"""
Backend collaborator client: event ingestion, remote agent resolution, and the
raw run/stream endpoints used by proxy mode.

Responsibility: HTTP only. Callers decide which failures are fatal.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from ai_agents.core.config import BACKEND_TIMEOUT

logger = logging.getLogger(__name__)

RUN_PATH = "/api/ai-agents/run"
STREAM_PATH = "/api/ai-agents/stream"
RESOLVE_PATH = "/api/ai-agents/agents/resolve"
EVENTS_PATH = "/api/ai-agents/events"

JSON_HEADERS = {"Content-Type": "application/json"}


class BackendClient:
    """Thin async wrapper over the backend's /api/ai-agents endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = BACKEND_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self._http = http_client
        self._owns_http = http_client is None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        return self._http

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def ingest_event(self, body: dict[str, Any]) -> dict[str, Any] | None:
        """
        POST an event and return the decoded body, or None on a non-success status.
        Transport errors propagate; the persistence chain swallows them.
        """
        response = await self.http.post(self.url(EVENTS_PATH), json=body, headers=JSON_HEADERS)
        if not response.is_success:
            logger.warning("[backend:ingest_event] %s -> HTTP %s", body.get("event_name"), response.status_code)
            return None
        data = response.json()
        return data if isinstance(data, dict) else None

    async def sync_event(self, event: dict[str, Any]) -> None:
        """Best-effort event sync: the response is ignored and every failure is swallowed."""
        try:
            await self.http.post(self.url(EVENTS_PATH), json=event, headers=JSON_HEADERS)
        except httpx.HTTPError as e:
            logger.warning("[backend:sync_event] %s failed: %s", event.get("event_name"), e)

    async def resolve_agent(self, ref: Any) -> dict[str, Any] | None:
        """Ask the backend for an agent definition. Non-success status or transport error is a miss."""
        try:
            response = await self.http.post(self.url(RESOLVE_PATH), json={"agent": ref}, headers=JSON_HEADERS)
        except httpx.HTTPError as e:
            logger.warning("[backend:resolve_agent] ref=%r failed: %s", ref, e)
            return None
        if not response.is_success:
            logger.info("[backend:resolve_agent] ref=%r -> HTTP %s", ref, response.status_code)
            return None
        data = response.json()
        return data if isinstance(data, dict) else None

    async def post_run(self, payload: dict[str, Any]) -> httpx.Response:
        return await self.http.post(self.url(RUN_PATH), json=payload, headers=JSON_HEADERS)

    @asynccontextmanager
    async def open_stream(self, payload: dict[str, Any]) -> AsyncIterator[httpx.Response]:
        async with self.http.stream("POST", self.url(STREAM_PATH), json=payload, headers=JSON_HEADERS) as response:
            yield response
