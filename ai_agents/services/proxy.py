"""
Proxy mode: forward turn parameters to the backend, which runs the same
orchestration remotely. Results and stream chunks are relayed unchanged.
"""

import logging
from typing import Any, AsyncIterator

from ai_agents.core.errors import ProxyRunFailedError, ProxyStreamFailedError
from ai_agents.schemas.run import RunParams
from ai_agents.services.backend import BackendClient

logger = logging.getLogger(__name__)


class ProxyDispatcher:
    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend

    async def run(self, params: RunParams) -> Any:
        """POST params to the backend run endpoint and return its JSON body verbatim."""
        response = await self.backend.post_run(params.to_payload())
        if not response.is_success:
            logger.warning("[proxy:run] HTTP %s", response.status_code)
            raise ProxyRunFailedError(response.status_code)
        return response.json()

    async def run_stream(self, params: RunParams) -> AsyncIterator[str]:
        """Relay the backend stream chunk by chunk; a non-success status fails before any chunk."""
        async with self.backend.open_stream(params.to_payload()) as response:
            if not response.is_success:
                logger.warning("[proxy:run_stream] HTTP %s", response.status_code)
                raise ProxyStreamFailedError(response.status_code)
            async for chunk in response.aiter_text():
                yield chunk
