"""
Pooled HTTP client for outbound provider calls.

OAuth token exchanges (Google, Microsoft) and Google Calendar event reads
share one httpx.AsyncClient. main.py starts it in the lifespan and closes it
on shutdown; code running outside the app (tests, one-off jobs) gets it
started lazily on first use.

Usage:
    client = await http_client_manager.get_client()
    response = await client.post(provider.token_url, data=form)
"""

import logging
from typing import Optional

import httpx

from app.shared.constants import SERVICE_NAME

logger = logging.getLogger("ReMember.HTTP.Client")

# Token endpoints answer quickly; calendar listings can be slow on big calendars
CONNECT_TIMEOUT = 5.0
READ_TIMEOUT = 20.0


class HTTPClientManager:
    """Owns the shared client and its connection limits."""

    def __init__(self, max_connections: int = 20, max_keepalive_connections: int = 5):
        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: Optional[httpx.AsyncClient] = None
        self._initialized = False

    async def startup(self) -> None:
        if self._initialized:
            return

        self._client = httpx.AsyncClient(
            limits=self._limits,
            timeout=httpx.Timeout(READ_TIMEOUT, connect=CONNECT_TIMEOUT),
            headers={"User-Agent": SERVICE_NAME},
        )
        self._initialized = True
        logger.info(f"HTTP client started (max_connections={self._limits.max_connections})")

    async def shutdown(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        self._initialized = False
        logger.info("HTTP client closed")

    async def get_client(self) -> httpx.AsyncClient:
        if self._client is None or not self._initialized:
            logger.warning("HTTP client used before startup, starting it now")
            await self.startup()
        return self._client


http_client_manager = HTTPClientManager()
