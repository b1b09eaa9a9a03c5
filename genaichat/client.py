"""
HTTP client for the completion gateway.
One POST per turn, no retries. Non-2xx responses become GatewayError;
transport failures surface as httpx exceptions.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The gateway answered, but not with a 2xx."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Server error: {status_code} - {body}")


class GatewayClient:

    def __init__(self, url: str, timeout: float = 120):
        self.url = url
        self.timeout = timeout

    async def complete(self, messages: list[dict]) -> str | None:
        """
        Send the full transcript and return the gateway's reply text.
        Returns None when the response carries no reply.
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.url, json={"messages": messages})

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.warning("Gateway %s returned HTTP %d", self.url, resp.status_code)
            raise GatewayError(resp.status_code, resp.text)

        data = resp.json()
        reply = data.get("reply") if isinstance(data, dict) else None
        return reply if isinstance(reply, str) else None

    async def health(self) -> dict:
        """GET the gateway's /health next to its completion route."""
        url = httpx.URL(self.url).join("/health")
        async with httpx.AsyncClient(timeout=5) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.json()
