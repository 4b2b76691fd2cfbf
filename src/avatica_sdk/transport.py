"""
HTTP transport for the Avatica SDK.

Posts envelope bytes to the Avatica endpoint and retries transient server
failures. The transport never raises for HTTP-level outcomes; it reports
them as a ``TransportResponse``.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any

import httpx

from .config import ClientSettings
from .exceptions import NETWORK_ERROR_STATUS
from .protocol.wire import CONTENT_TYPE

logger = logging.getLogger(__name__)


def backoff_delay(attempts_remaining: int) -> float:
    """
    Seconds to wait before the next attempt.

    The delay is ``exp(-attempts_remaining)``, so it grows as the budget is
    used up: with 3 attempts the waits are e**-2 then e**-1.
    """
    return math.exp(-attempts_remaining)


@dataclass
class TransportResponse:
    """
    Outcome of one ``send``.

    Attributes:
        ok: True for a 2xx response
        status: HTTP status, or 599 when no response was obtained
        content: Raw response body
        message: Error text for failures
    """

    ok: bool
    status: int
    content: bytes = b""
    message: str | None = None

    @property
    def is_network_error(self) -> bool:
        return self.status == NETWORK_ERROR_STATUS

    @property
    def error(self) -> dict[str, Any] | None:
        """Failure payload, or None on success."""
        if self.ok:
            return None
        return {"message": self.message}


class HTTPTransport:
    """
    Request/response transport with retry of 5xx responses.

    The transport keeps no per-request state, so one instance can serve
    concurrent tasks as long as the underlying ``httpx.AsyncClient`` can.
    """

    def __init__(self, settings: ClientSettings, client: httpx.AsyncClient | None = None):
        """
        Initialize the transport.

        Args:
            settings: Validated client settings
            client: Optional HTTP client to use instead of a default one.
                    An injected client is never closed by the transport.
        """
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    @property
    def headers(self) -> dict[str, str]:
        return {**self.settings.headers, "Content-Type": CONTENT_TYPE}

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send(self, body: bytes) -> TransportResponse:
        """
        POST ``body`` to the endpoint.

        5xx responses are retried while the attempt budget lasts; network
        errors and every other status are returned at once.

        Args:
            body: Encoded envelope

        Returns:
            The transport outcome
        """
        if self._client is None:
            await self.open()
        assert self._client is not None

        response: httpx.Response | None = None
        attempts_remaining = self.settings.max_retries
        while attempts_remaining > 0:
            attempts_remaining -= 1
            logger.debug("POST %s (%d bytes)", self.settings.url, len(body))

            try:
                response = await self._client.post(self.settings.url, content=body, headers=self.headers)
            except httpx.RequestError as e:
                logger.warning("Request to %s failed: %s", self.settings.url, e)
                return TransportResponse(ok=False, status=NETWORK_ERROR_STATUS, message=str(e))

            if response.is_server_error and attempts_remaining > 0:
                delay = backoff_delay(attempts_remaining)
                logger.warning(
                    "Server returned %d, retrying in %.3fs (%d attempts left)",
                    response.status_code,
                    delay,
                    attempts_remaining,
                )
                await asyncio.sleep(delay)
                continue
            break

        assert response is not None
        if response.is_success:
            return TransportResponse(ok=True, status=response.status_code, content=response.content)
        return TransportResponse(
            ok=False,
            status=response.status_code,
            content=response.content,
            message=f"HTTP error: {response.status_code}",
        )


__all__ = ["HTTPTransport", "TransportResponse", "backoff_delay"]
