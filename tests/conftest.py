"""
Pytest configuration for Avatica SDK tests.

Unit tests talk to an in-process fake Avatica server through
``httpx.MockTransport``. Integration tests (marked ``integration``) need a
real Avatica server, such as the Phoenix Query Server, at ``AVATICA_URL`` and
are skipped when nothing answers there.

Shared helpers are defined here so every test file can import them.
"""

import os
import socket
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse

import httpx
import pytest

from avatica_sdk.client import AvaticaClient
from avatica_sdk.protocol.schema import ErrorResponse, WireMessage

# ---------------------------------------------------------------------------
# Shared connection constants (import these in test files)
# ---------------------------------------------------------------------------
AVATICA_URL = os.getenv("AVATICA_URL", "http://localhost:8765")
FAKE_URL = "http://avatica.test:8765"
RESPONSE_PREFIX = "org.apache.calcite.avatica.proto.Responses$"


def is_port_responding(url: str = AVATICA_URL) -> bool:
    """Check if the Avatica port is responding (basic TCP check)."""
    parsed = urlparse(url)
    try:
        with socket.create_connection((parsed.hostname or "localhost", parsed.port or 80), timeout=2):
            return True
    except OSError:
        return False


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "integration: requires a running Avatica server at AVATICA_URL")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if any("integration" in item.keywords for item in items) and is_port_responding():
        return
    skip = pytest.mark.skip(reason=f"No Avatica server at {AVATICA_URL}")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


# ---------------------------------------------------------------------------
# Fake server helpers
# ---------------------------------------------------------------------------


def envelope(message: Any) -> bytes:
    """Wrap a response message the way the server does."""
    return WireMessage(
        name=RESPONSE_PREFIX + message.DESCRIPTOR.name,
        wrapped_message=message.SerializeToString(),
    ).SerializeToString()


def ok(message: Any) -> httpx.Response:
    return httpx.Response(200, content=envelope(message))


def error(
    status: int,
    message: str = "boom",
    error_code: int = 0,
    sql_state: str = "00000",
    severity: int = 2,
    exceptions: list[str] | None = None,
) -> httpx.Response:
    """An error response carrying an ``ErrorResponse`` envelope."""
    response = ErrorResponse(
        error_message=message,
        error_code=error_code,
        sql_state=sql_state,
        severity=severity,
    )
    if exceptions is not None:
        response.exceptions.extend(exceptions)
        response.has_exceptions = True
    return httpx.Response(status, content=envelope(response))


class FakeAvatica:
    """
    Scripted Avatica endpoint.

    Replies with the queued responses in order and records every request.
    A queued exception is raised instead of answering.
    """

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def request(self, index: int = -1) -> tuple[str, bytes]:
        """Envelope name and payload of a recorded request."""
        wire = WireMessage()
        wire.ParseFromString(self.requests[index].content)
        return wire.name, wire.wrapped_message

    def decoded(self, message_type: Any, index: int = -1) -> Any:
        _, payload = self.request(index)
        message = message_type()
        message.ParseFromString(payload)
        return message


@pytest.fixture
def make_client() -> Callable[..., AvaticaClient]:
    """Build an ``AvaticaClient`` wired to a ``FakeAvatica``."""

    def factory(fake: FakeAvatica, **kwargs: Any) -> AvaticaClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
        return AvaticaClient(FAKE_URL, http_client=http_client, **kwargs)

    return factory
