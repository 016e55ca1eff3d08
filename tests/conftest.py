"""
Pytest configuration and fixtures for channel client tests.

The transport is replaced by an in-memory fake with the same call shape as
a websockets client connection, so no socket is ever opened.
"""

import asyncio
import json

import pytest
import pytest_asyncio

from shared.config.settings import Settings
from ws_channels.components.core.constants import WSCloseCode
from ws_channels.components.events.router import ChannelRouter

# Marks the end of the inbound stream
_CLOSE = object()


class FakeTransport:
    """
    In-memory stand-in for a websockets ClientConnection.

    - connect(url, **kwargs) is the connector passed to Connection/Router
    - sent collects every outbound text frame
    - deliver(text) feeds one inbound message and returns once it was handled
    - drop(code, reason) simulates the server closing the socket
    - fail(exc) makes the reader raise *exc*
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.url: str | None = None
        self.connect_kwargs: dict = {}
        self.connect_calls = 0
        self.connect_error: BaseException | None = None
        self.send_error: BaseException | None = None
        self.close_calls: list[tuple[int, str]] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self._incoming: asyncio.Queue | None = None
        self._idle: asyncio.Event | None = None

    async def connect(self, url: str, **kwargs) -> "FakeTransport":
        self.connect_calls += 1
        self.url = url
        self.connect_kwargs = kwargs
        if self.connect_error is not None:
            raise self.connect_error

        self.close_code = None
        self.close_reason = None
        self._incoming = asyncio.Queue()
        self._idle = asyncio.Event()
        return self

    async def send(self, message: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls.append((code, reason))
        self.close_code = code
        self.close_reason = reason
        await self._incoming.put(_CLOSE)

    def __aiter__(self) -> "FakeTransport":
        return self

    async def __anext__(self):
        self._idle.set()
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        self._idle.clear()
        if isinstance(item, BaseException):
            raise item
        return item

    # Test controls -----------------------------------------------------------

    async def deliver(self, message: str | bytes | dict) -> None:
        if isinstance(message, dict):
            message = json.dumps(message)
        self._idle.clear()
        await self._incoming.put(message)
        await asyncio.wait_for(self._idle.wait(), timeout=1)

    async def drop(self, code: int = WSCloseCode.GOING_AWAY, reason: str = "going away") -> None:
        self.close_code = int(code)
        self.close_reason = reason
        await self._incoming.put(_CLOSE)

    async def fail(self, exc: BaseException) -> None:
        await self._incoming.put(exc)

    @property
    def frames(self) -> list[dict]:
        """Outbound frames, decoded."""
        return [json.loads(text) for text in self.sent]


async def _wait_for_close(router: ChannelRouter, trigger) -> tuple[int, str]:
    """Run *trigger* and wait until the router's connection reports on_close."""
    closed: asyncio.Future = asyncio.get_running_loop().create_future()

    def _on_close(code, reason):
        if not closed.done():
            closed.set_result((code, reason))

    router.on_close(_on_close)
    await trigger
    return await asyncio.wait_for(closed, timeout=1)


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def router(settings, transport):
    return ChannelRouter(settings=settings, connector=transport.connect)


@pytest_asyncio.fixture
async def connected_router(router):
    """A router whose connection is OPEN on the fake transport."""
    await router.connect(token="test-token")
    yield router
    await router.disconnect()


def _reply(topic: str, ref: str | None, status: str = "ok", event: str = "phx_reply") -> dict:
    """Build a join reply frame as the server sends it."""
    return {
        "topic": topic,
        "event": event,
        "payload": {"status": status, "response": {}},
        "ref": ref,
    }


@pytest.fixture
def reply():
    return _reply


@pytest.fixture
def wait_for_close():
    return _wait_for_close
