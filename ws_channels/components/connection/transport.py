"""
Connection - owns the single WebSocket transport.

Lifecycle:
    CLOSED --open()--> CONNECTING --handshake--> OPEN --close()/drop--> CLOSED

Every transport event is reported exactly once, in the order the transport
delivers it, to the registered callbacks:

    on_open()                 handshake completed
    on_message(raw_text)      one text frame received
    on_error(detail)          transport error (informational)
    on_close(code, reason)    transport closed

Usage:
    connection = Connection()
    connection.on_message(print)
    await connection.open(params={"token": token})
    await connection.send('{"topic": ...}')
    await connection.close()
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException

from shared.config.logging import get_logger
from shared.config.settings import Settings, get_settings
from shared.utils.exceptions import ConnectionOpenError, NotConnectedError
from ws_channels.components.core.callbacks import Callback, invoke_callback
from ws_channels.components.core.constants import ConnectionState, WSCloseCode
from ws_channels.components.core.context import ConnectionContext, build_url

logger = get_logger(__name__)


class Transport(Protocol):
    """The subset of a websockets client connection the Connection relies on."""

    close_code: int | None
    close_reason: str | None

    async def send(self, message: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


# Called as connector(url, open_timeout=..., close_timeout=...)
Connector = Callable[..., Awaitable[Transport]]

_LIFECYCLE_KINDS = ("open", "close", "error", "message")


class Connection:
    """One transport at a time; at most one live connection per instance."""

    def __init__(
        self,
        settings: Settings | None = None,
        connector: Connector | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._connector: Connector = connector or websockets.connect
        self._state = ConnectionState.CLOSED
        self._transport: Transport | None = None
        self._reader: asyncio.Task | None = None
        self._context: ConnectionContext | None = None
        # (code, reason) of a close() requested while CONNECTING
        self._pending_close: tuple[int, str] | None = None
        self._callbacks: dict[str, list[Callback]] = {kind: [] for kind in _LIFECYCLE_KINDS}

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def context(self) -> ConnectionContext | None:
        """Metadata of the current (or last) connection attempt."""
        return self._context

    # =========================================================================
    # Callback registration
    # =========================================================================

    def on_open(self, callback: Callback) -> Callback:
        return self._register("open", callback)

    def on_close(self, callback: Callback) -> Callback:
        return self._register("close", callback)

    def on_error(self, callback: Callback) -> Callback:
        return self._register("error", callback)

    def on_message(self, callback: Callback) -> Callback:
        return self._register("message", callback)

    def _register(self, kind: str, callback: Callback) -> Callback:
        if not callable(callback):
            raise TypeError(f"{kind} callback must be callable")
        self._callbacks[kind].append(callback)
        return callback

    async def _emit(self, kind: str, *args: Any) -> None:
        """Run every callback of *kind*; a failing callback does not stop the rest."""
        for callback in list(self._callbacks[kind]):
            try:
                await invoke_callback(callback, *args)
            except Exception:
                logger.error(
                    "Connection callback failed",
                    kind=kind,
                    callback=getattr(callback, "__qualname__", repr(callback)),
                    exc_info=True,
                )

    # =========================================================================
    # Operations
    # =========================================================================

    async def open(self, url: str | None = None, params: dict[str, Any] | None = None) -> None:
        """
        Establish the transport, embedding *params* (e.g. the token) in the URL.

        Opening an already OPEN or CONNECTING connection is a logged no-op.
        If close() was called during the handshake, the new transport is
        closed as soon as it is established: on_close fires, on_open does not.

        Raises:
            ConnectionOpenError: Handshake failed or timed out. The state is
                back to CLOSED and on_error has fired.
        """
        if self._state is not ConnectionState.CLOSED:
            logger.info("Socket already connected", state=self._state.value)
            return

        url = url or self._settings.socket_url
        context = ConnectionContext.from_params(url, params, self._settings.token_param)
        self._context = context
        self._pending_close = None
        self._state = ConnectionState.CONNECTING
        logger.info("Connecting", url=url)

        try:
            transport = await self._connector(
                build_url(url, params),
                open_timeout=self._settings.open_timeout,
                close_timeout=self._settings.close_timeout,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            self._state = ConnectionState.CLOSED
            self._pending_close = None
            detail = str(e) or type(e).__name__
            context.audit("CONNECT_FAILED", reason=detail)
            await self._emit("error", detail)
            raise ConnectionOpenError(url, detail) from e

        pending, self._pending_close = self._pending_close, None
        if pending is not None:
            code, reason = pending
            logger.info("Applying close requested during handshake", code=code)
            await transport.close(code, reason)
            self._state = ConnectionState.CLOSED
            context.audit("DISCONNECT", code=code, reason=reason)
            await self._emit("close", code, reason)
            return

        self._transport = transport
        self._state = ConnectionState.OPEN
        self._reader = asyncio.create_task(
            self._read_loop(transport), name="ws-channels-reader"
        )
        context.audit("CONNECT")
        await self._emit("open")

    async def send(self, text: str) -> None:
        """
        Transmit *text* verbatim.

        Raises:
            NotConnectedError: The connection is not OPEN (nothing is sent),
                or the transport closed underneath the send.
        """
        transport = self._transport
        if self._state is not ConnectionState.OPEN or transport is None:
            raise NotConnectedError("send", state=self._state.value)

        try:
            await transport.send(text)
        except ConnectionClosed as e:
            raise NotConnectedError("send", state=self._state.value, reason=str(e)) from e

    async def close(self, code: int = WSCloseCode.NORMAL, reason: str = "") -> None:
        """
        Close the transport and wait until on_close has been reported.

        Safe to call from inside a message callback; in that case on_close
        fires once the current callback returns. While CONNECTING the close
        is recorded and applied when the handshake completes.
        """
        if self._state is ConnectionState.CONNECTING:
            logger.info("Close requested during handshake", code=int(code))
            self._pending_close = (int(code), reason)
            return

        transport, reader = self._transport, self._reader
        if transport is None:
            logger.debug("Close requested with no open socket", state=self._state.value)
            return

        logger.info("Closing socket", code=int(code))
        await transport.close(int(code), reason)

        if reader is not None and reader is not asyncio.current_task():
            await reader

    # =========================================================================
    # Reader
    # =========================================================================

    async def _read_loop(self, transport: Transport) -> None:
        try:
            async for message in transport:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                await self._emit("message", message)
        except ConnectionClosedError as e:
            await self._emit("error", str(e))
        finally:
            await self._handle_closed(transport)

    async def _handle_closed(self, transport: Transport) -> None:
        if self._transport is not transport:
            return

        self._transport = None
        self._reader = None
        self._state = ConnectionState.CLOSED

        code = transport.close_code
        if code is None:
            code = WSCloseCode.ABNORMAL
        reason = transport.close_reason or ""

        if self._context is not None:
            self._context.audit("DISCONNECT", code=int(code), reason=reason)
        await self._emit("close", int(code), reason)
