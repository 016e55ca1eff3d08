"""
Channel Router - topic-oriented API over one shared Connection.

Outbound: join / leave / push are gated by connection state and the Topic
Registry, stamped with a fresh ref, encoded and sent.
Inbound: every text message is decoded and handed to the handlers registered
for its exact (topic, event) pair, in registration order.

Join acknowledgment contract:
    A JOINING topic becomes JOINED when a frame arrives on that topic with
    event == settings.join_ack_event (default "phx_reply"), a ref equal to
    the join frame's ref (or no ref), and payload["status"] equal to
    settings.join_ack_status (default "ok"). A matching reply with any other
    status removes the topic. The acknowledgment is still dispatched to
    handlers registered for that pair.

Usage:
    router = ChannelRouter()
    router.on("feed:user_7", "like_update", on_likes)
    await router.connect(token=token)
    await router.join("feed:user_7")
    await router.push("feed:user_7", "like_item", {"product_id": "p1"})
    await router.disconnect()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shared.config.logging import get_logger
from shared.config.settings import Settings, get_settings
from shared.infrastructure.correlation import frame_scope
from shared.utils.exceptions import (
    DecodeError,
    DuplicateJoinError,
    NotConnectedError,
    TopicNotJoinedError,
)
from ws_channels.components.connection.transport import Connection, Connector
from ws_channels.components.core.callbacks import Callback, invoke_callback
from ws_channels.components.core.constants import ChannelEvent, ConnectionState, TopicState
from ws_channels.components.core.context import sanitize_log_data
from ws_channels.components.events.handlers import HandlerRegistry, Subscription
from ws_channels.components.protocol.frame import Frame, decode, encode
from ws_channels.components.protocol.refs import RefAllocator
from ws_channels.components.protocol.topics import is_known_event, parse_topic
from ws_channels.components.registry.topics import TopicRegistry

logger = get_logger(__name__)

# Verbs that only join() / leave() may send
_RESERVED_PUSH_EVENTS = frozenset({ChannelEvent.JOIN.value, ChannelEvent.LEAVE.value})


@dataclass
class DispatchResult:
    """Result of dispatching one inbound message."""

    frame: Frame | None = None
    handled: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def decoded(self) -> bool:
        return self.frame is not None

    @property
    def success(self) -> bool:
        """Whether the message decoded and every handler completed."""
        return self.decoded and not self.errors


class ChannelRouter:
    """
    Owns one Connection, its Topic Registry and its handler map.

    Instances are independent: construct one per client and tear it down
    with disconnect().
    """

    def __init__(
        self,
        settings: Settings | None = None,
        connector: Connector | None = None,
        connection: Connection | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._connection = connection or Connection(self._settings, connector)
        self._registry = TopicRegistry()
        self._handlers = HandlerRegistry()
        self._refs = RefAllocator()

        # Registered first so the registry is already cleared when caller
        # on_close callbacks run.
        self._connection.on_open(self._handle_open)
        self._connection.on_close(self._handle_close)
        self._connection.on_message(self.dispatch)

    async def __aenter__(self) -> "ChannelRouter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def registry(self) -> TopicRegistry:
        return self._registry

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    def is_joined(self, topic: str) -> bool:
        return self._registry.is_joined(topic)

    def is_joining(self, topic: str) -> bool:
        return self._registry.is_joining(topic)

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(
        self,
        token: str | None = None,
        url: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        """
        Open the connection. The token is opaque and travels as the
        settings.token_param query parameter alongside any other params.
        """
        merged = dict(params or {})
        if token is not None:
            merged[self._settings.token_param] = token
        await self._connection.open(url, merged)

    async def disconnect(self) -> None:
        await self._connection.close()

    def on_open(self, callback: Callback) -> Callback:
        return self._connection.on_open(callback)

    def on_close(self, callback: Callback) -> Callback:
        return self._connection.on_close(callback)

    def on_error(self, callback: Callback) -> Callback:
        return self._connection.on_error(callback)

    def _handle_open(self) -> None:
        self._refs = RefAllocator()

    def _handle_close(self, code: int, reason: str) -> None:
        topics = self._registry.clear()
        logger.info(
            "Socket closed, topics cleared",
            code=code,
            reason=reason,
            topics=len(topics),
        )

    # =========================================================================
    # Outbound
    # =========================================================================

    async def join(self, topic: str) -> str | None:
        """
        Send phx_join for *topic* and mark it JOINING.

        Returns:
            The join ref, or None if the topic was already joining/joined.

        Raises:
            NotConnectedError: The connection is not OPEN.
            DuplicateJoinError: Already registered and settings.strict_joins.
            ValueError: *topic* is empty or not a string; nothing is registered.
        """
        self._require_open("join", topic)

        state = self._registry.state(topic)
        if state is not TopicState.ABSENT:
            if self._settings.strict_joins:
                raise DuplicateJoinError(topic, state.value)
            logger.warning("Duplicate join ignored", topic=topic, state=state.value)
            return None

        ref = self._refs.next()
        # Registered before the send is awaited so an acknowledgment that
        # races the send, or a concurrent join, sees JOINING. A join whose
        # frame never went out leaves no trace.
        self._registry.mark_joining(topic, join_ref=ref)
        try:
            await self._send(topic, ChannelEvent.JOIN.value, {}, ref)
        except Exception:
            self._registry.remove(topic)
            raise
        return ref

    async def leave(self, topic: str) -> str | None:
        """
        Send phx_leave for *topic* and drop it from the registry at once
        (without waiting for the server).

        Returns:
            The leave ref, or None if the topic was not registered.

        Raises:
            NotConnectedError: The connection is not OPEN.
        """
        self._require_open("leave", topic)

        if not self._registry.is_registered(topic):
            logger.info("Leave ignored, topic not joined", topic=topic)
            return None

        ref = self._refs.next()
        self._registry.remove(topic)
        await self._send(topic, ChannelEvent.LEAVE.value, {}, ref)
        return ref

    async def push(self, topic: str, event: str, payload: Any = None) -> str:
        """
        Send a domain event on a registered topic. Never queued: a push that
        cannot be sent now raises.

        Returns:
            The ref of the sent frame.

        Raises:
            NotConnectedError: The connection is not OPEN.
            TopicNotJoinedError: The topic is not joining or joined.
            ValueError: *event* is phx_join / phx_leave.
        """
        self._require_open("push", topic, event=event)

        if not self._registry.is_registered(topic):
            raise TopicNotJoinedError(topic, event=event)
        if event in _RESERVED_PUSH_EVENTS:
            raise ValueError(f"{event} is sent by join()/leave(), not push()")

        if not is_known_event(topic, event):
            logger.debug("Pushing event outside the namespace contract", topic=topic, event=event)

        ref = self._refs.next()
        await self._send(topic, event, {} if payload is None else payload, ref)
        return ref

    def _require_open(self, operation: str, topic: str, **context: Any) -> None:
        if not self._connection.is_open:
            raise NotConnectedError(
                operation,
                topic=topic,
                state=self._connection.state.value,
                **context,
            )

    async def _send(self, topic: str, event: str, payload: Any, ref: str) -> None:
        text = encode(topic, event, payload, ref)
        with frame_scope(topic, ref):
            logger.debug("SEND", topic=topic, event=event)
            await self._connection.send(text)

    # =========================================================================
    # Handler registration
    # =========================================================================

    def on(self, topic: str, event: str, handler: Callback) -> Subscription:
        """
        Register *handler* for the exact (topic, event) pair.

        The handler receives the frame payload and may be a coroutine function.
        """
        try:
            parse_topic(topic)
        except ValueError:
            logger.debug("Handler registered on a non-namespaced topic", topic=topic)
        return self._handlers.add(topic, event, handler)

    def off(self, subscription: Subscription) -> bool:
        return self._handlers.remove(subscription)

    # =========================================================================
    # Inbound
    # =========================================================================

    async def dispatch(self, raw: str) -> DispatchResult:
        """
        Decode one inbound message and invoke the matching handlers.

        Never raises: malformed text is logged and discarded, handler
        failures are logged and do not stop the remaining handlers.
        """
        try:
            frame = decode(raw)
        except DecodeError as e:
            logger.warning(
                "Discarding malformed frame",
                reason=e.reason,
                raw=sanitize_log_data(raw, self._settings.log_frame_max_length),
            )
            return DispatchResult(errors=[e.reason])

        result = DispatchResult(frame=frame)

        with frame_scope(frame.topic, frame.ref):
            logger.debug("RECV", topic=frame.topic, event=frame.event)

            self._apply_join_ack(frame)

            handlers = self._handlers.handlers_for(frame.topic, frame.event)
            if not handlers:
                logger.debug("No handler for frame", topic=frame.topic, event=frame.event)
                return result

            for handler in handlers:
                try:
                    await invoke_callback(handler, frame.payload)
                    result.handled += 1
                except Exception as e:
                    result.errors.append(f"{type(e).__name__}: {e}")
                    logger.error(
                        "Frame handler failed",
                        topic=frame.topic,
                        event=frame.event,
                        handler=getattr(handler, "__qualname__", repr(handler)),
                        exc_info=True,
                    )

        return result

    def _apply_join_ack(self, frame: Frame) -> None:
        if frame.event != self._settings.join_ack_event:
            return
        if not self._registry.is_joining(frame.topic):
            return

        join_ref = self._registry.join_ref(frame.topic)
        if frame.ref is not None and join_ref is not None and frame.ref != join_ref:
            return

        expected = self._settings.join_ack_status
        if not expected:
            self._registry.mark_joined(frame.topic)
            logger.info("Joined topic", topic=frame.topic)
            return

        status = frame.payload.get("status") if isinstance(frame.payload, dict) else None
        if status == expected:
            self._registry.mark_joined(frame.topic)
            logger.info("Joined topic", topic=frame.topic)
        else:
            self._registry.remove(frame.topic)
            logger.warning("Join rejected", topic=frame.topic, status=status)

    # =========================================================================
    # Utility methods
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        return {
            "state": self._connection.state.value,
            "last_ref": self._refs.last,
            **self._registry.get_stats(),
            **self._handlers.get_stats(),
        }
