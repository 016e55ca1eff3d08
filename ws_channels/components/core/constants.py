"""
Channel Client Constants.

Centralized protocol verbs, state enums and close codes, with the rationale
for each default documented next to it.
"""

from enum import Enum, IntEnum
from typing import Final

__all__ = [
    "WSCloseCode",
    "ChannelEvent",
    "ConnectionState",
    "TopicState",
    "WSConstants",
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes seen by the client.

    Standard codes (1000-1999) from RFC 6455.
    """

    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Server shutting down or client navigating away
    ABNORMAL = 1006  # Connection dropped without a closing handshake


class ChannelEvent(str, Enum):
    """
    Reserved channel protocol events.

    Domain events (message, like_item, ...) are plain strings; these are the
    lifecycle verbs the protocol itself defines.
    """

    JOIN = "phx_join"
    LEAVE = "phx_leave"


class ConnectionState(str, Enum):
    """Transport lifecycle: CLOSED -> CONNECTING -> OPEN -> CLOSED."""

    CLOSED = "CLOSED"
    CONNECTING = "CONNECTING"
    OPEN = "OPEN"


class TopicState(str, Enum):
    """Per-topic join lifecycle: ABSENT -> JOINING -> JOINED -> ABSENT."""

    ABSENT = "ABSENT"
    JOINING = "JOINING"
    JOINED = "JOINED"


class WSConstants:
    """
    Channel client operational constants.

    Fixed protocol values. Tunable values (timeouts, the join-ack contract)
    live in `shared.config.settings` instead.
    """

    # FIRST_REF: 1
    # Refs start at 1 for every connection lifetime.
    FIRST_REF: Final[int] = 1

    # TOPIC_SEPARATOR: ":"
    # Topic keys are "<namespace>:<identifier>".
    TOPIC_SEPARATOR: Final[str] = ":"
