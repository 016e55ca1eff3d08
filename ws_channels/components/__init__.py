"""
Channel Client Components.

Organized into domain-specific modules:
- core/       - Foundational pieces (constants, context, callbacks)
- protocol/   - Wire format (frame codec, refs, topic keys)
- registry/   - Per-topic join state
- connection/ - Transport ownership and lifecycle callbacks
- events/     - Handler map and the channel router

All public symbols are re-exported here; new code may import from the
specific submodules instead.
"""

# =============================================================================
# Core Components
# =============================================================================
from ws_channels.components.core.constants import (
    WSCloseCode,
    WSConstants,
    ChannelEvent,
    ConnectionState,
    TopicState,
)
from ws_channels.components.core.context import (
    ConnectionContext,
    sanitize_log_data,
    build_url,
)

# =============================================================================
# Protocol
# =============================================================================
from ws_channels.components.protocol.frame import Frame, encode, decode
from ws_channels.components.protocol.refs import RefAllocator
from ws_channels.components.protocol.topics import (
    Namespace,
    DomainEvent,
    NAMESPACE_EVENTS,
    make_topic,
    parse_topic,
    chat_room_topic,
    feed_user_topic,
    delivery_topic,
)

# =============================================================================
# State and transport
# =============================================================================
from ws_channels.components.registry.topics import TopicRegistry, TopicEntry
from ws_channels.components.connection.transport import Connection, Transport

# =============================================================================
# Events
# =============================================================================
from ws_channels.components.events.handlers import HandlerRegistry, Subscription
from ws_channels.components.events.router import ChannelRouter, DispatchResult

__all__ = [
    # Core
    "WSCloseCode",
    "WSConstants",
    "ChannelEvent",
    "ConnectionState",
    "TopicState",
    "ConnectionContext",
    "sanitize_log_data",
    "build_url",
    # Protocol
    "Frame",
    "encode",
    "decode",
    "RefAllocator",
    "Namespace",
    "DomainEvent",
    "NAMESPACE_EVENTS",
    "make_topic",
    "parse_topic",
    "chat_room_topic",
    "feed_user_topic",
    "delivery_topic",
    # State and transport
    "TopicRegistry",
    "TopicEntry",
    "Connection",
    "Transport",
    # Events
    "HandlerRegistry",
    "Subscription",
    "ChannelRouter",
    "DispatchResult",
]
