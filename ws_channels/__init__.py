"""
Multiplexed publish/subscribe channel client.

Many logical topics (chat rooms, per-user feeds, delivery trackers) share
one WebSocket. Each topic has its own join/leave lifecycle and event stream,
and every outbound frame carries a per-connection ref.

Usage:
    from ws_channels import ChannelRouter

    async with ChannelRouter() as router:
        await router.connect(token=token)
        router.on("chat:room_42", "message", print)
        await router.join("chat:room_42")
        await router.push("chat:room_42", "message", {"content": "hi"})
"""

__version__ = "1.0.0"

from ws_channels.components import (
    ChannelRouter,
    Connection,
    ConnectionState,
    DispatchResult,
    Frame,
    Subscription,
    TopicRegistry,
    TopicState,
    RefAllocator,
    encode,
    decode,
    make_topic,
    parse_topic,
    chat_room_topic,
    feed_user_topic,
    delivery_topic,
)
from ws_channels.channels import ChatChannel, FeedChannel, DeliveryChannel, TopicChannel
from shared.utils.exceptions import (
    ChannelError,
    NotConnectedError,
    TopicNotJoinedError,
    DuplicateJoinError,
    ConnectionOpenError,
    DecodeError,
)

__all__ = [
    "__version__",
    "ChannelRouter",
    "Connection",
    "ConnectionState",
    "DispatchResult",
    "Frame",
    "Subscription",
    "TopicRegistry",
    "TopicState",
    "RefAllocator",
    "encode",
    "decode",
    "make_topic",
    "parse_topic",
    "chat_room_topic",
    "feed_user_topic",
    "delivery_topic",
    "ChatChannel",
    "FeedChannel",
    "DeliveryChannel",
    "TopicChannel",
    "ChannelError",
    "NotConnectedError",
    "TopicNotJoinedError",
    "DuplicateJoinError",
    "ConnectionOpenError",
    "DecodeError",
]
