"""
Topic keys and the known namespace contract.

A topic is "<namespace>:<identifier>", e.g. "chat:room_42". The router
treats topics as opaque strings; these helpers only build and split them
and document which domain events each namespace carries.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType

from ws_channels.components.core.constants import WSConstants


class Namespace(str, Enum):
    """Topic namespaces served by the channel endpoint."""

    CHAT = "chat"
    FEED = "feed"
    DELIVERY = "delivery"


class DomainEvent(str, Enum):
    """Domain events carried by the known namespaces."""

    # chat:room_<id>
    MESSAGE = "message"  # {content}

    # feed:user_<id>, outbound
    VIEW_ITEM = "view_item"  # {product_id}
    LIKE_ITEM = "like_item"  # {product_id}
    SAVE_ITEM = "save_item"  # {product_id}
    # feed:user_<id>, inbound
    NEW_ITEM = "new_item"  # {item}
    LIKE_UPDATE = "like_update"  # {product_id, likes}

    # delivery:delivery_<id>
    LOCATION_UPDATE = "location_update"  # {latitude, longitude}


# Namespace -> events the namespace carries (payload shapes are pass-through)
NAMESPACE_EVENTS: MappingProxyType[str, frozenset[str]] = MappingProxyType({
    Namespace.CHAT.value: frozenset({DomainEvent.MESSAGE.value}),
    Namespace.FEED.value: frozenset({
        DomainEvent.VIEW_ITEM.value,
        DomainEvent.LIKE_ITEM.value,
        DomainEvent.SAVE_ITEM.value,
        DomainEvent.NEW_ITEM.value,
        DomainEvent.LIKE_UPDATE.value,
    }),
    Namespace.DELIVERY.value: frozenset({DomainEvent.LOCATION_UPDATE.value}),
})


def make_topic(namespace: str | Namespace, identifier: str | int) -> str:
    """
    Compose a topic key.

    Raises:
        ValueError: If either part is empty or the namespace contains the
            separator.
    """
    namespace = str(namespace.value if isinstance(namespace, Namespace) else namespace)
    identifier = str(identifier)
    if not namespace or not identifier:
        raise ValueError("namespace and identifier must be non-empty")
    if WSConstants.TOPIC_SEPARATOR in namespace:
        raise ValueError(f"namespace must not contain {WSConstants.TOPIC_SEPARATOR!r}")
    return f"{namespace}{WSConstants.TOPIC_SEPARATOR}{identifier}"


def parse_topic(topic: str) -> tuple[str, str]:
    """
    Split a topic key into (namespace, identifier).

    The split happens at the first separator, so identifiers may contain ":".

    Raises:
        ValueError: If the topic has no separator or an empty part.
    """
    namespace, sep, identifier = topic.partition(WSConstants.TOPIC_SEPARATOR)
    if not sep or not namespace or not identifier:
        raise ValueError(f"invalid topic {topic!r}, expected '<namespace>:<id>'")
    return namespace, identifier


def chat_room_topic(room_id: str | int) -> str:
    return make_topic(Namespace.CHAT, f"room_{room_id}")


def feed_user_topic(user_id: str | int) -> str:
    return make_topic(Namespace.FEED, f"user_{user_id}")


def delivery_topic(delivery_id: str | int) -> str:
    return make_topic(Namespace.DELIVERY, f"delivery_{delivery_id}")


def is_known_event(topic: str, event: str) -> bool:
    """True if *event* is part of the documented contract for *topic*'s namespace."""
    try:
        namespace, _ = parse_topic(topic)
    except ValueError:
        return False
    return event in NAMESPACE_EVENTS.get(namespace, frozenset())
