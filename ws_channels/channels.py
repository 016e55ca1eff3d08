"""
Domain channel helpers for the known topic namespaces.

Thin wrappers over a ChannelRouter: they build the topic key, name the
events and shape the payloads. Presentation state (optimistic like counts
and the like) stays with the caller.

Usage:
    feed = FeedChannel(router, user_id=7)
    feed.on_like_update(lambda payload: print(payload["likes"]))
    await feed.join()
    await feed.like_item("p1")
"""

from __future__ import annotations

import math
from typing import Any

from ws_channels.components.core.callbacks import Callback
from ws_channels.components.events.handlers import Subscription
from ws_channels.components.events.router import ChannelRouter
from ws_channels.components.protocol.topics import (
    DomainEvent,
    chat_room_topic,
    delivery_topic,
    feed_user_topic,
)


def _require_id(value: str | int, name: str) -> str:
    text = str(value).strip()
    if not text:
        raise ValueError(f"{name} is required")
    return text


class TopicChannel:
    """Common join/leave/on plumbing for one topic."""

    def __init__(self, router: ChannelRouter, topic: str) -> None:
        self.router = router
        self.topic = topic

    @property
    def joined(self) -> bool:
        return self.router.is_joined(self.topic)

    @property
    def registered(self) -> bool:
        return self.router.registry.is_registered(self.topic)

    async def join(self) -> str | None:
        return await self.router.join(self.topic)

    async def leave(self) -> str | None:
        return await self.router.leave(self.topic)

    async def push(self, event: str, payload: Any = None) -> str:
        return await self.router.push(self.topic, event, payload)

    def on(self, event: str, handler: Callback) -> Subscription:
        return self.router.on(self.topic, event, handler)


class ChatChannel(TopicChannel):
    """chat:room_<id>"""

    def __init__(self, router: ChannelRouter, room_id: str | int) -> None:
        super().__init__(router, chat_room_topic(_require_id(room_id, "room_id")))

    async def send_message(self, content: str) -> str:
        content = content.strip()
        if not content:
            raise ValueError("message content is required")
        return await self.push(DomainEvent.MESSAGE.value, {"content": content})

    def on_message(self, handler: Callback) -> Subscription:
        return self.on(DomainEvent.MESSAGE.value, handler)


class FeedChannel(TopicChannel):
    """feed:user_<id>"""

    # CLI / UI action name -> event
    ACTIONS = {
        "view": DomainEvent.VIEW_ITEM.value,
        "like": DomainEvent.LIKE_ITEM.value,
        "save": DomainEvent.SAVE_ITEM.value,
    }

    def __init__(self, router: ChannelRouter, user_id: str | int) -> None:
        super().__init__(router, feed_user_topic(_require_id(user_id, "user_id")))

    async def action(self, kind: str, product_id: str | int) -> str:
        """Push view/like/save for a product."""
        event = self.ACTIONS.get(kind)
        if event is None:
            raise ValueError(f"unknown feed action {kind!r}, expected one of {sorted(self.ACTIONS)}")
        return await self.push(event, {"product_id": _require_id(product_id, "product_id")})

    async def view_item(self, product_id: str | int) -> str:
        return await self.action("view", product_id)

    async def like_item(self, product_id: str | int) -> str:
        return await self.action("like", product_id)

    async def save_item(self, product_id: str | int) -> str:
        return await self.action("save", product_id)

    def on_new_item(self, handler: Callback) -> Subscription:
        """Handler receives the {item} payload."""
        return self.on(DomainEvent.NEW_ITEM.value, handler)

    def on_like_update(self, handler: Callback) -> Subscription:
        """Handler receives the {product_id, likes} payload."""
        return self.on(DomainEvent.LIKE_UPDATE.value, handler)


class DeliveryChannel(TopicChannel):
    """delivery:delivery_<id>"""

    def __init__(self, router: ChannelRouter, delivery_id: str | int) -> None:
        super().__init__(router, delivery_topic(_require_id(delivery_id, "delivery_id")))

    async def update_location(self, latitude: float | str, longitude: float | str) -> str:
        """
        Push a numeric position.

        Raises:
            ValueError: Latitude or longitude is not a finite number.
        """
        payload = {
            "latitude": _coerce_coordinate(latitude, "latitude"),
            "longitude": _coerce_coordinate(longitude, "longitude"),
        }
        return await self.push(DomainEvent.LOCATION_UPDATE.value, payload)

    def on_location_update(self, handler: Callback) -> Subscription:
        return self.on(DomainEvent.LOCATION_UPDATE.value, handler)


def _coerce_coordinate(value: float | str, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"{name} must be a finite number")
    return number
