"""
Handler Registry - (topic, event) -> ordered handlers.

Matching is exact on the composite key: no wildcards, no topic-only
handlers. Registration order is invocation order, and registering the same
callable twice keeps both registrations.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any

from ws_channels.components.core.callbacks import Callback

HandlerKey = tuple[str, str]


@dataclass(frozen=True, slots=True)
class Subscription:
    """
    Token returned by `on`, used to unregister one exact registration.

    Attributes:
        topic: Topic the handler listens on.
        event: Event the handler listens for.
        id: Unique id of this registration within its registry.
    """

    topic: str
    event: str
    id: int

    @property
    def key(self) -> HandlerKey:
        return (self.topic, self.event)


class HandlerRegistry:
    """Composite-key handler map."""

    def __init__(self) -> None:
        self._handlers: dict[HandlerKey, list[tuple[int, Callback]]] = {}
        self._ids = itertools.count(1)

    def add(self, topic: str, event: str, handler: Callback) -> Subscription:
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")

        subscription = Subscription(topic=topic, event=event, id=next(self._ids))
        self._handlers.setdefault(subscription.key, []).append((subscription.id, handler))
        return subscription

    def remove(self, subscription: Subscription) -> bool:
        """
        Remove one registration.

        Returns:
            True if it was registered, False if already removed.
        """
        entries = self._handlers.get(subscription.key)
        if not entries:
            return False

        for index, (handler_id, _) in enumerate(entries):
            if handler_id == subscription.id:
                del entries[index]
                if not entries:
                    del self._handlers[subscription.key]
                return True
        return False

    def handlers_for(self, topic: str, event: str) -> list[Callback]:
        """Handlers for an exact pair, in registration order (copy for safety)."""
        return [handler for _, handler in self._handlers.get((topic, event), [])]

    def count(self, topic: str | None = None, event: str | None = None) -> int:
        total = 0
        for (t, e), entries in self._handlers.items():
            if topic is not None and t != topic:
                continue
            if event is not None and e != event:
                continue
            total += len(entries)
        return total

    def get_stats(self) -> dict[str, Any]:
        return {
            "keys": len(self._handlers),
            "handlers": self.count(),
        }
