"""
Frame Codec - the wire envelope shared by every topic on the socket.

One frame per WebSocket message, JSON text:

    {"topic": "chat:room_42", "event": "message", "payload": {...}, "ref": "7"}

Payloads are embedded as structured data, never pre-stringified. Inbound
frames may carry a null or missing ref (server broadcasts); outbound frames
always carry one.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from shared.utils.exceptions import DecodeError

# Fields that must be present on every inbound frame
REQUIRED_FRAME_FIELDS: frozenset[str] = frozenset({"topic", "event"})


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Immutable wire frame.

    Attributes:
        topic: "<namespace>:<id>" key of the logical channel.
        event: Protocol verb (phx_join, ...) or domain event name.
        payload: Event-specific structured data; {} for join/leave.
        ref: Correlation token, None on server-initiated frames.
    """

    topic: str
    event: str
    payload: Any = field(default_factory=dict)
    ref: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "event": self.event,
            "payload": self.payload,
            "ref": self.ref,
        }


def encode(topic: str, event: str, payload: Any, ref: str) -> str:
    """
    Serialize an outbound frame.

    Raises:
        ValueError: If topic, event or ref is empty or not a string.
        TypeError: If the payload is not JSON-serializable.
    """
    for name, value in (("topic", topic), ("event", event), ("ref", ref)):
        if not isinstance(value, str) or not value:
            raise ValueError(f"{name} must be a non-empty string, got {value!r}")

    return json.dumps(
        {"topic": topic, "event": event, "payload": payload, "ref": ref}
    )


def decode(text: str | bytes) -> Frame:
    """
    Parse inbound text into a Frame.

    Raises:
        DecodeError: If the text is not a JSON object or lacks a non-empty
            topic/event. Callers log and discard; never fatal to the socket.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"invalid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("invalid JSON: nesting too deep") from e

    if not isinstance(data, dict):
        raise DecodeError(f"frame must be an object, got {type(data).__name__}")

    missing = REQUIRED_FRAME_FIELDS - data.keys()
    if missing:
        raise DecodeError(f"missing required fields: {sorted(missing)}")

    topic = data["topic"]
    event = data["event"]
    if not isinstance(topic, str) or not topic:
        raise DecodeError("topic must be a non-empty string")
    if not isinstance(event, str) or not event:
        raise DecodeError("event must be a non-empty string")

    ref = data.get("ref")
    if ref is not None and not isinstance(ref, str):
        ref = str(ref)

    payload = data.get("payload", {})

    return Frame(topic=topic, event=event, payload=payload, ref=ref)
