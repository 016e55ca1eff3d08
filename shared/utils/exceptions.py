"""
Centralized channel exceptions for consistent error handling.

Usage:
    from shared.utils.exceptions import NotConnectedError, TopicNotJoinedError

    raise NotConnectedError("push", topic=topic)
    raise TopicNotJoinedError(topic)
"""

from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class ChannelError(Exception):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging of the failure context.
    """

    def __init__(
        self,
        detail: str,
        log_level: str = "warning",
        **log_context: Any,
    ):
        # Log the error with context
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, error=type(self).__name__, **log_context)

        self.detail = detail
        self.context = log_context
        super().__init__(detail)


# =============================================================================
# Send-side errors (surfaced to the caller)
# =============================================================================


class NotConnectedError(ChannelError):
    """
    A send was attempted while the connection is not OPEN.

    Usage:
        raise NotConnectedError("join", topic="chat:room_42", state="CLOSED")
    """

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(
            f"Cannot {operation}: socket is not connected",
            operation=operation,
            **log_context,
        )


class TopicNotJoinedError(ChannelError):
    """Push to a topic that has not been joined."""

    def __init__(self, topic: str, **log_context: Any):
        super().__init__(f"Topic {topic} is not joined", topic=topic, **log_context)
        self.topic = topic


class DuplicateJoinError(ChannelError):
    """Join requested for a topic already JOINING or JOINED (strict mode only)."""

    def __init__(self, topic: str, state: str, **log_context: Any):
        super().__init__(
            f"Topic {topic} is already {state}",
            topic=topic,
            state=state,
            **log_context,
        )
        self.topic = topic


class ConnectionOpenError(ChannelError):
    """The transport could not be established."""

    def __init__(self, url: str, reason: str, **log_context: Any):
        super().__init__(
            f"Failed to connect: {reason}",
            log_level="error",
            url=url,
            **log_context,
        )
        self.reason = reason


# =============================================================================
# Receive-side errors (recovered locally, never propagated)
# =============================================================================


class DecodeError(ChannelError, ValueError):
    """
    Inbound text is not a well-formed frame.

    Logged at DEBUG here; the router logs the discarded raw text itself.
    """

    def __init__(self, reason: str, **log_context: Any):
        super().__init__(
            f"Malformed frame: {reason}",
            log_level="debug",
            **log_context,
        )
        self.reason = reason
