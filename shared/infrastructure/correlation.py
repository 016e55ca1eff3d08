"""
Frame correlation for logging.

Carries the ref and topic of the frame being sent or dispatched in context
variables so every log line emitted while handling it can be traced back to
the frame on the wire.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# Context variables for the frame currently in flight
ref_var: ContextVar[str] = ContextVar("frame_ref", default="")
topic_var: ContextVar[str] = ContextVar("frame_topic", default="")


def get_ref() -> str:
    """Get the ref of the frame currently being handled."""
    return ref_var.get()


def get_topic() -> str:
    """Get the topic of the frame currently being handled."""
    return topic_var.get()


@contextmanager
def frame_scope(topic: str, ref: str | None) -> Iterator[None]:
    """
    Bind a frame's topic and ref for the duration of the block.

    Usage:
        with frame_scope(frame.topic, frame.ref):
            logger.info("Dispatching")   # record carries ref/topic
    """
    ref_token = ref_var.set(ref or "")
    topic_token = topic_var.set(topic)
    try:
        yield
    finally:
        topic_var.reset(topic_token)
        ref_var.reset(ref_token)


class CorrelationIdFilter:
    """
    Logging filter that adds ref and topic to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.ref = ref_var.get() or "-"
        record.topic = topic_var.get() or "-"
        return True
