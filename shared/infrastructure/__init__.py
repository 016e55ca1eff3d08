"""
Infrastructure module: frame correlation for logging.
"""

from shared.infrastructure.correlation import (
    CorrelationIdFilter,
    frame_scope,
    get_ref,
    get_topic,
)

__all__ = [
    "CorrelationIdFilter",
    "frame_scope",
    "get_ref",
    "get_topic",
]
