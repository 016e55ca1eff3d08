"""
Utilities module: Exceptions.
"""

from shared.utils.exceptions import (
    ChannelError,
    NotConnectedError,
    TopicNotJoinedError,
    DuplicateJoinError,
    ConnectionOpenError,
    DecodeError,
)

__all__ = [
    "ChannelError",
    "NotConnectedError",
    "TopicNotJoinedError",
    "DuplicateJoinError",
    "ConnectionOpenError",
    "DecodeError",
]
