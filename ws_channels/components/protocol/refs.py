"""
Ref Allocator - issues correlation tokens for outbound frames.

Refs are decimal strings, strictly increasing and unique for the lifetime of
one allocator. The Router creates a fresh allocator for every connection, so
each connection starts again at "1".
"""

from __future__ import annotations

import itertools

from ws_channels.components.core.constants import WSConstants


class RefAllocator:
    """
    Monotonic ref counter.

    Usage:
        refs = RefAllocator()
        refs.next()  # "1"
        refs.next()  # "2"
    """

    def __init__(self, start: int = WSConstants.FIRST_REF) -> None:
        self._counter = itertools.count(start)
        self._last: int | None = None

    def next(self) -> str:
        """Return the current counter value as a string and advance it."""
        value = next(self._counter)
        self._last = value
        return str(value)

    @property
    def last(self) -> str | None:
        """The most recently issued ref, or None if none was issued yet."""
        return None if self._last is None else str(self._last)
