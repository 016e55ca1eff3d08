"""
Callback invocation shared by the Connection and the Router.

Callbacks may be plain functions or coroutine functions; both are run to
completion within the current event-loop turn of the caller.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

# A lifecycle callback or frame handler; may return an awaitable
Callback = Callable[..., Any]


async def invoke_callback(callback: Callback, *args: Any) -> Any:
    """Call *callback* and await its result if it returned an awaitable."""
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
