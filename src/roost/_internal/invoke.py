"""Invoke helpers: call sync or async callables uniformly.

Handlers and deferred responses can be ``def`` or ``async def``. Any
code that calls a user-provided callable goes through this helper so
the sync/async check lives in exactly one place.

Usage::

    from roost._internal.invoke import invoke

    result = await invoke(handler, request)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
