"""Async utilities for bridging blocking store calls to the async sync engine."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Every store call in the sync engine goes through here and is awaited
    immediately, so at most one request is in flight at a time.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        entry = await run_sync(store.create_entry, "post", fields)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
