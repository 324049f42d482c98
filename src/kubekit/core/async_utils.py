"""Async utilities for running blocking API calls side by side."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


async def gather_blocking(*calls: Callable[[], Any]) -> list[Any]:
    """Run blocking callables concurrently in worker threads.

    Every call is started before any is awaited, and the result list is
    returned only after all of them finished (fan-out/fan-in). Exceptions
    propagate; callers that want degraded results catch inside the callable.

    Args:
        *calls: Zero-argument callables to run

    Returns:
        List of results in the same order as input
    """
    tasks = [asyncio.create_task(asyncio.to_thread(call)) for call in calls]
    return list(await asyncio.gather(*tasks))


def run_sync(coro: Awaitable[T]) -> T:
    """Run an async function synchronously.

    This is useful for integrating async code with Click commands.

    Args:
        coro: Coroutine to run

    Returns:
        Result of the coroutine
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        # If we're already in an async context, create a new loop
        import concurrent.futures

        with concurrent.futures.ThreadPoolExecutor() as pool:
            future = pool.submit(asyncio.run, coro)
            return future.result()
    else:
        return asyncio.run(coro)
