"""Deadlines for store and hashing calls.

Learn: A hung database or an overloaded hashing thread must not pin a
request forever. Anything awaited through with_deadline() that runs past
its budget surfaces as ServiceTimeoutError — a retryable 503, never an
authentication or validation rejection.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from userhub.errors import ServiceTimeoutError

logger = structlog.get_logger()

T = TypeVar("T")


async def with_deadline(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    """Await with an optional timeout in seconds (None = unbounded)."""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        logger.warning("deadline.exceeded", timeout=timeout)
        raise ServiceTimeoutError()


async def run_blocking(fn: Callable[..., T], *args, timeout: Optional[float]) -> T:
    """Run a CPU-bound call (bcrypt) in a worker thread under a deadline."""
    return await with_deadline(asyncio.to_thread(fn, *args), timeout)
