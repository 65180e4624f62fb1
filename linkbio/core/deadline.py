"""Per-request deadlines for database and identity calls.

The request deadline is an absolute event-loop time stored in a context
variable by ``RequestDeadlineMiddleware``. Each I/O phase runs inside
``bounded()``, which cancels the awaited work once the deadline (or the
phase's own, shorter limit) passes and reports it as an upstream timeout.
Cancellation is advisory: the store may still finish the operation.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar, Token
from typing import Literal

from linkbio.core.exceptions import UpstreamTimeoutError

Phase = Literal["connect", "query"]

request_deadline_ctx: ContextVar[float | None] = ContextVar("request_deadline", default=None)


def start_deadline(timeout: float) -> Token:
    """Set the deadline for the current request, ``timeout`` seconds from now."""
    loop = asyncio.get_running_loop()
    return request_deadline_ctx.set(loop.time() + timeout)


def reset_deadline(token: Token) -> None:
    request_deadline_ctx.reset(token)


def clear_deadline() -> None:
    """Drop the request deadline inherited by a background task's context."""
    request_deadline_ctx.set(None)


def remaining() -> float | None:
    """Seconds left before the request deadline, or None when unbounded."""
    deadline = request_deadline_ctx.get()
    if deadline is None:
        return None
    return max(0.0, deadline - asyncio.get_running_loop().time())


@asynccontextmanager
async def bounded(phase: Phase, limit: float | None = None) -> AsyncIterator[None]:
    """Bound the enclosed awaits by the request deadline.

    Args:
        phase: "connect" for acquiring a connection or identity lookups,
            "query" for statements. Decides between 503 and 504.
        limit: Optional per-phase cap in seconds; the earlier of this and
            the request deadline wins.
    """
    loop = asyncio.get_running_loop()
    deadline = request_deadline_ctx.get()
    if limit is not None:
        phase_deadline = loop.time() + limit
        deadline = phase_deadline if deadline is None else min(deadline, phase_deadline)

    if deadline is None:
        yield
        return

    try:
        async with asyncio.timeout_at(deadline):
            yield
    except TimeoutError as e:
        raise UpstreamTimeoutError(phase) from e
