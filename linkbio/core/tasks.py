"""Fire-and-forget work that must not hold up the request that started it.

``TelemetryTasks`` keeps a strong reference to every task it spawns (the
event loop only holds weak ones), collects each task's outcome so failures
are logged instead of reported as "never retrieved", and lets shutdown
wait for writes still in flight.
"""

import asyncio
from collections.abc import Coroutine
from typing import Annotated, Any

import structlog
from fastapi import Depends, Request

from linkbio.core.exceptions import LinkbioError

logger = structlog.get_logger()


def log_task_failure(task: asyncio.Task) -> None:
    """Done-callback: retrieve the task's exception and log it."""
    if task.cancelled():
        logger.warning("Background task cancelled", task=task.get_name())
        return
    exc = task.exception()
    if exc is None:
        return
    if isinstance(exc, LinkbioError) and exc.status_code < 500:
        logger.info(
            "Background task rejected",
            task=task.get_name(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
    else:
        logger.error(
            "Background task failed",
            task=task.get_name(),
            error=str(exc),
            error_type=type(exc).__name__,
        )


class TelemetryTasks:
    """Tracks background telemetry writes for the lifetime of the app."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """Schedule ``coro`` without awaiting it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(log_task_failure)
        return task

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for pending tasks; cancel whatever is left after ``timeout``."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.wait(still_running)
            logger.warning("Cancelled unfinished telemetry tasks", count=len(still_running))


def get_telemetry_tasks(request: Request) -> TelemetryTasks:
    """Dependency returning the application's telemetry task tracker."""
    return request.app.state.telemetry


TelemetryTasksDep = Annotated[TelemetryTasks, Depends(get_telemetry_tasks)]
