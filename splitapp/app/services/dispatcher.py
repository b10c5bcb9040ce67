"""
Fire-and-forget dispatch of side-channel work.

Each queued call runs as its own FastAPI background task after the response
is produced. A failure is logged and dropped: one attempt, no retry, and it
never affects other queued calls or the request that queued it.
"""

import logging
from typing import Any, Awaitable, Callable

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


async def run_safely(func: Callable[..., Awaitable[Any]], *args, **kwargs) -> None:
    try:
        await func(*args, **kwargs)
    except Exception:
        logger.exception("Background dispatch %s failed", getattr(func, "__qualname__", func))


class Dispatcher:

    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def submit(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> None:
        self.background_tasks.add_task(run_safely, func, *args, **kwargs)


def get_dispatcher(background_tasks: BackgroundTasks) -> Dispatcher:
    """FastAPI dependency."""
    return Dispatcher(background_tasks)
