"""
Periodic asyncio tasks bound to the FastAPI lifespan.

A failing run is logged and the loop keeps going; cancellation on shutdown
ends it.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from fastapi import FastAPI

_TASKS_STATE_KEY = "periodic_tasks"


def start_periodic_task(
    app: FastAPI,
    *,
    name: str,
    interval_seconds: float,
    func: Callable[[], Awaitable[None]],
    logger: logging.Logger,
) -> asyncio.Task:
    tasks = getattr(app.state, _TASKS_STATE_KEY, None)
    if tasks is None:
        tasks = []
        setattr(app.state, _TASKS_STATE_KEY, tasks)

    async def _runner() -> None:
        while True:
            try:
                await func()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("periodic task %s failed", name)
            await asyncio.sleep(interval_seconds)

    task = asyncio.create_task(_runner(), name=name)
    tasks.append(task)
    return task


async def stop_periodic_tasks(app: FastAPI, *, logger: logging.Logger) -> None:
    tasks: list[asyncio.Task] | None = getattr(app.state, _TASKS_STATE_KEY, None)
    if not tasks:
        return
    for task in tasks:
        task.cancel()
    try:
        await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        setattr(app.state, _TASKS_STATE_KEY, [])
        logger.info("periodic tasks stopped")
