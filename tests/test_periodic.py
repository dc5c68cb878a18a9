"""Lifespan-bound periodic tasks."""
import asyncio
import logging

from fastapi import FastAPI

from services.periodic import start_periodic_task, stop_periodic_tasks

log = logging.getLogger("medremind.tests")


def test_task_runs_immediately_and_stops_cleanly():
    app = FastAPI()
    ticks = []

    async def tick():
        ticks.append(len(ticks))

    async def scenario():
        start_periodic_task(app, name="tick", interval_seconds=3600, func=tick, logger=log)
        await asyncio.sleep(0.01)
        await stop_periodic_tasks(app, logger=log)

    asyncio.run(scenario())

    assert ticks == [0]
    assert app.state.periodic_tasks == []


def test_failing_run_does_not_end_the_loop():
    app = FastAPI()
    attempts = []

    async def flaky():
        attempts.append(1)
        raise RuntimeError("boom")

    async def scenario():
        start_periodic_task(app, name="flaky", interval_seconds=0.001, func=flaky, logger=log)
        await asyncio.sleep(0.05)
        await stop_periodic_tasks(app, logger=log)

    asyncio.run(scenario())

    assert len(attempts) >= 2
