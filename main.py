import asyncio
import logging
import os
from collections import deque
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

import models  # noqa: F401  (registers every table on Base.metadata)
from config import CORS_ORIGINS, REMINDER_POLL_SECONDS, REMINDER_POLLER_ENABLED
from database import Base, SessionLocal, engine
from dependencies import get_current_user
from models.user import User
from routers import (
    auth_router,
    medications_router,
    logs_router,
    family_router,
    notifications_router,
    reminders_router,
    jobs_router,
)
from services.notifications import init_firebase
from services.periodic import start_periodic_task, stop_periodic_tasks
from services.reminders import background_tracker, run_reminder_pass

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("medremind")

ERROR_LOG_FILE = os.path.join(os.path.dirname(__file__), "logs", "errors.log")


def _error_logger(path: str) -> logging.Logger:
    """File logger for unhandled request errors."""
    log = logging.getLogger("medremind.errors")
    if log.handlers:
        return log
    os.makedirs(os.path.dirname(path), exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    log.addHandler(handler)
    log.setLevel(logging.ERROR)
    log.propagate = False
    return log


error_logger = _error_logger(ERROR_LOG_FILE)


def _reminder_pass_once() -> int:
    db = SessionLocal()
    try:
        return run_reminder_pass(db, background_tracker)
    finally:
        db.close()


async def _poll_reminders() -> None:
    await asyncio.to_thread(_reminder_pass_once)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    init_firebase()
    if REMINDER_POLLER_ENABLED:
        start_periodic_task(
            app,
            name="reminder-poller",
            interval_seconds=REMINDER_POLL_SECONDS,
            func=_poll_reminders,
            logger=logger,
        )
        logger.info("Reminder poller started (every %ss)", REMINDER_POLL_SECONDS)
    yield
    await stop_periodic_tasks(app, logger=logger)


app = FastAPI(
    title="MedRemind API",
    description="Medication reminders, supply tracking and family alerts",
    version="1.0.0",
    lifespan=lifespan,
)

cors_origins = [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
allow_any_origin = "*" in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_any_origin else cors_origins,
    # Browsers reject wildcard+credentials; bearer tokens don't need them.
    allow_credentials=not allow_any_origin,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router)
app.include_router(medications_router)
app.include_router(logs_router)
app.include_router(family_router)
app.include_router(notifications_router)
app.include_router(reminders_router)
app.include_router(jobs_router)


@app.middleware("http")
async def _capture_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:  # pragma: no cover
        error_logger.exception("Unhandled server error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/", tags=["Health"])
def health_check():
    return {"status": "ok", "service": "MedRemind API", "version": "1.0.0"}


@app.get("/debug/error-logs", tags=["Debug"])
def tail_error_log(
    lines: int = Query(80, ge=1, le=500),
    current_user: User = Depends(get_current_user),
):
    """Last `lines` entries of the unhandled-error log (admins only)."""
    if current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin only")
    try:
        with open(ERROR_LOG_FILE, encoding="utf-8", errors="replace") as f:
            tail = deque((line.rstrip("\n") for line in f), maxlen=lines)
    except FileNotFoundError:
        tail = deque()
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"Could not read error log: {exc}")
    return {"lines": list(tail), "path": ERROR_LOG_FILE}
