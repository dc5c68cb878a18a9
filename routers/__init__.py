from routers.auth import router as auth_router
from routers.medications import router as medications_router
from routers.logs import router as logs_router
from routers.family import router as family_router
from routers.notifications import router as notifications_router
from routers.reminders import router as reminders_router
from routers.jobs import router as jobs_router

__all__ = [
    "auth_router",
    "medications_router",
    "logs_router",
    "family_router",
    "notifications_router",
    "reminders_router",
    "jobs_router",
]
