"""API routers."""

from casecore.routers.appointments import router as appointments_router
from casecore.routers.cases import router as cases_router
from casecore.routers.client import router as client_router
from casecore.routers.notifications import router as notifications_router
from casecore.routers.tasks import router as tasks_router

__all__ = [
    "appointments_router",
    "cases_router",
    "client_router",
    "notifications_router",
    "tasks_router",
]
