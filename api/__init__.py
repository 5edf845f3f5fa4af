"""
API Module
FastAPI routers for the CareLedger engine
"""

from api.schedules import router as schedules_router
from api.events import router as events_router
from api.reports import router as reports_router

from api.deps import (
    get_db,
    get_current_profile_id,
    services,
)


__all__ = [
    # Routers
    "schedules_router",
    "events_router",
    "reports_router",
    # Dependencies
    "get_db",
    "get_current_profile_id",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(schedules_router, prefix=prefix)
    app.include_router(events_router, prefix=prefix)
    app.include_router(reports_router, prefix=prefix)
