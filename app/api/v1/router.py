from fastapi import APIRouter

from app.api.v1.health import router as health_router

# PUBLIC (no account)
from app.api.v1.clients import router as clients_router
from app.api.v1.tracking import router as tracking_router

# STAFF / WRITER
from app.api.v1.projects import router as projects_router
from app.api.v1.admin.projects import router as admin_projects_router

# SCHEDULED
from app.api.v1.cron import router as cron_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])

# ------------------------------------------------------------------
# PROJECT LIFECYCLE
# ------------------------------------------------------------------
v1_router.include_router(projects_router)
v1_router.include_router(clients_router)
v1_router.include_router(tracking_router)

# ------------------------------------------------------------------
# ADMIN / CRON
# ------------------------------------------------------------------
v1_router.include_router(admin_projects_router)
v1_router.include_router(cron_router)
