from fastapi import APIRouter, Request

from app.core.config import get_settings

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    # liveness only; no database round-trip
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "env": settings.environment,
        "request_id": getattr(request.state, "request_id", None),
    }
