from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends

from app.core.deps import get_deadline_warning_service, get_now, require_cron_secret
from app.services.deadline_warning_service import DeadlineWarningService

router = APIRouter(prefix="/cron", tags=["cron"])


@router.post("/deadline-warnings", dependencies=[Depends(require_cron_secret)])
def run_deadline_warnings(
    svc: DeadlineWarningService = Depends(get_deadline_warning_service),
    now: datetime = Depends(get_now),
):
    result = svc.run(now)
    return {"checked": result.checked, "notified": result.notified, "ranAt": now.isoformat()}
