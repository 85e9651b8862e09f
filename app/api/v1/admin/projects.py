from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.projects import get_projects_service
from app.core.auth_deps import require
from app.core.config import get_settings
from app.core.deps import get_now, get_store
from app.core.project_status import ACTIVE_STATUSES
from app.policies.rbac import ACTION_VIEW_DASHBOARD, Principal
from app.services.projects_service import ProjectsService
from app.services.risk_scanner import find_at_risk_projects, hours_remaining

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/projects/at-risk")
def list_at_risk_projects(
    threshold_hours: Optional[int] = Query(default=None, ge=1, le=24 * 30),
    store=Depends(get_store),
    principal: Principal = Depends(require(ACTION_VIEW_DASHBOARD)),
    now: datetime = Depends(get_now),
):
    threshold = threshold_hours or get_settings().at_risk_threshold_hours
    active = store.list_by_status([s.value for s in ACTIVE_STATUSES])
    projects = find_at_risk_projects(active, now, threshold)

    return {
        "thresholdHours": threshold,
        "projects": [
            {
                "projectId": str(p.id),
                "referenceCode": p.reference_code,
                "topic": p.topic,
                "status": p.status,
                "writerId": str(p.writer_id) if p.writer_id else None,
                "deadline": p.deadline.isoformat(),
                "hoursRemaining": hours_remaining(p, now),
                "overdue": p.deadline <= now,
            }
            for p in projects
        ],
    }


@router.get("/earnings")
def earnings_summary(
    writer_id: Optional[uuid.UUID] = Query(default=None, alias="writerId"),
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_VIEW_DASHBOARD)),
):
    s = svc.earnings(writer_id=writer_id)
    return {
        "writerId": str(writer_id) if writer_id else None,
        "projectCount": s.project_count,
        "netTotal": str(s.net_total),
        "writerTotal": str(s.writer_total),
        "adminTotal": str(s.admin_total),
    }
