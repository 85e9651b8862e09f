# app/api/v1/projects.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.core.auth_deps import require
from app.core.deps import get_lifecycle, get_notifier, get_now, get_oracle, get_store
from app.core.config import get_settings
from app.core.project_status_graph import next_statuses
from app.models.project import Project
from app.policies.rbac import (
    ACTION_ADD_NOTE,
    ACTION_ADJUST_PRICE,
    ACTION_ASSIGN_WRITER,
    ACTION_CHANGE_STATUS,
    ACTION_RESUBMIT,
    ACTION_SET_ESTIMATE,
    ACTION_VIEW_HISTORY,
    Principal,
)
from app.schemas.projects import (
    AdjustPriceRequest,
    AssignWriterRequest,
    EstimatedCompletionRequest,
    NoteRequest,
    ResubmitRequest,
    SubmitProjectRequest,
    SubmitProjectResponse,
    TransitionRequest,
)
from app.services.intake_service import IntakeService
from app.services.project_lifecycle import ProjectLifecycle
from app.services.projects_service import ProjectsService

router = APIRouter(prefix="/projects", tags=["projects"])


def _iso(dt):
    return dt.isoformat() if dt else None


def project_to_dict(p: Project, principal: Principal) -> Dict[str, Any]:
    out = {
        "projectId": str(p.id),
        "referenceCode": p.reference_code,
        "status": p.status,
        "packageName": p.package_name,
        "topic": p.topic,
        "writerId": str(p.writer_id) if p.writer_id else None,
        "deadline": _iso(p.deadline),
        "estimatedCompletionAt": _iso(p.estimated_completion_at),
        "completedAt": _iso(p.completed_at),
        "paidAt": _iso(p.paid_at),
        "lastActivityAt": _iso(p.last_activity_at),
        "nextStatuses": sorted(s.value for s in next_statuses(p.status_enum, principal.role)),
        "writerShare": str(p.writer_share),
    }
    # writers never see the admin side of the ledger
    if principal.role.value == "staff":
        out.update(
            {
                "agreedPrice": str(p.agreed_price),
                "discountAmount": str(p.discount_amount),
                "additionalCharges": str(p.additional_charges),
                "adminShare": str(p.admin_share),
                "cancellationReason": p.cancellation_reason,
                "rejectionReason": p.rejection_reason,
            }
        )
    return out


def get_projects_service(
    store=Depends(get_store),
    notifier=Depends(get_notifier),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
) -> ProjectsService:
    return ProjectsService(store, notifier, lifecycle)


@router.post("/submit", response_model=SubmitProjectResponse)
def submit_project(
    body: SubmitProjectRequest,
    store=Depends(get_store),
    oracle=Depends(get_oracle),
    notifier=Depends(get_notifier),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    now: datetime = Depends(get_now),
):
    """
    Public intake. The tracking secret is returned exactly once, here.
    """
    settings = get_settings()
    svc = IntakeService(
        store,
        oracle,
        notifier,
        lifecycle=lifecycle,
        reference_prefix=settings.reference_code_prefix,
        reference_max_attempts=settings.reference_code_max_attempts,
    )
    p = svc.submit(body, now=now)
    return SubmitProjectResponse(
        project_id=p.id,
        reference_code=p.reference_code,
        tracking_secret=p.tracking_secret,
        status=p.status,
    )


@router.post("/{project_id}/transitions")
def change_status(
    project_id: uuid.UUID,
    body: TransitionRequest,
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_CHANGE_STATUS)),
    now: datetime = Depends(get_now),
):
    p = svc.change_status(
        project_id,
        body.target,
        principal=principal,
        now=now,
        notes=body.notes,
        reason=body.reason,
    )
    return project_to_dict(p, principal)


@router.post("/{project_id}/assign")
def assign_writer(
    project_id: uuid.UUID,
    body: AssignWriterRequest,
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_ASSIGN_WRITER)),
    now: datetime = Depends(get_now),
):
    p = svc.assign_writer(project_id, body.writer_id, principal=principal, now=now)
    return project_to_dict(p, principal)


@router.post("/{project_id}/resubmit")
def resubmit_project(
    project_id: uuid.UUID,
    body: ResubmitRequest,
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_RESUBMIT)),
    now: datetime = Depends(get_now),
):
    p = svc.resubmit(project_id, principal=principal, now=now, notes=body.notes)
    return project_to_dict(p, principal)


@router.post("/{project_id}/price")
def adjust_price(
    project_id: uuid.UUID,
    body: AdjustPriceRequest,
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_ADJUST_PRICE)),
    now: datetime = Depends(get_now),
):
    p = svc.adjust_price(
        project_id,
        discount_amount=body.discount_amount,
        additional_charges=body.additional_charges,
        principal=principal,
        now=now,
    )
    return project_to_dict(p, principal)


@router.post("/{project_id}/estimated-completion")
def set_estimated_completion(
    project_id: uuid.UUID,
    body: EstimatedCompletionRequest,
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_SET_ESTIMATE)),
    now: datetime = Depends(get_now),
):
    p = svc.set_estimated_completion(project_id, body.estimated_completion_at, principal=principal, now=now)
    return project_to_dict(p, principal)


@router.post("/{project_id}/notes")
def add_note(
    project_id: uuid.UUID,
    body: NoteRequest,
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_ADD_NOTE)),
    now: datetime = Depends(get_now),
):
    p = svc.add_note(project_id, body.note, principal=principal, now=now)
    return project_to_dict(p, principal)


@router.get("/{project_id}/history")
def get_history(
    project_id: uuid.UUID,
    svc: ProjectsService = Depends(get_projects_service),
    principal: Principal = Depends(require(ACTION_VIEW_HISTORY)),
):
    rows = svc.history(project_id, principal=principal)
    return [
        {
            "action": r.action,
            "oldStatus": r.old_status,
            "newStatus": r.new_status,
            "notes": r.notes,
            "performedBy": r.performed_by,
            "createdAt": _iso(r.created_at),
        }
        for r in rows
    ]
