# app/api/v1/tracking.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request, Response

from app.core.config import get_settings
from app.core.deps import get_access_gate, get_now, get_store, viewer_session_id
from app.core.errors import NotFound
from app.schemas.tracking import (
    VerifyPinRequest,
    VerifyPinResponse,
)
from app.services.access_gate import GENERIC_MISS, AccessGate, tracking_view

router = APIRouter(prefix="/track", tags=["tracking"])


@router.post("/verify", response_model=VerifyPinResponse)
def verify_pin(
    body: VerifyPinRequest,
    response: Response,
    session_id: str = Depends(viewer_session_id),
    store=Depends(get_store),
    gate: AccessGate = Depends(get_access_gate),
    now: datetime = Depends(get_now),
):
    """
    Exchange tracking secret + PIN for a verification marker.
    The viewer session id is echoed so a client without one can keep it.
    """
    settings = get_settings()
    response.headers[settings.viewer_session_header] = session_id

    project = store.get_by_tracking_secret(body.tracking_secret)
    # unknown secrets are counted under the secret itself
    project_key = str(project.id) if project is not None else body.tracking_secret

    marker = gate.verify_pin(
        project,
        project_id=project_key,
        tracking_secret=body.tracking_secret,
        pin=body.pin,
        session_id=session_id,
        now=now,
    )
    return VerifyPinResponse(
        verification=marker.token,
        session_id=session_id,
        expires_at=marker.expires_at,
    )


@router.get("/{tracking_secret}")
def get_tracking(
    tracking_secret: str,
    request: Request,
    store=Depends(get_store),
    gate: AccessGate = Depends(get_access_gate),
    now: datetime = Depends(get_now),
):
    settings = get_settings()

    project = store.get_by_tracking_secret(tracking_secret)
    if project is None:
        raise NotFound(GENERIC_MISS)

    verified = gate.is_verified(
        request.headers.get(settings.track_verification_header),
        session_id=request.headers.get(settings.viewer_session_header),
        project_id=str(project.id),
        now=now,
    )
    history = store.history(project.id) if verified else []
    return tracking_view(project, history, verified=verified)
