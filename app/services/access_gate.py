# app/services/access_gate.py
from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union

from jose import JWTError

from app.core.attempt_store import AttemptStore
from app.core.errors import NotFound, TooManyAttempts, ValidationFailed
from app.core.redaction import mask_uuid
from app.core.security import read_signed_claims, sign_claims
from app.models.project import Project
from app.models.project_history import ProjectHistoryEntry
from app.schemas.tracking import FullTrackingView, PublicTrackingView, TrackingHistoryItem

logger = logging.getLogger(__name__)

PIN_RE = re.compile(r"^\d{4}$")
TRACK_SCOPE = "track"

# One message for every kind of miss; callers must not learn which part was wrong.
GENERIC_MISS = "Project not found or PIN incorrect."


def pin_for_phone(phone: Optional[str]) -> Optional[str]:
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) < 4:
        return None
    return digits[-4:]


@dataclass(frozen=True)
class VerificationMarker:
    token: str
    session_id: str
    project_id: str
    expires_at: datetime


class AccessGate:
    """
    Low-trust gate in front of the anonymous tracking view.

    - The tracking secret is the capability; the PIN (last 4 digits of the
      phone on file) only unlocks the full detail.
    - Failures are counted per (viewer session, project). After
      `max_attempts` failures every further attempt in that session is
      refused, correct PIN included. A fresh session starts over.
    - Success yields a signed, time-bounded marker; nothing is stored.
    """

    def __init__(
        self,
        attempts: AttemptStore,
        *,
        max_attempts: int = 3,
        marker_ttl: timedelta = timedelta(minutes=60),
    ):
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.marker_ttl = marker_ttl

    def verify_pin(
        self,
        project: Optional[Project],
        *,
        project_id: str,
        tracking_secret: str,
        pin: str,
        session_id: str,
        now: datetime,
    ) -> VerificationMarker:
        """
        `project` is whatever the caller resolved from `tracking_secret`
        (None when nothing matched). The counter is keyed on the resolved
        project, so varying `project_id` buys no extra guesses; `project_id`
        keys it only when nothing resolved. An id that does not belong to
        the secret is a miss like any other.
        """
        pin = (pin or "").strip()
        if not PIN_RE.match(pin):
            raise ValidationFailed("PIN must be exactly 4 digits.")

        key = (session_id, str(project.id) if project is not None else str(project_id))
        if self.attempts.failures(key) >= self.max_attempts:
            logger.warning(
                "pin attempts exhausted",
                extra={"project_id": mask_uuid(key[1])},
            )
            raise TooManyAttempts(
                "Too many failed attempts. Start a new session to try again.",
                max_attempts=self.max_attempts,
            )

        expected_pin = pin_for_phone(project.client_phone) if project is not None else None
        ok = (
            project is not None
            and str(project.id) == str(project_id)
            and secrets.compare_digest(project.tracking_secret, tracking_secret or "")
            and expected_pin is not None
            and secrets.compare_digest(expected_pin, pin)
        )

        if not ok:
            count = self.attempts.record_failure(key)
            logger.info(
                "pin verification failed",
                extra={"project_id": mask_uuid(key[1]), "failures": count},
            )
            raise NotFound(GENERIC_MISS)

        self.attempts.reset(key)

        pid = str(project.id)
        token = sign_claims(
            {"sub": session_id, "project_id": pid, "scope": TRACK_SCOPE},
            issued_at=now,
            ttl=self.marker_ttl,
        )
        return VerificationMarker(
            token=token,
            session_id=session_id,
            project_id=pid,
            expires_at=now + self.marker_ttl,
        )

    def is_verified(
        self,
        marker: Optional[str],
        *,
        session_id: Optional[str],
        project_id: str,
        now: datetime,
    ) -> bool:
        if not marker or not session_id:
            return False
        try:
            claims = read_signed_claims(marker)
        except JWTError:
            return False

        if claims.get("scope") != TRACK_SCOPE:
            return False
        if claims.get("sub") != session_id or claims.get("project_id") != str(project_id):
            return False

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            return False
        return now < datetime.fromtimestamp(exp, tz=timezone.utc)


def tracking_view(
    project: Project,
    history: Iterable[ProjectHistoryEntry],
    *,
    verified: bool,
) -> Union[PublicTrackingView, FullTrackingView]:
    """
    Public fields are always shown; the rest needs a verified marker.
    """
    public = dict(
        reference_code=project.reference_code,
        status=project.status,
        package_name=project.package_name,
        deadline=project.deadline,
        submitted_at=project.created_at,
    )
    if not verified:
        return PublicTrackingView(**public)

    return FullTrackingView(
        **public,
        project_id=str(project.id),
        topic=project.topic,
        requirements=dict(project.requirements_json or {}),
        special_instructions=project.special_instructions,
        client_name=project.client_name,
        client_email=project.client_email,
        client_phone=project.client_phone,
        agreed_price=str(project.agreed_price),
        discount_amount=str(project.discount_amount),
        additional_charges=str(project.additional_charges),
        estimated_completion_at=project.estimated_completion_at,
        completed_at=project.completed_at,
        history=[
            TrackingHistoryItem(
                action=h.action,
                old_status=h.old_status,
                new_status=h.new_status,
                notes=h.notes,
                created_at=h.created_at,
            )
            for h in history
        ],
    )
