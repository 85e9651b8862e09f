# /app/core/deps.py
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.attempt_store import InMemoryAttemptStore
from app.core.config import get_settings
from app.db.session import get_db
from app.services.access_gate import AccessGate
from app.services.deadline_warning_service import DeadlineWarningService
from app.services.notifications import LoggingNotificationSink
from app.services.project_lifecycle import ProjectLifecycle
from app.services.project_store import SqlProjectStore, SqlReferenceCodeOracle

cron_bearer = HTTPBearer(auto_error=False)


def get_now() -> datetime:
    """The only wall-clock read on the request path; tests override it."""
    return datetime.now(timezone.utc)


def get_store(db: Session = Depends(get_db)) -> SqlProjectStore:
    return SqlProjectStore(db)


def get_oracle(db: Session = Depends(get_db)) -> SqlReferenceCodeOracle:
    return SqlReferenceCodeOracle(db)


@lru_cache(maxsize=1)
def get_notifier() -> LoggingNotificationSink:
    return LoggingNotificationSink()


@lru_cache(maxsize=1)
def get_attempt_store() -> InMemoryAttemptStore:
    # process-wide: counters must survive across requests
    settings = get_settings()
    return InMemoryAttemptStore(max_sessions=settings.pin_attempt_max_sessions)


def get_lifecycle() -> ProjectLifecycle:
    return ProjectLifecycle(writer_ratio=get_settings().writer_share_ratio)


def get_access_gate(attempts: InMemoryAttemptStore = Depends(get_attempt_store)) -> AccessGate:
    settings = get_settings()
    return AccessGate(
        attempts,
        max_attempts=settings.pin_max_attempts,
        marker_ttl=timedelta(minutes=settings.track_verification_minutes),
    )


def get_deadline_warning_service(
    store: SqlProjectStore = Depends(get_store),
    notifier: LoggingNotificationSink = Depends(get_notifier),
) -> DeadlineWarningService:
    settings = get_settings()
    return DeadlineWarningService(
        store,
        notifier,
        threshold_hours=settings.at_risk_threshold_hours,
        cooldown_hours=settings.deadline_warning_cooldown_hours,
        admin_alert_hours=settings.admin_alert_hours,
        admin_email=settings.admin_email,
    )


def viewer_session_id(request: Request) -> str:
    """
    Anonymous viewer session from the configured header; a missing one is
    minted here and echoed back by the route.
    """
    settings = get_settings()
    sid = (request.headers.get(settings.viewer_session_header) or "").strip()
    return sid or secrets.token_urlsafe(16)


async def require_cron_secret(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(cron_bearer),
) -> None:
    settings = get_settings()
    if not settings.cron_secret:
        raise HTTPException(status_code=503, detail="Cron secret is not configured.")
    if creds is None or not secrets.compare_digest(creds.credentials, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Unauthorized.")
