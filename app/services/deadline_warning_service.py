# app/services/deadline_warning_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

from app.core.project_status import ACTIVE_STATUSES
from app.core.types import NotifyTarget
from app.models.enums import HistoryAction
from app.models.project_history import ProjectHistoryEntry
from app.services.notifications import NotificationIntent, NotificationSink, dispatch_intents
from app.services.project_store import ProjectStore
from app.services.risk_scanner import find_at_risk_projects, hours_remaining, warning_due

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    checked: int
    notified: int


class DeadlineWarningService:
    """
    Scheduled sweep over active projects close to their deadline.

    Per at-risk project whose cooldown has elapsed:
    - writer intent when a writer is assigned
    - admin intent once `admin_alert_hours` or fewer remain
    - one `deadline_warning` history entry (this is the cooldown record)
    """

    def __init__(
        self,
        store: ProjectStore,
        notifier: NotificationSink,
        *,
        threshold_hours: int = 48,
        cooldown_hours: int = 12,
        admin_alert_hours: int = 24,
        admin_email: str = "",
    ):
        self.store = store
        self.notifier = notifier
        self.threshold_hours = threshold_hours
        self.cooldown_hours = cooldown_hours
        self.admin_alert_hours = admin_alert_hours
        self.admin_email = admin_email

    def run(self, now: datetime) -> SweepResult:
        active = self.store.list_by_status([s.value for s in ACTIVE_STATUSES])
        at_risk = find_at_risk_projects(active, now, self.threshold_hours)

        notified = 0
        for project in at_risk:
            if not warning_due(self.store.history(project.id), now, self.cooldown_hours):
                continue

            hours = hours_remaining(project, now)
            payload = {
                "reference_code": project.reference_code,
                "topic": project.topic,
                "deadline": project.deadline.isoformat(),
                "hours_remaining": hours,
            }

            intents: List[NotificationIntent] = []
            if project.writer_id is not None:
                intents.append(
                    NotificationIntent(
                        target=NotifyTarget.writer,
                        template="deadline_warning",
                        project_id=project.id,
                        recipient_id=str(project.writer_id),
                        payload=payload,
                    )
                )
            if hours <= self.admin_alert_hours:
                intents.append(
                    NotificationIntent(
                        target=NotifyTarget.admin,
                        template="deadline_warning_admin",
                        project_id=project.id,
                        recipient_id=self.admin_email or None,
                        payload=payload,
                    )
                )

            # cooldown marker
            self.store.append_history([
                ProjectHistoryEntry(
                    project_id=project.id,
                    action=HistoryAction.DEADLINE_WARNING,
                    notes=f"Deadline warning sent ({hours} hours remaining)",
                    performed_by=None,
                    created_at=now,
                )
            ])
            dispatch_intents(self.notifier, intents)
            notified += 1

        logger.info(
            "deadline warning sweep",
            extra={"checked": len(at_risk), "notified": notified},
        )
        return SweepResult(checked=len(at_risk), notified=notified)
