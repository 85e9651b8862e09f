# app/services/projects_service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from app.core.errors import NotFound
from app.core.project_status import ProjectStatus
from app.core.types import ActorRole
from app.models.project import Project
from app.models.project_history import ProjectHistoryEntry
from app.policies.rbac import Principal
from app.services.ledger_compute import ShareSummary, summarize_shares
from app.services.notifications import NotificationSink, dispatch_intents
from app.services.project_lifecycle import LifecycleOutcome, ProjectLifecycle
from app.services.project_store import ProjectStore

logger = logging.getLogger(__name__)

# Shares count as earned once the work is accepted.
EARNING_STATUSES = (ProjectStatus.COMPLETE.value, ProjectStatus.PAID.value)


class ProjectsService:
    """
    Staff / writer actions on existing projects.

    Every call follows the same shape:
    1. load the project (detached)
    2. let ProjectLifecycle decide
    3. commit conditionally on the status that was read
    4. hand the intents to the notifier (after commit, best-effort)
    """

    def __init__(
        self,
        store: ProjectStore,
        notifier: NotificationSink,
        lifecycle: Optional[ProjectLifecycle] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.lifecycle = lifecycle or ProjectLifecycle()

    def _load(self, project_id: uuid.UUID) -> Project:
        project = self.store.get(project_id)
        if project is None:
            raise NotFound("Project not found.", project_id=project_id)
        return project

    def _load_for(self, project_id: uuid.UUID, principal: Principal) -> Project:
        project = self._load(project_id)
        # writers only ever see their own projects; same answer as a miss
        if principal.role == ActorRole.writer and str(project.writer_id) != principal.user_id:
            raise NotFound("Project not found.", project_id=project_id)
        return project

    def _finish(self, outcome: LifecycleOutcome, *, event: str) -> Project:
        project = self.store.commit(outcome)
        logger.info(
            event,
            extra={
                "project_id": str(project.id),
                "reference_code": project.reference_code,
                "from_status": outcome.expected_status,
                "to_status": project.status,
                "actions": [h.action for h in outcome.history],
            },
        )
        dispatch_intents(self.notifier, outcome.intents)
        return project

    # ─────────────────────────────────────────────
    # STATUS
    # ─────────────────────────────────────────────

    def change_status(
        self,
        project_id: uuid.UUID,
        target: ProjectStatus,
        *,
        principal: Principal,
        now: datetime,
        notes: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Project:
        project = self._load_for(project_id, principal)
        outcome = self.lifecycle.transition(
            project,
            target,
            actor=principal.role,
            now=now,
            performed_by=principal.user_id,
            notes=notes,
            reason=reason,
        )
        return self._finish(outcome, event="project transition")

    def assign_writer(
        self,
        project_id: uuid.UUID,
        writer_id: uuid.UUID,
        *,
        principal: Principal,
        now: datetime,
    ) -> Project:
        project = self._load(project_id)
        writer = self.store.get_writer(writer_id)
        if writer is None:
            raise NotFound("Writer not found.", writer_id=writer_id)

        outcome = self.lifecycle.assign_writer(
            project,
            writer,
            active_count=self.store.count_active_for_writer(writer.id),
            now=now,
            performed_by=principal.user_id,
        )
        return self._finish(outcome, event="writer assigned")

    def resubmit(
        self,
        project_id: uuid.UUID,
        *,
        principal: Principal,
        now: datetime,
        notes: Optional[str] = None,
    ) -> Project:
        project = self._load(project_id)
        outcome = self.lifecycle.resubmit(project, now=now, performed_by=principal.user_id, notes=notes)
        return self._finish(outcome, event="project resubmitted")

    # ─────────────────────────────────────────────
    # LEDGER
    # ─────────────────────────────────────────────

    def adjust_price(
        self,
        project_id: uuid.UUID,
        *,
        discount_amount: Decimal,
        additional_charges: Decimal,
        principal: Principal,
        now: datetime,
    ) -> Project:
        project = self._load(project_id)
        outcome = self.lifecycle.adjust_price(
            project,
            discount_amount=discount_amount,
            additional_charges=additional_charges,
            now=now,
            performed_by=principal.user_id,
        )
        return self._finish(outcome, event="price adjusted")

    def earnings(self, *, writer_id: Optional[uuid.UUID] = None) -> ShareSummary:
        return summarize_shares(self.store.list_by_status(EARNING_STATUSES, writer_id=writer_id))

    # ─────────────────────────────────────────────
    # WRITER UPDATES / NOTES
    # ─────────────────────────────────────────────

    def set_estimated_completion(
        self,
        project_id: uuid.UUID,
        estimated_at: datetime,
        *,
        principal: Principal,
        now: datetime,
    ) -> Project:
        project = self._load_for(project_id, principal)
        outcome = self.lifecycle.set_estimated_completion(
            project,
            estimated_at=estimated_at,
            writer_id=principal.user_id,
            now=now,
        )
        return self._finish(outcome, event="estimated completion set")

    def add_note(
        self,
        project_id: uuid.UUID,
        note: str,
        *,
        principal: Principal,
        now: datetime,
    ) -> Project:
        project = self._load_for(project_id, principal)
        outcome = self.lifecycle.add_note(project, note=note, now=now, performed_by=principal.user_id)
        return self._finish(outcome, event="note added")

    def history(self, project_id: uuid.UUID, *, principal: Principal) -> List[ProjectHistoryEntry]:
        self._load_for(project_id, principal)
        return self.store.history(project_id)
