# app/services/project_lifecycle.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.errors import InvalidTransition, ValidationFailed, WriterAtCapacity
from app.core.project_status import ACTIVE_STATUSES, TERMINAL_STATUSES, ProjectStatus
from app.core.project_status_graph import rule_for
from app.core.types import ActorRole, NotifyTarget
from app.models.enums import HistoryAction
from app.models.project import Project
from app.models.project_history import ProjectHistoryEntry
from app.models.writer import Writer
from app.services.ledger_compute import WRITER_SHARE_RATIO, compute_split, to_money
from app.services.notifications import NotificationIntent


def _money(v: Any) -> str:
    return f"{Decimal(v):,.2f}"


@dataclass
class LifecycleOutcome:
    """
    What one engine decision produced. The caller commits `project` and
    `history` atomically (conditional on `expected_status`), then dispatches
    `intents`.
    """
    project: Project
    expected_status: str
    history: List[ProjectHistoryEntry] = field(default_factory=list)
    intents: List[NotificationIntent] = field(default_factory=list)


class ProjectLifecycle:
    """
    Pure workflow engine for a single project.

    Responsibilities:
    - Enforce the status graph (one table, actor-gated)
    - Keep the revenue split consistent with price fields
    - Produce append-only history entries
    - Produce notification intents (never deliver them)

    It never reads a clock or a database: `now` and every count it needs are
    passed in, and it trusts the supplied status to be current.
    """

    def __init__(self, writer_ratio: Decimal = WRITER_SHARE_RATIO):
        self.writer_ratio = writer_ratio

    # ─────────────────────────────────────────────
    # INTERNAL HELPERS
    # ─────────────────────────────────────────────

    @staticmethod
    def _status(project: Project) -> ProjectStatus:
        try:
            return ProjectStatus(project.status)
        except ValueError:
            raise ValidationFailed(f"Unknown project status: {project.status}", status=project.status)

    @staticmethod
    def _entry(
        project: Project,
        *,
        action: str,
        now: datetime,
        performed_by: Optional[str],
        notes: Optional[str] = None,
        old_status: Optional[str] = None,
        new_status: Optional[str] = None,
    ) -> ProjectHistoryEntry:
        return ProjectHistoryEntry(
            project_id=project.id,
            action=action,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
            performed_by=performed_by,
            created_at=now,
        )

    @staticmethod
    def _touch(project: Project, now: datetime) -> None:
        project.last_activity_at = now
        project.updated_at = now

    @staticmethod
    def _intent(
        project: Project,
        target: NotifyTarget,
        template: str,
        *,
        recipient_id: Optional[str] = None,
        **extra: Any,
    ) -> NotificationIntent:
        payload: Dict[str, Any] = {
            "reference_code": project.reference_code,
            "topic": project.topic,
            "status": project.status,
            **extra,
        }
        if target == NotifyTarget.client:
            recipient_id = recipient_id or project.client_email
        return NotificationIntent(
            target=target,
            template=template,
            project_id=project.id,
            recipient_id=recipient_id,
            payload=payload,
        )

    def _apply_split(self, project: Project) -> None:
        # store exactly the amounts the split is computed from
        project.agreed_price = to_money(project.agreed_price, "agreed_price")
        project.discount_amount = to_money(project.discount_amount or 0, "discount_amount")
        project.additional_charges = to_money(project.additional_charges or 0, "additional_charges")
        split = compute_split(
            project.agreed_price,
            project.discount_amount,
            project.additional_charges,
            writer_ratio=self.writer_ratio,
        )
        project.writer_share = split.writer_share
        project.admin_share = split.admin_share

    @staticmethod
    def _check_capacity(writer: Writer, active_count: int) -> None:
        if not writer.is_active:
            raise ValidationFailed("Writer is not active.", writer_id=writer.id)
        if active_count >= writer.max_concurrent_projects:
            raise WriterAtCapacity(
                "Writer is at capacity.",
                writer_id=writer.id,
                active_count=active_count,
                max_concurrent_projects=writer.max_concurrent_projects,
            )

    # ─────────────────────────────────────────────
    # INTAKE
    # ─────────────────────────────────────────────

    def open(self, project: Project, *, now: datetime) -> LifecycleOutcome:
        """
        Initialise a freshly minted project: status, split, first history row.
        """
        if project.id is None:
            # history and intents need the key before the first flush
            project.id = uuid.uuid4()
        project.status = ProjectStatus.SUBMITTED.value
        self._apply_split(project)
        project.created_at = now
        self._touch(project, now)

        entry = self._entry(
            project,
            action=HistoryAction.SUBMITTED,
            now=now,
            performed_by=None,
            notes="Project submitted by client",
            new_status=ProjectStatus.SUBMITTED.value,
        )
        intent = self._intent(
            project,
            NotifyTarget.client,
            "submission_confirmation",
            tracking_secret=project.tracking_secret,
            package_name=project.package_name,
            deadline=project.deadline.isoformat(),
            agreed_price=str(project.agreed_price),
        )
        return LifecycleOutcome(project=project, expected_status="", history=[entry], intents=[intent])

    # ─────────────────────────────────────────────
    # STATUS TRANSITIONS
    # ─────────────────────────────────────────────

    def transition(
        self,
        project: Project,
        target: ProjectStatus | str,
        *,
        actor: ActorRole,
        now: datetime,
        performed_by: Optional[str] = None,
        notes: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> LifecycleOutcome:
        """
        Validate and apply one edge of the status graph.

        Raises InvalidTransition for any (from, to) pair outside the table,
        for edges owned by another actor, and for edges that only a
        dedicated operation may take (writer assignment).
        """
        current = self._status(project)
        try:
            target = ProjectStatus(target)
        except ValueError:
            raise InvalidTransition(current.value, str(target), actor.value)

        rule = rule_for(current, target)
        if rule is None:
            raise InvalidTransition(current.value, target.value, actor.value)

        if rule.dedicated_only:
            raise InvalidTransition(
                current.value,
                target.value,
                actor.value,
                message=f"{current.value} -> {target.value} requires writer assignment.",
            )

        if rule.actor != actor:
            raise InvalidTransition(
                current.value,
                target.value,
                actor.value,
                message=f"{actor.value} may not move a project from {current.value} to {target.value}.",
            )

        if actor == ActorRole.writer and performed_by is not None:
            if project.writer_id is None or str(project.writer_id) != str(performed_by):
                raise ValidationFailed(
                    "Project is not assigned to this writer.",
                    writer_id=performed_by,
                )

        reason = (reason or "").strip() or None
        if rule.requires_reason and not reason:
            raise ValidationFailed("A reason is required for this transition.", to_status=target.value)

        expected = project.status
        project.status = target.value

        if target == ProjectStatus.COMPLETE:
            project.completed_at = now
        elif target == ProjectStatus.PAID:
            project.paid_at = now
        elif target == ProjectStatus.CANCELLED:
            project.cancelled_at = now
            project.cancellation_reason = reason
        elif target == ProjectStatus.REJECTED:
            project.rejection_reason = reason

        if rule.money_relevant:
            self._apply_split(project)

        self._touch(project, now)

        entry = self._entry(
            project,
            action=rule.history_action,
            now=now,
            performed_by=performed_by,
            notes=notes or reason or f"Status changed to {target.value}",
            old_status=current.value,
            new_status=target.value,
        )

        intents = [
            self._intent(project, t, template, reason=reason) if reason else self._intent(project, t, template)
            for t, template in rule.notify
        ]

        return LifecycleOutcome(project=project, expected_status=expected, history=[entry], intents=intents)

    def assign_writer(
        self,
        project: Project,
        writer: Writer,
        *,
        active_count: int,
        now: datetime,
        performed_by: Optional[str] = None,
    ) -> LifecycleOutcome:
        """
        validated -> assigned with a capacity check.

        On a project that already has a writer (assigned / in_progress /
        review) this is a reassignment: the writer changes, the status does
        not, and a `reassigned` history row is written.

        `active_count` is the writer's current number of projects in
        assigned / in_progress / review, read by the caller.
        """
        current = self._status(project)
        expected = project.status

        if current == ProjectStatus.VALIDATED:
            rule = rule_for(current, ProjectStatus.ASSIGNED)
            self._check_capacity(writer, active_count)

            project.writer_id = writer.id
            project.assigned_at = now
            project.status = ProjectStatus.ASSIGNED.value
            self._touch(project, now)

            entry = self._entry(
                project,
                action=rule.history_action,
                now=now,
                performed_by=performed_by,
                notes=f"Writer assigned: {writer.full_name}",
                old_status=current.value,
                new_status=ProjectStatus.ASSIGNED.value,
            )
            intents = [
                self._intent(
                    project,
                    t,
                    template,
                    recipient_id=str(writer.id) if t == NotifyTarget.writer else None,
                    writer_name=writer.full_name,
                )
                for t, template in rule.notify
            ]
            return LifecycleOutcome(project=project, expected_status=expected, history=[entry], intents=intents)

        if current in ACTIVE_STATUSES:
            if project.writer_id is not None and str(project.writer_id) == str(writer.id):
                raise ValidationFailed("Project is already assigned to this writer.", writer_id=writer.id)
            self._check_capacity(writer, active_count)

            previous = project.writer_id
            project.writer_id = writer.id
            project.assigned_at = now
            self._touch(project, now)

            entry = self._entry(
                project,
                action=HistoryAction.REASSIGNED,
                now=now,
                performed_by=performed_by,
                notes=f"Writer reassigned from {previous} to {writer.id} ({writer.full_name})",
            )
            intent = self._intent(
                project,
                NotifyTarget.writer,
                "writer_assigned",
                recipient_id=str(writer.id),
                writer_name=writer.full_name,
            )
            return LifecycleOutcome(project=project, expected_status=expected, history=[entry], intents=[intent])

        raise InvalidTransition(current.value, ProjectStatus.ASSIGNED.value, ActorRole.staff.value)

    def resubmit(
        self,
        project: Project,
        *,
        now: datetime,
        performed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> LifecycleOutcome:
        """
        Human-mediated loop back after a rejected payment proof.
        Not part of the transition table; staff only.
        """
        current = self._status(project)
        if current != ProjectStatus.REJECTED:
            raise InvalidTransition(current.value, ProjectStatus.SUBMITTED.value, ActorRole.staff.value)

        expected = project.status
        project.status = ProjectStatus.SUBMITTED.value
        project.rejection_reason = None
        self._touch(project, now)

        entry = self._entry(
            project,
            action=HistoryAction.RESUBMITTED,
            now=now,
            performed_by=performed_by,
            notes=notes or "Payment proof resubmitted",
            old_status=current.value,
            new_status=ProjectStatus.SUBMITTED.value,
        )
        return LifecycleOutcome(project=project, expected_status=expected, history=[entry])

    # ─────────────────────────────────────────────
    # LEDGER
    # ─────────────────────────────────────────────

    def adjust_price(
        self,
        project: Project,
        *,
        discount_amount: Any,
        additional_charges: Any,
        now: datetime,
        performed_by: Optional[str] = None,
    ) -> LifecycleOutcome:
        current = self._status(project)
        if current in TERMINAL_STATUSES:
            raise ValidationFailed(
                f"Price cannot be adjusted once a project is {current.value}.",
                status=current.value,
            )

        new_discount = to_money(discount_amount, "discount_amount")
        new_charges = to_money(additional_charges, "additional_charges")
        split = compute_split(
            project.agreed_price,
            new_discount,
            new_charges,
            writer_ratio=self.writer_ratio,
        )
        old_discount = Decimal(project.discount_amount or 0)
        old_charges = Decimal(project.additional_charges or 0)

        notes = []
        if new_discount != old_discount:
            notes.append(f"Discount: {_money(old_discount)} → {_money(new_discount)}")
        if new_charges != old_charges:
            notes.append(f"Additional charges: {_money(old_charges)} → {_money(new_charges)}")
        if not notes:
            raise ValidationFailed("No price change.", discount_amount=new_discount, additional_charges=new_charges)

        notes.append(
            f"Split: writer {_money(project.writer_share)} → {_money(split.writer_share)}, "
            f"admin {_money(project.admin_share)} → {_money(split.admin_share)}"
        )

        expected = project.status
        project.discount_amount = new_discount
        project.additional_charges = new_charges
        project.writer_share = split.writer_share
        project.admin_share = split.admin_share
        self._touch(project, now)

        entry = self._entry(
            project,
            action=HistoryAction.PRICE_ADJUSTMENT,
            now=now,
            performed_by=performed_by,
            notes="; ".join(notes),
        )
        return LifecycleOutcome(project=project, expected_status=expected, history=[entry])

    # ─────────────────────────────────────────────
    # WRITER UPDATES
    # ─────────────────────────────────────────────

    def set_estimated_completion(
        self,
        project: Project,
        *,
        estimated_at: datetime,
        writer_id: str,
        now: datetime,
    ) -> LifecycleOutcome:
        current = self._status(project)
        if current not in ACTIVE_STATUSES:
            raise ValidationFailed(
                "Estimated completion can only be set on an active project.",
                status=current.value,
            )
        if project.writer_id is None or str(project.writer_id) != str(writer_id):
            raise ValidationFailed("Project is not assigned to this writer.", writer_id=writer_id)
        if estimated_at > project.deadline:
            raise ValidationFailed(
                "Estimated completion must be before the deadline.",
                estimated_completion_at=estimated_at,
                deadline=project.deadline,
            )

        expected = project.status
        project.estimated_completion_at = estimated_at
        self._touch(project, now)

        entry = self._entry(
            project,
            action=HistoryAction.ESTIMATED_COMPLETION_SET,
            now=now,
            performed_by=str(writer_id),
            notes=f"Estimated completion set to {estimated_at:%B %d, %Y}",
        )
        return LifecycleOutcome(project=project, expected_status=expected, history=[entry])

    def add_note(
        self,
        project: Project,
        *,
        note: str,
        now: datetime,
        performed_by: Optional[str] = None,
    ) -> LifecycleOutcome:
        note = (note or "").strip()
        if not note:
            raise ValidationFailed("Note must not be empty.")

        expected = project.status
        self._touch(project, now)
        entry = self._entry(
            project,
            action=HistoryAction.NOTE,
            now=now,
            performed_by=performed_by,
            notes=note,
        )
        return LifecycleOutcome(project=project, expected_status=expected, history=[entry])
