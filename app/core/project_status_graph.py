# app/core/project_status_graph.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from app.core.project_status import ProjectStatus as S
from app.core.types import ActorRole, NotifyTarget


@dataclass(frozen=True)
class TransitionRule:
    actor: ActorRole
    history_action: str
    notify: Tuple[Tuple[NotifyTarget, str], ...] = ()
    money_relevant: bool = False
    requires_reason: bool = False
    # only reachable through a dedicated operation (e.g. writer assignment)
    dedicated_only: bool = False


ALLOWED_STATUS_TRANSITIONS: Dict[Tuple[S, S], TransitionRule] = {
    (S.SUBMITTED, S.VALIDATED): TransitionRule(
        actor=ActorRole.staff,
        history_action="payment_validated",
        notify=((NotifyTarget.client, "payment_validated"),),
        money_relevant=True,
    ),
    (S.SUBMITTED, S.REJECTED): TransitionRule(
        actor=ActorRole.staff,
        history_action="payment_rejected",
        notify=((NotifyTarget.client, "payment_rejected"),),
        requires_reason=True,
    ),
    (S.VALIDATED, S.ASSIGNED): TransitionRule(
        actor=ActorRole.staff,
        history_action="assigned",
        notify=(
            (NotifyTarget.client, "writer_assigned"),
            (NotifyTarget.writer, "writer_assigned"),
        ),
        dedicated_only=True,
    ),
    (S.ASSIGNED, S.IN_PROGRESS): TransitionRule(
        actor=ActorRole.writer,
        history_action="status_change",
    ),
    (S.IN_PROGRESS, S.REVIEW): TransitionRule(
        actor=ActorRole.writer,
        history_action="status_change",
    ),
    (S.REVIEW, S.COMPLETE): TransitionRule(
        actor=ActorRole.staff,
        history_action="completed",
        notify=((NotifyTarget.client, "project_completion"),),
    ),
    (S.REVIEW, S.IN_PROGRESS): TransitionRule(
        actor=ActorRole.staff,
        history_action="revision_requested",
    ),
    (S.COMPLETE, S.PAID): TransitionRule(
        actor=ActorRole.staff,
        history_action="paid",
        money_relevant=True,
    ),
    (S.SUBMITTED, S.CANCELLED): TransitionRule(
        actor=ActorRole.staff,
        history_action="cancelled",
    ),
    (S.VALIDATED, S.CANCELLED): TransitionRule(
        actor=ActorRole.staff,
        history_action="cancelled",
    ),
}


def rule_for(from_status: S, to_status: S) -> Optional[TransitionRule]:
    return ALLOWED_STATUS_TRANSITIONS.get((from_status, to_status))


def next_statuses(from_status: S, actor: Optional[ActorRole] = None) -> FrozenSet[S]:
    """
    Targets reachable from `from_status`, optionally narrowed to one actor.
    Drives the action buttons a dashboard offers.
    """
    return frozenset(
        to
        for (frm, to), rule in ALLOWED_STATUS_TRANSITIONS.items()
        if frm == from_status and (actor is None or rule.actor == actor)
    )
