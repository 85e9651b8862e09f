#app/policies/rbac.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Set

from app.core.types import ActorRole


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: ActorRole
    display_name: str


# --- Core action constants ---
ACTION_CHANGE_STATUS = "CHANGE_STATUS"
ACTION_ASSIGN_WRITER = "ASSIGN_WRITER"
ACTION_ADJUST_PRICE = "ADJUST_PRICE"
ACTION_RESUBMIT = "RESUBMIT"
ACTION_SET_ESTIMATE = "SET_ESTIMATE"
ACTION_ADD_NOTE = "ADD_NOTE"
ACTION_VIEW_HISTORY = "VIEW_HISTORY"
ACTION_VIEW_DASHBOARD = "VIEW_DASHBOARD"


def allowed_actions(role: ActorRole) -> Set[str]:
    """
    Pure RBAC: which endpoints a role may call at all.
    Which *transition* a role may perform is decided by the status graph.
    """

    if role == ActorRole.staff:
        return {
            ACTION_CHANGE_STATUS,
            ACTION_ASSIGN_WRITER,
            ACTION_ADJUST_PRICE,
            ACTION_RESUBMIT,
            ACTION_ADD_NOTE,
            ACTION_VIEW_HISTORY,
            ACTION_VIEW_DASHBOARD,
        }

    if role == ActorRole.writer:
        return {
            ACTION_CHANGE_STATUS,
            ACTION_SET_ESTIMATE,
            ACTION_ADD_NOTE,
            ACTION_VIEW_HISTORY,
        }

    return set()


def require_action(principal: Principal, action: str) -> None:
    if action not in allowed_actions(principal.role):
        raise PermissionError(
            f"Role {principal.role.value} not permitted for action {action}."
        )
