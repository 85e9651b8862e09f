# app/services/risk_scanner.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from app.core.project_status import ACTIVE_STATUSES, ProjectStatus
from app.models.enums import HistoryAction
from app.models.project import Project
from app.models.project_history import ProjectHistoryEntry

AT_RISK_THRESHOLD_HOURS = 48
WARNING_COOLDOWN_HOURS = 12

_ACTIVE_VALUES = frozenset(s.value for s in ACTIVE_STATUSES)


def hours_remaining(project: Project, now: datetime) -> int:
    """
    Whole hours until the deadline, truncated toward zero: 30 minutes
    overdue is 0, 90 minutes overdue is -1.
    """
    return int((project.deadline - now).total_seconds() / 3600)


def is_at_risk(project: Project, now: datetime, threshold_hours: int = AT_RISK_THRESHOLD_HOURS) -> bool:
    status = project.status.value if isinstance(project.status, ProjectStatus) else project.status
    if status not in _ACTIVE_VALUES:
        return False
    return project.deadline - now <= timedelta(hours=threshold_hours)


def find_at_risk_projects(
    projects: Iterable[Project],
    now: datetime,
    threshold_hours: int = AT_RISK_THRESHOLD_HOURS,
) -> List[Project]:
    """
    Active projects (assigned / in_progress / review) due within
    `threshold_hours`, overdue ones included, most urgent first.
    """
    at_risk = [p for p in projects if is_at_risk(p, now, threshold_hours)]
    at_risk.sort(key=lambda p: p.deadline)
    return at_risk


def last_warning_at(history: Iterable[ProjectHistoryEntry]) -> Optional[datetime]:
    stamps = [h.created_at for h in history if h.action == HistoryAction.DEADLINE_WARNING]
    return max(stamps) if stamps else None


def warning_due(
    history: Iterable[ProjectHistoryEntry],
    now: datetime,
    cooldown_hours: int = WARNING_COOLDOWN_HOURS,
) -> bool:
    """
    The cooldown lives in the history log, not here: a project is due unless
    its latest `deadline_warning` entry is younger than `cooldown_hours`.
    """
    last = last_warning_at(history)
    if last is None:
        return True
    return now - last >= timedelta(hours=cooldown_hours)
