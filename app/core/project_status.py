# app/core/project_status.py
from enum import Enum


class ProjectStatus(str, Enum):
    SUBMITTED = "submitted"
    VALIDATED = "validated"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETE = "complete"
    PAID = "paid"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# A writer is "busy" with a project while it sits in one of these.
ACTIVE_STATUSES = frozenset(
    {ProjectStatus.ASSIGNED, ProjectStatus.IN_PROGRESS, ProjectStatus.REVIEW}
)

TERMINAL_STATUSES = frozenset(
    {ProjectStatus.PAID, ProjectStatus.CANCELLED, ProjectStatus.REJECTED}
)
