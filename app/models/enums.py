#app/models/enums.py
from __future__ import annotations


class HistoryAction:
    # Intake
    SUBMITTED = "submitted"
    RESUBMITTED = "resubmitted"

    # Payment
    PAYMENT_VALIDATED = "payment_validated"
    PAYMENT_REJECTED = "payment_rejected"
    PAID = "paid"

    # Workflow
    STATUS_CHANGE = "status_change"
    ASSIGNED = "assigned"
    REASSIGNED = "reassigned"
    REVISION_REQUESTED = "revision_requested"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    # Ledger
    PRICE_ADJUSTMENT = "price_adjustment"

    # Writer
    ESTIMATED_COMPLETION_SET = "estimated_completion_set"
    NOTE = "note"

    # System sweeps
    DEADLINE_WARNING = "deadline_warning"
