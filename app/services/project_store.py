# app/services/project_store.py
from __future__ import annotations

import logging
import uuid
from typing import Iterable, List, Optional, Protocol, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import StaleStatus
from app.core.project_status import ACTIVE_STATUSES
from app.models.client import Client
from app.models.package import Package
from app.models.project import Project
from app.models.project_history import ProjectHistoryEntry
from app.models.reference_code import ReferenceCodeReservation
from app.models.writer import Writer
from app.services.identifier_service import parse_reference_code
from app.services.project_lifecycle import LifecycleOutcome

logger = logging.getLogger(__name__)

# Everything the engine may change on an existing project.
_MUTABLE_COLUMNS = (
    "status",
    "writer_id",
    "assigned_at",
    "discount_amount",
    "additional_charges",
    "writer_share",
    "admin_share",
    "estimated_completion_at",
    "completed_at",
    "paid_at",
    "cancelled_at",
    "cancellation_reason",
    "rejection_reason",
    "last_activity_at",
    "updated_at",
)


class ProjectStore(Protocol):
    def get(self, project_id: uuid.UUID) -> Optional[Project]: ...

    def get_by_tracking_secret(self, secret: str) -> Optional[Project]: ...

    def insert(self, outcome: LifecycleOutcome) -> Project: ...

    def commit(self, outcome: LifecycleOutcome) -> Project: ...

    def append_history(self, entries: Sequence[ProjectHistoryEntry]) -> None: ...

    def history(self, project_id: uuid.UUID) -> List[ProjectHistoryEntry]: ...

    def list_by_status(
        self, statuses: Iterable[str], *, writer_id: Optional[uuid.UUID] = None
    ) -> List[Project]: ...

    def get_writer(self, writer_id: uuid.UUID) -> Optional[Writer]: ...

    def count_active_for_writer(self, writer_id: uuid.UUID) -> int: ...

    def get_package(self, package_id: uuid.UUID) -> Optional[Package]: ...

    def get_client_by_email(self, email: str) -> Optional[Client]: ...

    def referral_codes(self) -> List[str]: ...

    def insert_client(self, client: Client) -> Client: ...


class SqlProjectStore:
    """
    SQLAlchemy-backed store.

    Reads hand back detached instances: the engine mutates them freely and
    nothing reaches the database until `commit`, which applies the change
    only if the row still holds the status the engine decided from.
    """

    def __init__(self, db: Session):
        self.db = db

    def _detached(self, obj):
        if obj is not None:
            self.db.expunge(obj)
        return obj

    # ─────────────────────────────────────────────
    # PROJECTS
    # ─────────────────────────────────────────────

    def get(self, project_id: uuid.UUID) -> Optional[Project]:
        return self._detached(self.db.get(Project, project_id))

    def get_by_tracking_secret(self, secret: str) -> Optional[Project]:
        p = self.db.execute(
            select(Project).where(Project.tracking_secret == secret)
        ).scalar_one_or_none()
        return self._detached(p)

    def insert(self, outcome: LifecycleOutcome) -> Project:
        project = outcome.project
        self.db.add(project)
        self.db.flush()
        self.db.add_all(outcome.history)
        self.db.commit()
        self.db.refresh(project)
        return project

    def commit(self, outcome: LifecycleOutcome) -> Project:
        """
        Compare-and-swap on status plus history insert, one transaction.
        Raises StaleStatus when another writer got there first.
        """
        project = outcome.project
        values = {col: getattr(project, col) for col in _MUTABLE_COLUMNS}

        res = self.db.execute(
            update(Project)
            .where(
                Project.id == project.id,
                Project.status == outcome.expected_status,
            )
            .values(**values)
        )
        if res.rowcount != 1:
            self.db.rollback()
            logger.info(
                "stale status on commit",
                extra={"project_id": str(project.id), "expected_status": outcome.expected_status},
            )
            raise StaleStatus(
                "Project changed since it was read; reload and retry.",
                project_id=project.id,
                expected_status=outcome.expected_status,
            )

        self.db.add_all(outcome.history)
        self.db.commit()
        return project

    def append_history(self, entries: Sequence[ProjectHistoryEntry]) -> None:
        self.db.add_all(entries)
        self.db.commit()

    def history(self, project_id: uuid.UUID) -> List[ProjectHistoryEntry]:
        rows = self.db.execute(
            select(ProjectHistoryEntry)
            .where(ProjectHistoryEntry.project_id == project_id)
            .order_by(ProjectHistoryEntry.created_at.asc())
        ).scalars().all()
        return list(rows)

    def list_by_status(
        self, statuses: Iterable[str], *, writer_id: Optional[uuid.UUID] = None
    ) -> List[Project]:
        stmt = select(Project).where(Project.status.in_(list(statuses)))
        if writer_id is not None:
            stmt = stmt.where(Project.writer_id == writer_id)
        rows = self.db.execute(stmt.order_by(Project.deadline.asc())).scalars().all()
        for r in rows:
            self.db.expunge(r)
        return list(rows)

    # ─────────────────────────────────────────────
    # WRITERS / PACKAGES / CLIENTS
    # ─────────────────────────────────────────────

    def get_writer(self, writer_id: uuid.UUID) -> Optional[Writer]:
        return self.db.get(Writer, writer_id)

    def count_active_for_writer(self, writer_id: uuid.UUID) -> int:
        return self.db.execute(
            select(func.count())
            .select_from(Project)
            .where(
                Project.writer_id == writer_id,
                Project.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
        ).scalar_one()

    def get_package(self, package_id: uuid.UUID) -> Optional[Package]:
        return self.db.get(Package, package_id)

    def get_client_by_email(self, email: str) -> Optional[Client]:
        return self.db.execute(
            select(Client).where(func.lower(Client.email) == email.lower())
        ).scalar_one_or_none()

    def referral_codes(self) -> List[str]:
        return list(self.db.execute(select(Client.referral_code)).scalars().all())

    def insert_client(self, client: Client) -> Client:
        self.db.add(client)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(client)
        return client


class SqlReferenceCodeOracle:
    """
    Reference-code uniqueness via the reservations table's primary key.
    Each reserve() runs in a SAVEPOINT so a lost race does not poison the
    caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def exists(self, code: str) -> bool:
        hit = self.db.execute(
            select(ReferenceCodeReservation.code).where(ReferenceCodeReservation.code == code)
        ).first()
        if hit is not None:
            return True
        return self.db.execute(
            select(Project.id).where(Project.reference_code == code)
        ).first() is not None

    def reserve(self, code: str) -> bool:
        parsed = parse_reference_code(code)
        if parsed is None:
            return False
        year, sequence = parsed
        try:
            with self.db.begin_nested():
                self.db.add(ReferenceCodeReservation(code=code, year=year, sequence=sequence))
        except IntegrityError:
            return False
        return True

    def last_sequence(self, year: int) -> int:
        return self.db.execute(
            select(func.coalesce(func.max(ReferenceCodeReservation.sequence), 0))
            .where(ReferenceCodeReservation.year == year)
        ).scalar_one()
