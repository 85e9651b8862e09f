# /app/models/project.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import (
    String,
    Text,
    DateTime,
    Numeric,
    ForeignKey,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.core.project_status import ProjectStatus


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Public, human-shareable: SA-YYYY-NNNNN
    reference_code: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    # Capability token for the anonymous tracking view. Set once.
    tracking_secret: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    package_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("packages.id", ondelete="SET NULL"), nullable=True
    )
    package_name: Mapped[str] = mapped_column(String(128), nullable=False)

    topic: Mapped[str] = mapped_column(String(512), nullable=False)
    requirements_json: Mapped[Dict[str, Any]] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb")
    )
    special_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ─────────── CLIENT CONTACT ───────────
    client_name: Mapped[str] = mapped_column(String(256), nullable=False)
    client_email: Mapped[str] = mapped_column(String(256), nullable=False)
    client_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )

    # ─────────── MONEY (denormalized split) ───────────
    agreed_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, server_default=text("0")
    )
    additional_charges: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, server_default=text("0")
    )
    writer_share: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    admin_share: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # ─────────── WORKFLOW ───────────
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default=text(f"'{ProjectStatus.SUBMITTED.value}'")
    )
    writer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("writers.id", ondelete="SET NULL"), nullable=True
    )
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    estimated_completion_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )

    __table_args__ = (
        CheckConstraint("discount_amount >= 0", name="ck_projects_discount_nonneg"),
        CheckConstraint("additional_charges >= 0", name="ck_projects_charges_nonneg"),
        CheckConstraint(
            "writer_share + admin_share = agreed_price - discount_amount + additional_charges",
            name="ck_projects_split_balances",
        ),
        Index("ix_projects_status_deadline", "status", "deadline"),
        Index("ix_projects_writer_status", "writer_id", "status"),
    )

    @property
    def status_enum(self) -> ProjectStatus:
        return ProjectStatus(self.status)
