from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ReferenceCodeReservation(Base):
    """
    Uniqueness oracle for order reference codes.

    A code is issued only after its INSERT here succeeds; the primary key is
    the arbiter between concurrent API instances.
    """
    __tablename__ = "reference_code_reservations"

    code: Mapped[str] = mapped_column(String(16), primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    reserved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )

    __table_args__ = (Index("ix_refcode_year_sequence", "year", "sequence"),)
