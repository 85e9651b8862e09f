"""project lifecycle tables

Revision ID: a1f3c9e2b7d4
Revises:
Create Date: 2026-10-18 10:12:41.208311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a1f3c9e2b7d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "packages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("slug", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column(
            "required_fields_json",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "writers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=256), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("max_concurrent_projects", sa.Integer(), server_default=sa.text("3"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("max_concurrent_projects BETWEEN 1 AND 10", name="ck_writers_capacity_range"),
    )

    op.create_table(
        "clients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=256), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=False, unique=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("referral_code", sa.String(length=16), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "reference_code_reservations",
        sa.Column("code", sa.String(length=16), primary_key=True, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("reserved_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_refcode_year_sequence", "reference_code_reservations", ["year", "sequence"])

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("reference_code", sa.String(length=16), nullable=False, unique=True),
        sa.Column("tracking_secret", sa.String(length=128), nullable=False, unique=True),
        sa.Column(
            "package_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("packages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("package_name", sa.String(length=128), nullable=False),
        sa.Column("topic", sa.String(length=512), nullable=False),
        sa.Column(
            "requirements_json",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("special_instructions", sa.Text(), nullable=True),
        sa.Column("client_name", sa.String(length=256), nullable=False),
        sa.Column("client_email", sa.String(length=256), nullable=False),
        sa.Column("client_phone", sa.String(length=32), nullable=True),
        sa.Column(
            "client_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clients.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("agreed_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), server_default=sa.text("0"), nullable=False),
        sa.Column("additional_charges", sa.Numeric(12, 2), server_default=sa.text("0"), nullable=False),
        sa.Column("writer_share", sa.Numeric(12, 2), nullable=False),
        sa.Column("admin_share", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=32), server_default=sa.text("'submitted'"), nullable=False),
        sa.Column(
            "writer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("writers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("estimated_completion_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("discount_amount >= 0", name="ck_projects_discount_nonneg"),
        sa.CheckConstraint("additional_charges >= 0", name="ck_projects_charges_nonneg"),
        sa.CheckConstraint(
            "writer_share + admin_share = agreed_price - discount_amount + additional_charges",
            name="ck_projects_split_balances",
        ),
    )
    op.create_index("ix_projects_status_deadline", "projects", ["status", "deadline"])
    op.create_index("ix_projects_writer_status", "projects", ["writer_id", "status"])

    op.create_table(
        "project_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("old_status", sa.String(length=32), nullable=True),
        sa.Column("new_status", sa.String(length=32), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_history_project_created", "project_history", ["project_id", "created_at"])
    op.create_index("ix_history_project_action", "project_history", ["project_id", "action"])


def downgrade():
    op.drop_index("ix_history_project_action", table_name="project_history")
    op.drop_index("ix_history_project_created", table_name="project_history")
    op.drop_table("project_history")

    op.drop_index("ix_projects_writer_status", table_name="projects")
    op.drop_index("ix_projects_status_deadline", table_name="projects")
    op.drop_table("projects")

    op.drop_index("ix_refcode_year_sequence", table_name="reference_code_reservations")
    op.drop_table("reference_code_reservations")

    op.drop_table("clients")
    op.drop_table("writers")
    op.drop_table("packages")
