"""Model builders shared by the service and API tests."""
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.core.project_status import ProjectStatus
from app.models.package import Package
from app.models.project import Project
from app.models.writer import Writer
from app.services.ledger_compute import compute_split

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


def build_project(
    status: ProjectStatus = ProjectStatus.SUBMITTED,
    *,
    agreed_price="2000",
    discount_amount="0",
    additional_charges="0",
    writer_id=None,
    deadline=None,
    client_phone="09171234567",
    created_at=NOW,
) -> Project:
    split = compute_split(agreed_price, discount_amount, additional_charges)
    return Project(
        id=uuid.uuid4(),
        reference_code="SA-2026-00001",
        tracking_secret="trk-" + uuid.uuid4().hex,
        package_id=None,
        package_name="Thesis Writing",
        topic="Effects of remote learning",
        requirements_json={"expected_outputs": "Chapters 1-3"},
        special_instructions=None,
        client_name="Dave Smith",
        client_email="dave@example.com",
        client_phone=client_phone,
        agreed_price=Decimal(agreed_price),
        discount_amount=Decimal(discount_amount),
        additional_charges=Decimal(additional_charges),
        writer_share=split.writer_share,
        admin_share=split.admin_share,
        status=status.value,
        writer_id=writer_id,
        deadline=deadline or NOW + timedelta(days=7),
        last_activity_at=created_at,
        created_at=created_at,
        updated_at=created_at,
    )


def build_writer(*, max_concurrent_projects=3, is_active=True, name="Ana Reyes") -> Writer:
    return Writer(
        id=uuid.uuid4(),
        full_name=name,
        email=f"{uuid.uuid4().hex[:8]}@example.com",
        is_active=is_active,
        max_concurrent_projects=max_concurrent_projects,
        created_at=NOW,
    )


def build_package(**overrides) -> Package:
    fields = overrides.pop(
        "required_fields_json",
        [
            {"name": "expected_outputs", "label": "Expected outputs", "type": "textarea", "required": True},
            {"name": "chapters", "label": "Chapters", "type": "number", "required": True},
            {
                "name": "citation_style",
                "label": "Citation style",
                "type": "select",
                "required": False,
                "options": ["APA", "MLA"],
            },
        ],
    )
    return Package(
        id=overrides.pop("id", uuid.uuid4()),
        slug=overrides.pop("slug", "thesis-writing"),
        name=overrides.pop("name", "Thesis Writing"),
        required_fields_json=fields,
        is_active=overrides.pop("is_active", True),
        created_at=NOW,
    )
