# app/services/intake_service.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from app.core.errors import NotFound, ValidationFailed
from app.core.redaction import mask_email
from app.models.project import Project
from app.schemas.projects import SubmitProjectRequest
from app.schemas.requirements import parse_package_fields, validate_requirements
from app.services.identifier_service import (
    ReferenceCodeOracle,
    generate_reference_code,
    generate_tracking_secret,
)
from app.services.notifications import NotificationSink, dispatch_intents
from app.services.project_lifecycle import ProjectLifecycle
from app.services.project_store import ProjectStore

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Philippine mobile: 09 + 9 digits
PHONE_RE = re.compile(r"^09\d{9}$")


class IntakeService:
    """
    Public project submission: validate, mint identifiers, persist, confirm.
    """

    def __init__(
        self,
        store: ProjectStore,
        oracle: ReferenceCodeOracle,
        notifier: NotificationSink,
        *,
        lifecycle: Optional[ProjectLifecycle] = None,
        reference_prefix: str = "SA",
        reference_max_attempts: int = 5,
    ):
        self.store = store
        self.oracle = oracle
        self.notifier = notifier
        self.lifecycle = lifecycle or ProjectLifecycle()
        self.reference_prefix = reference_prefix
        self.reference_max_attempts = reference_max_attempts

    @staticmethod
    def _validate_contact(req: SubmitProjectRequest, now: datetime) -> None:
        if not EMAIL_RE.match(req.client_email.strip()):
            raise ValidationFailed("Invalid email format.", field="client_email")
        if not PHONE_RE.match(req.client_phone.strip()):
            raise ValidationFailed("Invalid Philippine mobile number.", field="client_phone")
        if req.deadline.tzinfo is None:
            raise ValidationFailed("Deadline must carry a timezone.", field="deadline")
        if req.deadline <= now:
            raise ValidationFailed("Deadline must be in the future.", field="deadline")

    def submit(self, req: SubmitProjectRequest, *, now: datetime) -> Project:
        self._validate_contact(req, now)

        package = self.store.get_package(req.package_id)
        if package is None or not package.is_active:
            raise NotFound("Package not found.", package_id=req.package_id)

        fields = parse_package_fields(package.required_fields_json)
        requirements = validate_requirements(
            fields,
            {"expected_outputs": req.expected_outputs, **req.requirements},
        )

        reference_code = generate_reference_code(
            self.oracle,
            now=now,
            max_attempts=self.reference_max_attempts,
            prefix=self.reference_prefix,
        )

        project = Project(
            reference_code=reference_code,
            tracking_secret=generate_tracking_secret(),
            package_id=package.id,
            package_name=package.name,
            topic=req.topic.strip(),
            requirements_json=requirements,
            special_instructions=(req.special_instructions or "").strip() or None,
            client_name=req.client_name.strip(),
            client_email=req.client_email.strip().lower(),
            client_phone=req.client_phone.strip(),
            agreed_price=req.agreed_price,
            discount_amount=0,
            additional_charges=0,
            deadline=req.deadline,
        )

        outcome = self.lifecycle.open(project, now=now)
        project = self.store.insert(outcome)

        logger.info(
            "project submitted",
            extra={
                "reference_code": reference_code,
                "package": package.slug,
                "client_email": mask_email(project.client_email),
            },
        )

        dispatch_intents(self.notifier, outcome.intents)
        return project
