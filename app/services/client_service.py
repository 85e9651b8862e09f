# app/services/client_service.py
from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from app.core.errors import ExhaustedRetries, ValidationFailed
from app.core.redaction import mask_email
from app.models.client import Client
from app.services.identifier_service import generate_unique_referral_code
from app.services.intake_service import EMAIL_RE, PHONE_RE
from app.services.project_store import ProjectStore

logger = logging.getLogger(__name__)


class ClientService:
    """
    Client registration with a unique referral code.

    The in-memory check against existing codes narrows the race; the unique
    constraint decides it. A lost race is retried a bounded number of times.
    """

    def __init__(
        self,
        store: ProjectStore,
        *,
        max_attempts: int = 10,
        insert_retries: int = 3,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.max_attempts = max_attempts
        self.insert_retries = insert_retries
        self.rng = rng

    def register(
        self,
        *,
        full_name: str,
        email: str,
        phone: Optional[str],
        now: datetime,
    ) -> Client:
        full_name = (full_name or "").strip()
        email = (email or "").strip().lower()
        phone = (phone or "").strip() or None

        if not full_name:
            raise ValidationFailed("Full name is required.", field="full_name")
        if not EMAIL_RE.match(email):
            raise ValidationFailed("Invalid email format.", field="email")
        if phone is not None and not PHONE_RE.match(phone):
            raise ValidationFailed("Invalid Philippine mobile number.", field="phone")
        if self.store.get_client_by_email(email) is not None:
            raise ValidationFailed("A client with this email already exists.", field="email")

        for attempt in range(1, self.insert_retries + 1):
            code = generate_unique_referral_code(
                full_name,
                self.store.referral_codes(),
                now=now,
                max_attempts=self.max_attempts,
                rng=self.rng,
            )
            client = Client(
                id=uuid.uuid4(),
                full_name=full_name,
                email=email,
                phone=phone,
                referral_code=code,
                created_at=now,
            )
            try:
                client = self.store.insert_client(client)
            except IntegrityError:
                # both unique columns can lose a race; only a code clash is worth retrying
                if self.store.get_client_by_email(email) is not None:
                    raise ValidationFailed("A client with this email already exists.", field="email")
                logger.info("referral code insert conflict", extra={"attempt": attempt})
                continue

            logger.info(
                "client registered",
                extra={"client_email": mask_email(email), "referral_code": code},
            )
            return client

        raise ExhaustedRetries("Could not register client with a unique referral code.", attempts=self.insert_retries)
