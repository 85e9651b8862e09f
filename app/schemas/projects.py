#app/schemas/projects.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.project_status import ProjectStatus


# -----------------------
# Intake
# -----------------------


class SubmitProjectRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    package_id: uuid.UUID
    topic: str = Field(..., min_length=1, max_length=512)
    deadline: datetime
    expected_outputs: str = Field(..., min_length=1)
    requirements: Dict[str, Any] = Field(default_factory=dict)
    special_instructions: Optional[str] = None

    client_name: str = Field(..., min_length=1, max_length=256)
    client_email: str = Field(..., max_length=256)
    client_phone: str = Field(..., max_length=32)

    agreed_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class SubmitProjectResponse(BaseModel):
    project_id: uuid.UUID
    reference_code: str
    tracking_secret: str
    status: str


# -----------------------
# Staff / writer actions
# -----------------------


class TransitionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target: ProjectStatus
    notes: Optional[str] = None
    reason: Optional[str] = None


class AssignWriterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    writer_id: uuid.UUID


class AdjustPriceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    discount_amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    additional_charges: Decimal = Field(..., max_digits=12, decimal_places=2)


class EstimatedCompletionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    estimated_completion_at: datetime


class NoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    note: str = Field(..., max_length=4000)


class ResubmitRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    notes: Optional[str] = None
