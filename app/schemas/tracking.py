#app/schemas/tracking.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class VerifyPinRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tracking_secret: str = Field(..., min_length=1, max_length=128)
    pin: str


class VerifyPinResponse(BaseModel):
    verified: bool = True
    verification: str
    session_id: str
    expires_at: datetime


class TrackingHistoryItem(BaseModel):
    action: str
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class PublicTrackingView(BaseModel):
    """
    Visible to anyone holding the tracking secret.
    """
    verified: bool = False
    reference_code: str
    status: str
    package_name: str
    deadline: datetime
    submitted_at: datetime


class FullTrackingView(PublicTrackingView):
    """
    Unlocked by a valid verification marker. Writer/admin shares are never
    part of the client-facing view.
    """
    verified: bool = True
    project_id: str
    topic: str
    requirements: Dict[str, Any] = Field(default_factory=dict)
    special_instructions: Optional[str] = None
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    agreed_price: str
    discount_amount: str
    additional_charges: str
    estimated_completion_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    history: List[TrackingHistoryItem] = Field(default_factory=list)
