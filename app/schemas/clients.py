#app/schemas/clients.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterClientRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(..., min_length=1, max_length=256)
    email: str = Field(..., max_length=256)
    phone: Optional[str] = Field(default=None, max_length=32)


class ReferralCodeCheck(BaseModel):
    code: str
    normalized: str
    valid_format: bool
    exists: bool
