# app/api/v1/clients.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends

from app.core.config import get_settings
from app.core.deps import get_now, get_store
from app.schemas.clients import ReferralCodeCheck, RegisterClientRequest
from app.services.client_service import ClientService
from app.services.identifier_service import is_valid_referral_code_format, normalize_referral_code

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post("")
def register_client(
    body: RegisterClientRequest,
    store=Depends(get_store),
    now: datetime = Depends(get_now),
):
    svc = ClientService(store, max_attempts=get_settings().referral_code_max_attempts)
    c = svc.register(full_name=body.full_name, email=body.email, phone=body.phone, now=now)
    return {
        "clientId": str(c.id),
        "fullName": c.full_name,
        "email": c.email,
        "referralCode": c.referral_code,
        "createdAt": c.created_at.isoformat(),
    }


@router.get("/referral-codes/{code}", response_model=ReferralCodeCheck)
def check_referral_code(code: str, store=Depends(get_store)):
    normalized = normalize_referral_code(code)
    return ReferralCodeCheck(
        code=code,
        normalized=normalized,
        valid_format=is_valid_referral_code_format(normalized),
        exists=normalized in set(store.referral_codes()),
    )
