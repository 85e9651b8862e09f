#app/core/auth_deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_token
from app.core.types import ActorRole
from app.policies.rbac import Principal, require_action

bearer = HTTPBearer(auto_error=True)


def get_current_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
) -> Principal:
    """
    Canonical authentication dependency for staff and writers.

    Guarantees:
    - JWT is valid
    - role and user_id are present
    - role is staff or writer (system never authenticates over HTTP)
    """

    try:
        payload = decode_token(creds.credentials)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")

    role = payload.get("role")
    user_id = payload.get("user_id") or payload.get("sub")
    display_name = payload.get("display_name") or "Unknown"

    if not role or not user_id:
        raise HTTPException(status_code=401, detail="Token missing required claims.")

    try:
        role_enum = ActorRole(role)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid role in token.")

    if role_enum == ActorRole.system:
        raise HTTPException(status_code=401, detail="Invalid role in token.")

    principal = Principal(
        user_id=str(user_id),
        role=role_enum,
        display_name=str(display_name),
    )

    # Make principal available to downstream middleware / handlers
    request.state.principal = principal

    return principal


def require(action: str):
    """
    Route dependency: authenticate, then check the role may call the endpoint.
    """

    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        try:
            require_action(principal, action)
        except PermissionError as e:
            raise HTTPException(status_code=403, detail=str(e))
        return principal

    return _dep
