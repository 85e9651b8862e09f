from __future__ import annotations
import re
import uuid

def mask_uuid(u: uuid.UUID | None) -> str | None:
    if not u:
        return None
    s = str(u)
    return s[:8] + "-REDACTED-" + s[-4:]


def mask_email(email: str | None) -> str | None:
    if not email or "@" not in email:
        return None
    local, domain = email.split("@", 1)
    return local[:1] + "***@" + domain


def mask_phone(phone: str | None) -> str | None:
    # never log the last 4 digits: they are the tracking PIN
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    return digits[:2] + "*" * max(len(digits) - 2, 0)


_TRACK_PATH = re.compile(r"/track/(?!verify\b)[^/]+")


def mask_tracking_path(path: str) -> str:
    # the tracking secret is a capability; keep it out of access logs
    return _TRACK_PATH.sub("/track/REDACTED", path)
