# app/services/identifier_service.py
from __future__ import annotations

import logging
import random
import re
import secrets
from datetime import datetime
from typing import Iterable, Optional, Protocol

from app.core.errors import ExhaustedRetries

logger = logging.getLogger(__name__)

REFERENCE_CODE_RE = re.compile(r"^SA-\d{4}-\d{5}$")
REFERRAL_CODE_RE = re.compile(r"^[A-Z]{4}\d{4}$")

MAX_SEQUENCE = 99999


class ReferenceCodeOracle(Protocol):
    """
    Persistence-side arbiter of reference-code uniqueness.
    `reserve` must be atomic across processes (unique constraint, not a lock).
    """

    def exists(self, code: str) -> bool: ...

    def reserve(self, code: str) -> bool: ...

    def last_sequence(self, year: int) -> int: ...


# ─────────────────────────────────────────────
# ORDER REFERENCE CODE
# ─────────────────────────────────────────────

def format_reference_code(year: int, sequence: int, prefix: str = "SA") -> str:
    return f"{prefix}-{year:04d}-{sequence:05d}"


def parse_reference_code(code: str) -> Optional[tuple[int, int]]:
    m = re.match(r"^[A-Z]+-(\d{4})-(\d{5})$", code or "")
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def generate_reference_code(
    oracle: ReferenceCodeOracle,
    *,
    now: datetime,
    max_attempts: int = 5,
    prefix: str = "SA",
) -> str:
    """
    Sequence numbers restart every calendar year (SA-2025-00001, SA-2026-00001).

    The candidate is derived from the oracle's highest issued sequence; a lost
    race shows up as a failed reserve() and the next candidate is re-derived.
    """
    year = now.year
    candidate_seq = oracle.last_sequence(year) + 1

    for attempt in range(1, max_attempts + 1):
        if candidate_seq > MAX_SEQUENCE:
            raise ExhaustedRetries(
                f"Reference code sequence for {year} is exhausted.",
                year=year,
                attempts=attempt - 1,
            )

        code = format_reference_code(year, candidate_seq, prefix)
        if oracle.reserve(code):
            return code

        logger.info("reference code collision", extra={"code": code, "attempt": attempt})
        candidate_seq = max(candidate_seq + 1, oracle.last_sequence(year) + 1)

    raise ExhaustedRetries(
        "Could not reserve a unique reference code.",
        year=year,
        attempts=max_attempts,
    )


def generate_tracking_secret() -> str:
    # 256 bits, URL-safe; a capability, never derived from anything guessable
    return secrets.token_urlsafe(32)


# ─────────────────────────────────────────────
# CLIENT REFERRAL CODE
# ─────────────────────────────────────────────

def _name_letters(full_name: str) -> str:
    words = (full_name or "").split()
    first = words[0] if words else ""
    return re.sub(r"[^A-Z]", "", first.upper())


def generate_referral_code(full_name: str, rng: Optional[random.Random] = None) -> str:
    """
    "Dave Smith" -> "DAVE" + 4 digits in [1000, 9999].
    Short names are padded with X: "Jo" -> "JOXX1234".
    """
    rng = rng or random.Random()
    prefix = _name_letters(full_name)[:4].ljust(4, "X")
    suffix = rng.randint(1000, 9999)
    return f"{prefix}{suffix}"


def normalize_referral_code(code: str) -> str:
    return (code or "").upper().strip()


def is_valid_referral_code_format(code: str) -> bool:
    # the 2-letter/6-digit fallback shape deliberately does not pass
    return bool(REFERRAL_CODE_RE.match(normalize_referral_code(code)))


def fallback_referral_code(full_name: str, now: datetime) -> str:
    prefix = _name_letters(full_name)[:2].ljust(2, "X")
    millis = int(now.timestamp() * 1000)
    return f"{prefix}{str(millis)[-6:]}"


def generate_unique_referral_code(
    full_name: str,
    existing_codes: Iterable[str],
    *,
    now: datetime,
    max_attempts: int = 10,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Bounded random retry, then a time-derived fallback so the call always
    terminates. The returned code is never in `existing_codes`
    (compared case-insensitively).
    """
    rng = rng or random.Random()
    taken = {normalize_referral_code(c) for c in existing_codes}

    for _ in range(max_attempts):
        code = generate_referral_code(full_name, rng)
        if code not in taken:
            return code

    code = fallback_referral_code(full_name, now)
    if code in taken:
        # same name registered in the same millisecond window; walk forward
        millis = int(now.timestamp() * 1000)
        prefix = code[:2]
        for step in range(1, 1_000_000):
            code = f"{prefix}{(millis + step) % 1_000_000:06d}"
            if code not in taken:
                break
        else:
            raise ExhaustedRetries("Could not generate a unique referral code.", name=full_name)

    logger.info("referral code fallback used", extra={"attempts": max_attempts})
    return code
