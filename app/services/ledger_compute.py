from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from app.core.errors import ValidationFailed

WRITER_SHARE_RATIO = Decimal("0.6")

# Shares are whole currency units; the admin side absorbs any centavos.
SHARE_QUANTUM = Decimal("1")
MONEY_QUANTUM = Decimal("0.01")


def _d(x: Any, field: str) -> Decimal:
    if x is None:
        raise ValidationFailed(f"Missing required amount: {field}.", field=field)
    if isinstance(x, float):
        # floats are lossy; go through repr so 0.1 stays 0.1
        x = repr(x)
    try:
        v = Decimal(str(x))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationFailed(f"Invalid amount for {field}: {x}", field=field, value=x)
    if not v.is_finite():
        raise ValidationFailed(f"Invalid amount for {field}: {x}", field=field, value=x)
    return v


def to_money(x: Any, field: str) -> Decimal:
    """
    An amount as stored: a finite Decimal with at most two decimal places.
    Sub-cent input is refused rather than rounded, so the stored amounts
    are exactly the ones the split was computed from.
    """
    v = _d(x, field)
    try:
        cents = v.quantize(MONEY_QUANTUM)
    except InvalidOperation:
        raise ValidationFailed(f"Invalid amount for {field}: {x}", field=field, value=x)
    if cents != v:
        raise ValidationFailed(f"{field} has more than two decimal places.", field=field, value=v)
    return cents


@dataclass(frozen=True)
class Split:
    net_amount: Decimal
    writer_share: Decimal
    admin_share: Decimal


def compute_split(
    agreed_price: Any,
    discount_amount: Any = 0,
    additional_charges: Any = 0,
    writer_ratio: Decimal = WRITER_SHARE_RATIO,
) -> Split:
    """
    net          = agreed_price - discount_amount + additional_charges
    writer_share = round_half_up(net * writer_ratio)   (whole units)
    admin_share  = net - writer_share                  (never rounded on its own)

    writer_share + admin_share == net holds exactly.
    """
    price = to_money(agreed_price, "agreed_price")
    discount = to_money(discount_amount, "discount_amount")
    charges = to_money(additional_charges, "additional_charges")

    for name, v in (("agreed_price", price), ("discount_amount", discount), ("additional_charges", charges)):
        if v < 0:
            raise ValidationFailed(f"{name} must be non-negative.", field=name, value=v)

    net = price - discount + charges
    if net < 0:
        raise ValidationFailed(
            "Discount exceeds the price plus additional charges.",
            agreed_price=price,
            discount_amount=discount,
            additional_charges=charges,
        )

    writer = (net * writer_ratio).quantize(SHARE_QUANTUM, rounding=ROUND_HALF_UP)
    writer = writer.quantize(MONEY_QUANTUM)
    admin = net - writer

    return Split(net_amount=net, writer_share=writer, admin_share=admin)


@dataclass(frozen=True)
class ShareSummary:
    project_count: int
    net_total: Decimal
    writer_total: Decimal
    admin_total: Decimal


def summarize_shares(projects: Iterable[Any]) -> ShareSummary:
    """
    Totals the persisted (denormalized) shares. Historical payouts are read as
    stored, never recomputed with today's ratio.
    """
    count = 0
    writer_total = Decimal("0")
    admin_total = Decimal("0")
    for p in projects:
        count += 1
        writer_total += Decimal(p.writer_share)
        admin_total += Decimal(p.admin_share)
    return ShareSummary(
        project_count=count,
        net_total=(writer_total + admin_total).quantize(MONEY_QUANTUM),
        writer_total=writer_total.quantize(MONEY_QUANTUM),
        admin_total=admin_total.quantize(MONEY_QUANTUM),
    )
