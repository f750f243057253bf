from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from core.exceptions import InvalidInput
from core.http import parse_decimal
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from performance.models import PrincipalAdjustment, WtdAdjustment

USD_Q = Decimal("0.01")
MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
WEEK_START_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _q_usd(x: Decimal) -> Decimal:
    try:
        return x.quantize(USD_Q, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidInput(f"amount out of range: {x}")


def month_key(at: Optional[datetime] = None) -> str:
    at = timezone.localtime(at or timezone.now())
    return f"{at.year:04d}-{at.month:02d}"


def _non_zero_delta(value: Any, *, field: str) -> Decimal:
    try:
        delta = parse_decimal(value, field=field)
    except InvalidInput:
        raise InvalidInput(f"Invalid {field} (non-zero number)")
    delta = _q_usd(delta)
    if delta == 0:
        raise InvalidInput(f"Invalid {field} (non-zero number)")
    return delta


# -----------------------------
# Principal adjustments
# -----------------------------
def principal_ledger() -> dict[str, Any]:
    rows = list(PrincipalAdjustment.objects.order_by("created_at", "id"))
    total = PrincipalAdjustment.objects.aggregate(
        t=Coalesce(Sum("delta"), Decimal("0"))
    )["t"]
    return {"total_principal": total, "rows": rows}


def add_principal_adjustment(
    *, month: Any, delta: Any, note: Optional[str] = None
) -> PrincipalAdjustment:
    month = str(month or "")[:7]
    if not MONTH_RE.match(month) or not 1 <= int(month[5:7]) <= 12:
        raise InvalidInput("Invalid month (YYYY-MM)")

    return PrincipalAdjustment.objects.create(
        month=month,
        delta=_non_zero_delta(delta, field="delta"),
        note=note,
    )


# -----------------------------
# Week-to-date adjustments
# -----------------------------
def add_wtd_adjustment(
    *, week_start: Any, delta_usd: Any, note: Optional[str] = None
) -> WtdAdjustment:
    raw = str(week_start or "")[:10]
    if not WEEK_START_RE.match(raw):
        raise InvalidInput("Invalid week_start (YYYY-MM-DD)")
    try:
        parsed = date.fromisoformat(raw)
    except ValueError:
        raise InvalidInput("Invalid week_start (YYYY-MM-DD)")

    return WtdAdjustment.objects.create(
        week_start=parsed,
        delta_usd=_non_zero_delta(delta_usd, field="delta_usd"),
        note=note,
    )


def recent_wtd_adjustments(*, limit: int = 500) -> list[WtdAdjustment]:
    return list(WtdAdjustment.objects.order_by("-created_at", "-id")[:limit])
