from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from accounts.models import InvestorAccount
from core.exceptions import InvalidInput, PriceUnavailable
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from performance.models import NavSnapshot

log = logging.getLogger(__name__)

NAV_Q = Decimal("0.00000001")
USD_Q = Decimal("0.01")
PCT_Q = Decimal("0.0001")

SOURCE_SNAPSHOT_PRICE = "snapshot.share_price"
SOURCE_SNAPSHOT_RATIO = "snapshot.total_nav/total_shares"
SOURCE_LIVE_SUM = "fallback live sum"


def _q_nav(x: Decimal) -> Decimal:
    return x.quantize(NAV_Q, rounding=ROUND_HALF_UP)


def _q_usd(x: Decimal) -> Decimal:
    return x.quantize(USD_Q, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AccountTotals:
    shares: Decimal
    principal: Decimal


@dataclass(frozen=True)
class ResolvedSharePrice:
    snapshot: NavSnapshot
    share_price: Decimal
    source: str

    @property
    def nav(self) -> Decimal:
        return Decimal(self.snapshot.total_nav or 0)


def get_latest_nav_snapshot(*, for_update: bool = False) -> Optional[NavSnapshot]:
    qs = NavSnapshot.objects.all()
    if for_update:
        qs = qs.select_for_update()
    return qs.order_by("-created_at", "-id").first()


def get_account_totals() -> AccountTotals:
    agg = InvestorAccount.objects.aggregate(
        shares=Coalesce(Sum("shares"), Decimal("0")),
        principal=Coalesce(Sum("principal"), Decimal("0")),
    )
    return AccountTotals(
        shares=Decimal(agg["shares"] or 0),
        principal=Decimal(agg["principal"] or 0),
    )


def resolve_share_price(
    snapshot: Optional[NavSnapshot],
    *,
    allow_live_fallback: bool = True,
    live_total_shares: Optional[Decimal] = None,
) -> ResolvedSharePrice:
    """
    Resolve one share price from a NAV snapshot. First success wins:

      1. snapshot.share_price, as stored
      2. snapshot.total_nav / snapshot.total_shares
      3. snapshot.total_nav / live sum of account shares
         (skipped when allow_live_fallback is False)

    The live sum moves while a settlement batch mints/burns shares, so
    callers resolve once, before any mutation, and reuse the result.
    """
    if snapshot is None:
        raise PriceUnavailable("share_price unavailable: no nav snapshot")

    stored = snapshot.share_price
    if stored is not None and Decimal(stored) > 0:
        return ResolvedSharePrice(snapshot, Decimal(stored), SOURCE_SNAPSHOT_PRICE)

    nav = Decimal(snapshot.total_nav or 0)
    snap_shares = snapshot.total_shares
    if snap_shares is not None and Decimal(snap_shares) > 0 and nav > 0:
        price = _q_nav(nav / Decimal(snap_shares))
        if price > 0:
            return ResolvedSharePrice(snapshot, price, SOURCE_SNAPSHOT_RATIO)

    if allow_live_fallback:
        total = (
            get_account_totals().shares
            if live_total_shares is None
            else Decimal(live_total_shares)
        )
        if total > 0:
            price = _q_nav(nav / total)
            if price > 0:
                return ResolvedSharePrice(snapshot, price, SOURCE_LIVE_SUM)

    raise PriceUnavailable(
        "share_price unavailable: latest nav_snapshots row must contain "
        "share_price OR total_shares"
    )


def latest_share_price() -> Decimal:
    """Strict price of the latest snapshot, 0 when it cannot be priced."""
    try:
        resolved = resolve_share_price(
            get_latest_nav_snapshot(), allow_live_fallback=False
        )
    except PriceUnavailable:
        return Decimal("0")
    return resolved.share_price


def _previous_snapshot(as_of: datetime) -> Optional[NavSnapshot]:
    """Snapshot ~24h before `as_of`, else the most recent one before it."""
    day_ago = (
        NavSnapshot.objects.filter(created_at__lte=as_of - timedelta(hours=24))
        .order_by("-created_at", "-id")
        .first()
    )
    if day_ago:
        return day_ago
    return (
        NavSnapshot.objects.filter(created_at__lt=as_of)
        .order_by("-created_at", "-id")
        .first()
    )


def record_nav_snapshot(
    *,
    total_nav: Decimal,
    total_shares: Optional[Decimal] = None,
    share_price: Optional[Decimal] = None,
    created_at: Optional[datetime] = None,
) -> NavSnapshot:
    """
    Append a NAV snapshot. When neither total_shares nor share_price is
    given, the live share count is captured with the NAV so the snapshot
    carries its own price.
    """
    total_nav = _q_usd(Decimal(total_nav))
    if total_nav < 0:
        raise InvalidInput("total_nav must be >= 0")
    if total_shares is not None and Decimal(total_shares) < 0:
        raise InvalidInput("total_shares must be >= 0")
    if share_price is not None and Decimal(share_price) <= 0:
        raise InvalidInput("share_price must be > 0")

    created_at = created_at or timezone.now()

    with transaction.atomic():
        if total_shares is None and share_price is None:
            live = get_account_totals().shares
            if live > 0:
                total_shares = live

        if total_shares is not None:
            total_shares = _q_nav(Decimal(total_shares))
            if share_price is None and total_shares > 0 and total_nav > 0:
                share_price = _q_nav(total_nav / total_shares)

        change_24h = None
        change_24h_pct = None
        prev = _previous_snapshot(created_at)
        if prev is not None:
            change_24h = _q_usd(total_nav - Decimal(prev.total_nav))
            if Decimal(prev.total_nav) > 0:
                change_24h_pct = (
                    change_24h / Decimal(prev.total_nav) * Decimal("100")
                ).quantize(PCT_Q, rounding=ROUND_HALF_UP)

        snap = NavSnapshot.objects.create(
            total_nav=total_nav,
            total_shares=total_shares,
            share_price=_q_nav(Decimal(share_price)) if share_price is not None else None,
            change_24h=change_24h,
            change_24h_pct=change_24h_pct,
            created_at=created_at,
        )

    log.info(
        "recorded nav snapshot id=%s nav=%s shares=%s price=%s",
        snap.id,
        snap.total_nav,
        snap.total_shares,
        snap.share_price,
    )
    return snap
