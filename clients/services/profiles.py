from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from accounts.models import DepositRequest, InvestorAccount, WithdrawRequest
from clients.models import InvestorProfile
from core.auth import InvestorIdentity
from core.exceptions import PriceUnavailable
from django.db import transaction
from performance.services.nav import get_latest_nav_snapshot, resolve_share_price


def ensure_investor(identity: InvestorIdentity) -> tuple[InvestorProfile, InvestorAccount]:
    """Profile and account are created on the investor's first call."""
    with transaction.atomic():
        profile, created = InvestorProfile.objects.get_or_create(
            user_id=identity.user_id,
            defaults={"email": identity.email},
        )
        if not created and identity.email and profile.email != identity.email:
            profile.email = identity.email
            profile.save(update_fields=["email"])

        account, _ = InvestorAccount.objects.get_or_create(user_id=identity.user_id)
    return profile, account


def investor_summary(identity: InvestorIdentity) -> dict[str, Any]:
    profile, account = ensure_investor(identity)

    share_price: Optional[Decimal] = None
    share_price_at = None
    snap = get_latest_nav_snapshot()
    try:
        resolved = resolve_share_price(snap, allow_live_fallback=False)
    except PriceUnavailable:
        resolved = None
    if resolved is not None:
        share_price = resolved.share_price
        share_price_at = resolved.snapshot.created_at

    principal = Decimal(account.principal or 0)
    shares = Decimal(account.shares or 0)

    value = pnl = pnl_pct = None
    if share_price is not None:
        value = (shares * share_price).quantize(Decimal("0.01"))
        pnl = value - principal
        if principal > 0:
            pnl_pct = (pnl / principal * Decimal("100")).quantize(Decimal("0.01"))

    return {
        "profile": {
            "user_id": profile.user_id,
            "email": profile.email,
            "display_name": profile.name,
            "created_at": profile.created_at,
        },
        "account": {
            "principal": principal,
            "shares": shares,
            "pending_withdraw": account.pending_withdraw,
            "updated_at": account.updated_at,
        },
        "share_price": share_price,
        "share_price_updated_at": share_price_at,
        "value": value,
        "pnl": pnl,
        "pnl_pct": pnl_pct,
        "deposit_requests": list(
            DepositRequest.objects.filter(user_id=identity.user_id)
            .order_by("-created_at")
            .values("id", "amount", "status", "note", "created_at", "executed_at")
        ),
        "withdraw_requests": list(
            WithdrawRequest.objects.filter(user_id=identity.user_id)
            .order_by("-created_at")
            .values("id", "amount", "status", "note", "created_at", "executed_at")
        ),
    }
