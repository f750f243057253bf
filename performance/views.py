from __future__ import annotations

from core.auth import admin_required
from core.exceptions import PriceUnavailable
from core.http import json_view, optional_note, read_json
from django.views.decorators.http import require_GET, require_POST
from performance.models import PositionSnapshot, PrincipalAdjustment, WtdAdjustment
from performance.services.ledger import (
    add_principal_adjustment,
    add_wtd_adjustment,
    principal_ledger,
    recent_wtd_adjustments,
)
from performance.services.nav import get_latest_nav_snapshot, resolve_share_price
from performance.services.overview import build_overview, latest_positions


def _principal_row(r: PrincipalAdjustment) -> dict:
    return {
        "id": r.id,
        "month": r.month,
        "delta": r.delta,
        "note": r.note,
        "created_at": r.created_at,
    }


def _wtd_row(r: WtdAdjustment) -> dict:
    return {
        "id": r.id,
        "week_start": r.week_start,
        "delta_usd": r.delta_usd,
        "note": r.note,
        "created_at": r.created_at,
    }


def _position_row(p: PositionSnapshot) -> dict:
    return {
        "timestamp": p.timestamp,
        "source": p.source,
        "position_key": p.position_key,
        "asset_symbol": p.asset_symbol,
        "amount": p.amount,
        "value_usdt": p.value_usdt,
        "chain": p.chain,
        "category": p.category,
        "meta": p.meta,
    }


# -----------------------------
# Public
# -----------------------------
@require_GET
@json_view
def overview(request):
    return build_overview()


@require_GET
@json_view
def positions(request):
    return {"rows": [_position_row(p) for p in latest_positions()]}


@require_GET
@json_view
def public_principal(request):
    ledger = principal_ledger()
    return {
        "total_principal": ledger["total_principal"],
        "rows": [_principal_row(r) for r in ledger["rows"]],
    }


@require_GET
@json_view
def public_share_price(request):
    snap = get_latest_nav_snapshot()
    try:
        resolved = resolve_share_price(snap, allow_live_fallback=False)
    except PriceUnavailable as e:
        resolved = None
        note = e.message
    else:
        note = None

    return {
        "share_price": resolved.share_price if resolved else None,
        "share_price_source": resolved.source if resolved else None,
        "nav_created_at": snap.created_at if snap else None,
        "total_nav": snap.total_nav if snap else None,
        "total_shares": snap.total_shares if snap else None,
        "note": note,
    }


@require_GET
@json_view
def public_wtd_adjustments(request):
    return {"rows": [_wtd_row(r) for r in recent_wtd_adjustments()]}


# -----------------------------
# Admin
# -----------------------------
@require_GET
@json_view
@admin_required
def admin_share_price(request):
    """Strict: only the snapshot's own price or NAV/shares, never live sums."""
    snap = get_latest_nav_snapshot()
    if snap is None:
        raise PriceUnavailable("share_price unavailable: no nav snapshot")

    resolved = resolve_share_price(snap, allow_live_fallback=False)
    return {
        "nav": snap.total_nav,
        "nav_created_at": snap.created_at,
        "nav_snapshot_id": snap.id,
        "total_shares": snap.total_shares,
        "share_price": resolved.share_price,
        "share_price_source": resolved.source,
    }


@require_POST
@json_view
@admin_required
def admin_principal(request):
    body = read_json(request)
    row = add_principal_adjustment(
        month=body.get("month"),
        delta=body.get("delta"),
        note=optional_note(body.get("note")),
    )
    return {"ok": True, "row": _principal_row(row)}


@require_POST
@json_view
@admin_required
def admin_wtd_adjustments(request):
    body = read_json(request)
    row = add_wtd_adjustment(
        week_start=body.get("week_start"),
        delta_usd=body.get("delta_usd"),
        note=optional_note(body.get("note")),
    )
    return {"ok": True, "row": _wtd_row(row)}
