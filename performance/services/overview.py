from __future__ import annotations

from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from performance.models import NavSnapshot, PositionSnapshot
from performance.services.nav import get_latest_nav_snapshot

DASHBOARD_TITLE = "MoneyFlow Dashboard"
NAV_HISTORY_LIMIT = 200

CATEGORY_LABELS = {
    PositionSnapshot.CATEGORY_WALLET: "Wallet",
    PositionSnapshot.CATEGORY_CEX: "CEX (OKX)",
}
DEFAULT_CATEGORY_LABEL = "DeFi"


def _position_row(p: PositionSnapshot) -> dict[str, Any]:
    return {
        "category": p.category or "",
        "source": p.source or "",
        "asset": p.asset_symbol or "",
        "amount": p.amount,
        "value_usdt": p.value_usdt,
        "chain": p.chain or "",
    }


def positions_at(ts: datetime) -> list[dict[str, Any]]:
    qs = PositionSnapshot.objects.filter(timestamp=ts).order_by("-value_usdt", "id")
    return [_position_row(p) for p in qs]


def latest_positions_timestamp() -> Optional[datetime]:
    return (
        PositionSnapshot.objects.order_by("-timestamp")
        .values_list("timestamp", flat=True)
        .first()
    )


def latest_positions() -> list[PositionSnapshot]:
    ts = latest_positions_timestamp()
    if ts is None:
        return []
    return list(
        PositionSnapshot.objects.filter(timestamp=ts).order_by("-value_usdt", "id")
    )


def _sum_by(positions: list[dict[str, Any]], key: str) -> "OrderedDict[str, Decimal]":
    out: "OrderedDict[str, Decimal]" = OrderedDict()
    for p in positions:
        out[p[key]] = out.get(p[key], Decimal("0")) + Decimal(p["value_usdt"] or 0)
    return out


def build_overview() -> dict[str, Any]:
    """
    Public fund summary: latest NAV KPI, NAV history, positions and their
    allocation by category / distribution by chain.

    Positions are taken at the latest NAV timestamp; when that snapshot has
    none, the latest position snapshot is used instead.
    """
    nav: Optional[NavSnapshot] = get_latest_nav_snapshot()

    history = list(
        NavSnapshot.objects.order_by("-created_at", "-id").values(
            "created_at", "total_nav"
        )[:NAV_HISTORY_LIMIT]
    )
    history.reverse()
    nav_history = [
        {"timestamp": r["created_at"], "total_nav": r["total_nav"]} for r in history
    ]

    nav_ts = nav.created_at if nav else None
    positions: list[dict[str, Any]] = []
    positions_ts = None

    if nav_ts is not None:
        at_nav = positions_at(nav_ts)
        if at_nav:
            positions, positions_ts = at_nav, nav_ts

    if not positions:
        latest_ts = latest_positions_timestamp()
        if latest_ts is not None:
            positions, positions_ts = positions_at(latest_ts), latest_ts

    allocation = [
        {
            "category": category,
            "label": CATEGORY_LABELS.get(category, DEFAULT_CATEGORY_LABEL),
            "value_usdt": value,
        }
        for category, value in _sum_by(positions, "category").items()
    ]
    distribution = [
        {"chain": chain, "value_usdt": value}
        for chain, value in _sum_by(positions, "chain").items()
    ]

    if nav is None:
        kpi = {
            "total_nav": Decimal("0"),
            "change_24h": Decimal("0"),
            "change_24h_pct": Decimal("0"),
            "diff_mode": "none",
        }
    else:
        kpi = {
            "total_nav": nav.total_nav,
            "change_24h": nav.change_24h,
            "change_24h_pct": nav.change_24h_pct,
            "diff_mode": "prev_or_24h",
        }

    return {
        "header": {
            "title": DASHBOARD_TITLE,
            "last_update": positions_ts or nav_ts,
            "tags": ["public", "USDT"],
        },
        "kpi": kpi,
        "allocation": allocation,
        "nav_history": nav_history,
        "distribution": distribution,
        "positions": positions,
    }
