from __future__ import annotations

from decimal import Decimal

from celery import shared_task
from performance.services.nav import record_nav_snapshot


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, max_retries=5)
def record_nav_snapshot_task(
    self,
    *,
    total_nav: str,
    total_shares: str | None = None,
    share_price: str | None = None,
) -> dict:
    snap = record_nav_snapshot(
        total_nav=Decimal(total_nav),
        total_shares=Decimal(total_shares) if total_shares is not None else None,
        share_price=Decimal(share_price) if share_price is not None else None,
    )
    return {
        "nav_snapshot_id": snap.id,
        "created_at": snap.created_at.isoformat(),
        "total_nav": str(snap.total_nav),
        "total_shares": str(snap.total_shares) if snap.total_shares is not None else None,
        "share_price": str(snap.share_price) if snap.share_price is not None else None,
    }
