from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation

from core.exceptions import MoneyflowError
from django.core.management.base import BaseCommand, CommandError
from performance.services.nav import record_nav_snapshot


def _decimal_arg(value: str | None, name: str) -> Decimal | None:
    if value is None:
        return None
    try:
        out = Decimal(value)
    except InvalidOperation:
        raise CommandError(f"Invalid {name}: {value}")
    if not out.is_finite():
        raise CommandError(f"Invalid {name}: {value}")
    return out


class Command(BaseCommand):
    help = (
        "Record a NAV snapshot. Without --total-shares/--share-price the live "
        "share count is captured with the NAV."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--total-nav",
            type=str,
            required=True,
            help="Total fund NAV (USDT)",
        )
        parser.add_argument(
            "--total-shares",
            type=str,
            default=None,
            help="Outstanding shares at this NAV",
        )
        parser.add_argument(
            "--share-price",
            type=str,
            default=None,
            help="NAV per share (stored as-is)",
        )

    def handle(self, *args, **opts):
        try:
            snap = record_nav_snapshot(
                total_nav=_decimal_arg(opts["total_nav"], "--total-nav"),
                total_shares=_decimal_arg(opts.get("total_shares"), "--total-shares"),
                share_price=_decimal_arg(opts.get("share_price"), "--share-price"),
            )
        except MoneyflowError as e:
            raise CommandError(e.message)

        self.stdout.write(
            json.dumps(
                {
                    "nav_snapshot_id": snap.id,
                    "created_at": snap.created_at.isoformat(),
                    "total_nav": str(snap.total_nav),
                    "total_shares": (
                        str(snap.total_shares) if snap.total_shares is not None else None
                    ),
                    "share_price": (
                        str(snap.share_price) if snap.share_price is not None else None
                    ),
                    "change_24h": (
                        str(snap.change_24h) if snap.change_24h is not None else None
                    ),
                },
                indent=2,
            )
        )
