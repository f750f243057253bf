# clients/admin.py
from __future__ import annotations

from decimal import Decimal

from accounts.models import InvestorAccount
from clients.models import InvestorProfile
from django.contrib import admin
from django.db.models import (
    DecimalField,
    ExpressionWrapper,
    F,
    OuterRef,
    Subquery,
    Value,
)
from django.db.models.functions import Coalesce
from performance.services.nav import latest_share_price


@admin.register(InvestorProfile)
class InvestorProfileAdmin(admin.ModelAdmin):
    list_display = (
        "user_id",
        "display_name",
        "email",
        "shares",
        "market_value_usd",
        "created_at",
    )
    search_fields = ("user_id", "display_name", "email")
    readonly_fields = ("created_at",)

    def get_queryset(self, request):
        """
        Annotate each profile with its shares and market value:
          shares * share price of the latest NAV snapshot
        priced the same way as the investor API (stored price, else
        NAV / shares), 0 when no price is available.
        """
        qs = super().get_queryset(request)
        latest_price = latest_share_price()

        shares_sq = InvestorAccount.objects.filter(user_id=OuterRef("user_id")).values(
            "shares"
        )[:1]

        qs = qs.annotate(
            account_shares=Coalesce(
                Subquery(
                    shares_sq,
                    output_field=DecimalField(max_digits=20, decimal_places=8),
                ),
                Value(Decimal("0")),
            ),
            latest_price=Value(
                latest_price,
                output_field=DecimalField(max_digits=18, decimal_places=8),
            ),
        )
        return qs.annotate(
            market_value=ExpressionWrapper(
                F("account_shares") * F("latest_price"),
                output_field=DecimalField(max_digits=20, decimal_places=2),
            )
        )

    @admin.display(ordering="account_shares", description="Shares")
    def shares(self, obj: InvestorProfile):
        return getattr(obj, "account_shares", None)

    @admin.display(ordering="market_value", description="Market Value (USDT)")
    def market_value_usd(self, obj: InvestorProfile) -> str:
        mv = getattr(obj, "market_value", None) or Decimal("0.00")
        return f"${mv:,.2f}"
