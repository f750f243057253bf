# performance/admin.py
from __future__ import annotations

from django.contrib import admin
from django.db.models import Sum

from .models import NavSnapshot, PositionSnapshot, PrincipalAdjustment, WtdAdjustment


@admin.register(NavSnapshot)
class NavSnapshotAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "total_nav",
        "total_shares",
        "share_price",
        "change_24h",
        "change_24h_pct",
    )
    date_hierarchy = "created_at"
    ordering = ("-created_at",)

    def has_change_permission(self, request, obj=None) -> bool:
        # Snapshots are immutable once written
        return False


@admin.register(PositionSnapshot)
class PositionSnapshotAdmin(admin.ModelAdmin):
    list_display = (
        "timestamp",
        "category",
        "chain",
        "source",
        "asset_symbol",
        "amount",
        "value_usdt",
    )
    list_filter = ("category", "chain", "source")
    search_fields = ("asset_symbol", "position_key")
    date_hierarchy = "timestamp"


@admin.register(PrincipalAdjustment)
class PrincipalAdjustmentAdmin(admin.ModelAdmin):
    list_display = ("month", "delta", "note", "created_at")
    list_filter = ("month",)
    search_fields = ("note",)
    ordering = ("-created_at",)
    readonly_fields = ("created_at",)

    def changelist_view(self, request, extra_context=None):
        extra_context = extra_context or {}
        extra_context["total_principal"] = (
            PrincipalAdjustment.objects.aggregate(total=Sum("delta")).get("total") or 0
        )
        return super().changelist_view(request, extra_context=extra_context)


@admin.register(WtdAdjustment)
class WtdAdjustmentAdmin(admin.ModelAdmin):
    list_display = ("week_start", "delta_usd", "note", "created_at")
    date_hierarchy = "week_start"
    ordering = ("-created_at",)
    readonly_fields = ("created_at",)
