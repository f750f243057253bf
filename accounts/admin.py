# accounts/admin.py
from __future__ import annotations

from accounts.models import DepositRequest, InvestorAccount, WithdrawRequest
from accounts.services.requests import (
    cancel_deposit_request,
    cancel_withdraw_request,
    mark_withdrawal_paid,
)
from accounts.services.settlement import (
    execute_pending_deposits,
    execute_pending_withdrawals,
)
from core.exceptions import MoneyflowError
from django.contrib import admin, messages


def _report_batch(modeladmin, request, batch) -> None:
    level = messages.SUCCESS if batch.failed == 0 else messages.WARNING
    modeladmin.message_user(
        request,
        f"{batch.kind} settlement at share_price={batch.share_price_used} "
        f"({batch.share_price_source}): executed={batch.executed} failed={batch.failed}",
        level=level,
    )
    for outcome in batch.outcomes:
        if not outcome.ok:
            modeladmin.message_user(
                request,
                f"#{outcome.id} {outcome.user_id}: {outcome.reason} ({outcome.message})",
                level=messages.WARNING,
            )


@admin.register(InvestorAccount)
class InvestorAccountAdmin(admin.ModelAdmin):
    list_display = (
        "user_id",
        "principal",
        "shares",
        "pending_withdraw",
        "updated_at",
    )
    search_fields = ("user_id",)
    ordering = ("user_id",)

    # Balances only move through settlement
    readonly_fields = ("principal", "shares", "pending_withdraw", "created_at", "updated_at")


@admin.register(DepositRequest)
class DepositRequestAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user_id",
        "amount",
        "status",
        "share_price_used",
        "minted_shares",
        "created_at",
        "executed_at",
    )
    list_filter = ("status",)
    search_fields = ("user_id", "note")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)

    readonly_fields = (
        "status",
        "share_price_used",
        "minted_shares",
        "nav_snapshot",
        "created_at",
        "updated_at",
        "executed_at",
    )

    actions = ("execute_pending", "cancel_selected")

    @admin.action(description="Execute ALL pending deposits (mint shares)")
    def execute_pending(self, request, queryset):
        try:
            batch = execute_pending_deposits()
        except MoneyflowError as e:
            self.message_user(request, e.message, level=messages.ERROR)
            return
        _report_batch(self, request, batch)

    @admin.action(description="Cancel selected PENDING deposits")
    def cancel_selected(self, request, queryset):
        cancelled = sum(
            1 for dep in queryset if cancel_deposit_request(request_id=dep.pk)[1]
        )
        self.message_user(
            request, f"Cancelled {cancelled} deposit(s).", level=messages.SUCCESS
        )


@admin.register(WithdrawRequest)
class WithdrawRequestAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user_id",
        "amount",
        "status",
        "burned_shares",
        "created_at",
        "executed_at",
        "paid_at",
    )
    list_filter = ("status",)
    search_fields = ("user_id", "note")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)

    readonly_fields = (
        "status",
        "share_price_used",
        "burned_shares",
        "nav_snapshot",
        "created_at",
        "updated_at",
        "executed_at",
        "paid_at",
    )

    actions = ("execute_pending", "mark_paid", "cancel_selected")

    @admin.action(description="Execute ALL pending withdrawals (burn shares)")
    def execute_pending(self, request, queryset):
        try:
            batch = execute_pending_withdrawals()
        except MoneyflowError as e:
            self.message_user(request, e.message, level=messages.ERROR)
            return
        _report_batch(self, request, batch)

    @admin.action(description="Mark selected UNPAID withdrawals as PAID")
    def mark_paid(self, request, queryset):
        updated = sum(1 for wd in queryset if mark_withdrawal_paid(request_id=wd.pk))
        self.message_user(
            request, f"Marked {updated} withdrawal(s) as paid.", level=messages.SUCCESS
        )

    @admin.action(description="Cancel selected PENDING withdrawals")
    def cancel_selected(self, request, queryset):
        cancelled = sum(
            1 for wd in queryset if cancel_withdraw_request(request_id=wd.pk)[1]
        )
        self.message_user(
            request, f"Cancelled {cancelled} withdrawal(s).", level=messages.SUCCESS
        )
