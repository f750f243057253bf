from __future__ import annotations

from accounts.models import DepositRequest, InvestorAccount, WithdrawRequest
from accounts.services.requests import (
    cancel_deposit_request,
    cancel_withdraw_request,
    create_deposit_request,
    create_withdraw_request,
)
from accounts.services.settlement import (
    execute_pending_deposits,
    execute_pending_withdrawals,
)
from clients.services.profiles import ensure_investor, investor_summary
from core.auth import admin_required, investor_required
from core.exceptions import InvalidInput, NotFound
from core.http import json_view, optional_note, parse_positive_amount, read_json
from django.views.decorators.http import require_GET, require_POST

WITHDRAW_QUEUE_LIMIT = 200


def _deposit_row(d: DepositRequest) -> dict:
    return {
        "id": d.id,
        "user_id": d.user_id,
        "amount": d.amount,
        "status": d.status,
        "note": d.note,
        "created_at": d.created_at,
        "executed_at": d.executed_at,
        "share_price_used": d.share_price_used,
        "minted_shares": d.minted_shares,
    }


def _withdraw_row(w: WithdrawRequest) -> dict:
    return {
        "id": w.id,
        "user_id": w.user_id,
        "amount": w.amount,
        "status": w.status,
        "note": w.note,
        "created_at": w.created_at,
        "updated_at": w.updated_at,
        "executed_at": w.executed_at,
        "paid_at": w.paid_at,
    }


# -----------------------------
# Admin
# -----------------------------
@require_POST
@json_view
@admin_required
def execute_deposits(request):
    return execute_pending_deposits().as_dict()


@require_POST
@json_view
@admin_required
def execute_withdrawals(request):
    return execute_pending_withdrawals().as_dict()


@require_GET
@json_view
@admin_required
def withdraw_queue(request):
    rows = WithdrawRequest.objects.order_by("-created_at", "-id")[:WITHDRAW_QUEUE_LIMIT]
    return {"ok": True, "rows": [_withdraw_row(w) for w in rows]}


@require_GET
@json_view
@admin_required
def deposit_requests(request):
    status = (request.GET.get("status") or DepositRequest.STATUS_PENDING).upper()
    if status not in dict(DepositRequest.STATUS_CHOICES):
        raise InvalidInput(f"Invalid status: {status}")

    rows = DepositRequest.objects.filter(status=status).order_by("-created_at", "-id")
    return {"ok": True, "status": status, "rows": [_deposit_row(d) for d in rows]}


@require_POST
@json_view
@admin_required
def investor_deposit(request):
    """Record a PENDING deposit on behalf of an existing investor."""
    body = read_json(request, strict=True)

    user_id = str(body.get("user_id") or "").strip()
    if not user_id:
        raise InvalidInput("user_id required")
    amount = parse_positive_amount(body.get("amount"))

    acct = InvestorAccount.objects.filter(user_id=user_id).first()
    if acct is None:
        raise NotFound("investor account not found")

    dep = create_deposit_request(
        user_id=user_id, amount=amount, note=optional_note(body.get("note"))
    )
    return {
        "ok": True,
        "deposit_request": _deposit_row(dep),
        "principal": acct.principal,
        "shares_unchanged": acct.shares,
    }


# -----------------------------
# Investor (own rows only)
# -----------------------------
@require_GET
@json_view
@investor_required
def investor_me(request):
    return investor_summary(request.investor)


@require_POST
@json_view
@investor_required
def investor_create_deposit(request):
    body = read_json(request, strict=True)
    amount = parse_positive_amount(body.get("amount"))

    ensure_investor(request.investor)
    dep = create_deposit_request(
        user_id=request.investor.user_id,
        amount=amount,
        note=optional_note(body.get("note")),
    )
    return {"ok": True, "row": _deposit_row(dep)}


@require_POST
@json_view
@investor_required
def investor_cancel_deposit(request, request_id: int):
    dep, cancelled = cancel_deposit_request(
        request_id=request_id, user_id=request.investor.user_id
    )
    return {"ok": True, "cancelled": cancelled, "row": _deposit_row(dep)}


@require_POST
@json_view
@investor_required
def investor_create_withdraw(request):
    body = read_json(request, strict=True)
    amount = parse_positive_amount(body.get("amount"))

    ensure_investor(request.investor)
    wd = create_withdraw_request(
        user_id=request.investor.user_id,
        amount=amount,
        note=optional_note(body.get("note")),
    )
    return {"ok": True, "row": _withdraw_row(wd)}


@require_POST
@json_view
@investor_required
def investor_cancel_withdraw(request, request_id: int):
    wd, cancelled = cancel_withdraw_request(
        request_id=request_id, user_id=request.investor.user_id
    )
    return {"ok": True, "cancelled": cancelled, "row": _withdraw_row(wd)}
