from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from accounts.models import DepositRequest, InvestorAccount, WithdrawRequest
from core.exceptions import InvalidInput, NotFound
from django.db import transaction
from django.utils import timezone

log = logging.getLogger(__name__)

USD_Q = Decimal("0.01")


def _q_usd(x: Decimal) -> Decimal:
    try:
        return x.quantize(USD_Q, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidInput(f"amount out of range: {x}")


def create_deposit_request(
    *, user_id: str, amount: Decimal, note: Optional[str] = None
) -> DepositRequest:
    """Amount is validated by the caller; shares are minted at settlement."""
    dep = DepositRequest.objects.create(
        user_id=user_id,
        amount=_q_usd(Decimal(amount)),
        status=DepositRequest.STATUS_PENDING,
        note=note,
    )
    log.info("deposit request #%s created user=%s amount=%s", dep.pk, user_id, dep.amount)
    return dep


def create_withdraw_request(
    *, user_id: str, amount: Decimal, note: Optional[str] = None
) -> WithdrawRequest:
    """
    The requested amount is tracked on the account as pending_withdraw
    until the request is settled or cancelled.
    """
    amount = _q_usd(Decimal(amount))
    with transaction.atomic():
        acct, _ = InvestorAccount.objects.select_for_update().get_or_create(
            user_id=user_id
        )
        acct.pending_withdraw = _q_usd(Decimal(acct.pending_withdraw) + amount)
        acct.save(update_fields=["pending_withdraw", "updated_at"])

        wd = WithdrawRequest.objects.create(
            user_id=user_id,
            amount=amount,
            status=WithdrawRequest.STATUS_PENDING,
            note=note,
        )
    log.info("withdraw request #%s created user=%s amount=%s", wd.pk, user_id, amount)
    return wd


def _owned(model, *, request_id: int, user_id: Optional[str]):
    qs = model.objects.filter(pk=request_id)
    if user_id is not None:
        qs = qs.filter(user_id=user_id)
    obj = qs.first()
    if obj is None:
        raise NotFound(f"{model._meta.verbose_name} not found")
    return obj


def cancel_deposit_request(
    *, request_id: int, user_id: Optional[str] = None
) -> tuple[DepositRequest, bool]:
    """
    PENDING -> CANCELLED. Any other status is left untouched.
    Returns (request, cancelled).
    """
    dep = _owned(DepositRequest, request_id=request_id, user_id=user_id)
    cancelled = bool(
        DepositRequest.objects.filter(
            pk=dep.pk, status=DepositRequest.STATUS_PENDING
        ).update(status=DepositRequest.STATUS_CANCELLED, updated_at=timezone.now())
    )
    dep.refresh_from_db()
    return dep, cancelled


def cancel_withdraw_request(
    *, request_id: int, user_id: Optional[str] = None
) -> tuple[WithdrawRequest, bool]:
    """
    PENDING -> CANCELLED, releasing the amount from pending_withdraw.
    Any other status is left untouched. Returns (request, cancelled).
    """
    wd = _owned(WithdrawRequest, request_id=request_id, user_id=user_id)

    with transaction.atomic():
        cancelled = bool(
            WithdrawRequest.objects.filter(
                pk=wd.pk, status=WithdrawRequest.STATUS_PENDING
            ).update(status=WithdrawRequest.STATUS_CANCELLED, updated_at=timezone.now())
        )
        if cancelled:
            acct = (
                InvestorAccount.objects.select_for_update()
                .filter(user_id=wd.user_id)
                .first()
            )
            if acct is not None:
                acct.pending_withdraw = max(
                    Decimal("0"), _q_usd(Decimal(acct.pending_withdraw) - wd.amount)
                )
                acct.save(update_fields=["pending_withdraw", "updated_at"])

    wd.refresh_from_db()
    return wd, cancelled


def mark_withdrawal_paid(
    *, request_id: int, paid_at: Optional[datetime] = None
) -> bool:
    """UNPAID -> PAID once the cash has been sent. Other statuses are untouched."""
    paid_at = paid_at or timezone.now()
    updated = WithdrawRequest.objects.filter(
        pk=request_id, status=WithdrawRequest.STATUS_UNPAID
    ).update(status=WithdrawRequest.STATUS_PAID, paid_at=paid_at, updated_at=paid_at)
    if updated:
        log.info("withdraw request #%s marked paid", request_id)
    return bool(updated)
