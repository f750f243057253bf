from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from accounts.models import DepositRequest, InvestorAccount, WithdrawRequest
from core.exceptions import (
    AccountNotFound,
    ForwardPricingViolation,
    InsufficientShares,
    InvalidAmount,
    MissingSnapshotTimestamp,
    PrincipalExceedsNav,
    SettlementRejected,
)
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from performance.models import NavSnapshot, PrincipalAdjustment
from performance.services.ledger import month_key
from performance.services.nav import (
    ResolvedSharePrice,
    get_account_totals,
    get_latest_nav_snapshot,
    resolve_share_price,
)

log = logging.getLogger(__name__)

UNITS_Q = Decimal("0.00000001")
USD_Q = Decimal("0.01")

KIND_DEPOSIT = "deposit"
KIND_WITHDRAW = "withdraw"


def _q_units(x: Decimal) -> Decimal:
    return x.quantize(UNITS_Q, rounding=ROUND_HALF_UP)


def _q_usd(x: Decimal) -> Decimal:
    return x.quantize(USD_Q, rounding=ROUND_HALF_UP)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class RequestOutcome:
    id: int
    user_id: str
    amount: Optional[Decimal]
    ok: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "ok": self.ok,
            "user_id": self.user_id,
            "amount": _jsonable(self.amount),
        }
        if not self.ok:
            out["reason"] = self.reason
            out["message"] = self.message
        out.update({k: _jsonable(v) for k, v in self.details.items()})
        return out


@dataclass
class SettlementBatch:
    kind: str
    nav_used: Decimal
    nav_snapshot_id: int
    nav_created_at: datetime
    share_price_used: Decimal
    share_price_source: str
    total_shares_before: Decimal
    total_principal_before: Decimal
    outcomes: list[RequestOutcome] = field(default_factory=list)

    @property
    def executed(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    def outcome_for(self, request_id: int) -> Optional[RequestOutcome]:
        return next((o for o in self.outcomes if o.id == request_id), None)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "ok": True,
            "kind": self.kind,
            "nav_used": _jsonable(self.nav_used),
            "nav_created_at": _jsonable(self.nav_created_at),
            "nav_snapshot_id": self.nav_snapshot_id,
            "total_shares_before": _jsonable(self.total_shares_before),
            "total_principal_before": _jsonable(self.total_principal_before),
            "share_price_used": _jsonable(self.share_price_used),
            "share_price_source": self.share_price_source,
            "executed": self.executed,
            "results": [o.as_dict() for o in self.outcomes],
        }
        if not self.outcomes:
            out["message"] = f"no pending {self.kind}s"
        return out


# -----------------------------
# Batch setup
# -----------------------------
def _begin_batch(kind: str) -> tuple[SettlementBatch, ResolvedSharePrice]:
    """
    Must run inside the batch transaction: the latest snapshot row stays
    locked until the batch commits, which serializes concurrent batches.
    """
    snapshot: Optional[NavSnapshot] = get_latest_nav_snapshot(for_update=True)
    if snapshot is None or snapshot.created_at is None:
        raise MissingSnapshotTimestamp()

    totals = get_account_totals()
    resolved = resolve_share_price(snapshot, live_total_shares=totals.shares)

    batch = SettlementBatch(
        kind=kind,
        nav_used=resolved.nav,
        nav_snapshot_id=snapshot.id,
        nav_created_at=snapshot.created_at,
        share_price_used=resolved.share_price,
        share_price_source=resolved.source,
        total_shares_before=totals.shares,
        total_principal_before=totals.principal,
    )
    log.info(
        "%s settlement: snapshot=%s nav=%s price=%s (%s)",
        kind,
        snapshot.id,
        resolved.nav,
        resolved.share_price,
        resolved.source,
    )
    return batch, resolved


def _check_amount(amount: Optional[Decimal]) -> Decimal:
    if amount is None:
        raise InvalidAmount()
    amount = Decimal(amount)
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount()
    return amount


def _check_forward_pricing(snapshot_at: datetime, request_at: Optional[datetime]):
    if request_at is None or snapshot_at < request_at:
        raise ForwardPricingViolation(
            nav_created_at=snapshot_at,
            request_created_at=request_at,
        )


def _rejected(req, e: SettlementRejected) -> RequestOutcome:
    log.warning(
        "%s #%s (user=%s amount=%s) rejected: %s",
        type(req).__name__,
        req.pk,
        req.user_id,
        req.amount,
        e.message,
    )
    return RequestOutcome(
        id=req.pk,
        user_id=req.user_id,
        amount=req.amount,
        ok=False,
        reason=e.code,
        message=e.message,
        details=dict(e.details),
    )


# -----------------------------
# Deposits
# -----------------------------
def _settle_deposit(
    dep: DepositRequest,
    *,
    resolved: ResolvedSharePrice,
    running_principal: Decimal,
    epsilon: Decimal,
    now: datetime,
) -> RequestOutcome:
    snapshot = resolved.snapshot
    price = resolved.share_price

    amount = _check_amount(dep.amount)
    _check_forward_pricing(snapshot.created_at, dep.created_at)

    if running_principal + amount > resolved.nav + epsilon:
        raise PrincipalExceedsNav(
            nav_used=resolved.nav,
            total_principal_before=running_principal,
            attempted_deposit=amount,
            total_principal_after=running_principal + amount,
        )

    acct = InvestorAccount.objects.select_for_update().filter(user_id=dep.user_id).first()
    if acct is None:
        raise AccountNotFound()

    minted = _q_units(amount / price)
    acct.shares = _q_units(Decimal(acct.shares) + minted)
    acct.principal = _q_usd(Decimal(acct.principal) + amount)
    acct.save(update_fields=["shares", "principal", "updated_at"])

    dep.status = DepositRequest.STATUS_MINTED
    dep.executed_at = now
    dep.share_price_used = price
    dep.minted_shares = minted
    dep.nav_snapshot = snapshot
    dep.save(
        update_fields=[
            "status",
            "executed_at",
            "share_price_used",
            "minted_shares",
            "nav_snapshot",
            "updated_at",
        ]
    )

    PrincipalAdjustment.objects.create(
        month=month_key(now),
        delta=_q_usd(amount),
        note=(
            f"auto: deposit minted user={dep.user_id} "
            f"deposit_id={dep.pk} nav_id={snapshot.pk}"
        ),
        created_at=now,
    )

    return RequestOutcome(
        id=dep.pk,
        user_id=dep.user_id,
        amount=amount,
        ok=True,
        details={
            "nav_snapshot_id": snapshot.pk,
            "share_price_used": price,
            "minted_shares": minted,
            "new_shares": acct.shares,
            "new_principal": acct.principal,
        },
    )


def execute_pending_deposits(*, now: Optional[datetime] = None) -> SettlementBatch:
    """
    Mint shares for every PENDING deposit, oldest first, at one share price
    resolved before the first mutation.

    Each deposit is settled in its own savepoint; a rejected deposit leaves
    no trace and does not stop the rest of the batch. Aggregate principal
    may never exceed the snapshot NAV, and earlier deposits consume that
    capacity first.
    """
    now = now or timezone.now()
    epsilon = Decimal(settings.SETTLEMENT_PRINCIPAL_EPSILON)

    with transaction.atomic():
        batch, resolved = _begin_batch(KIND_DEPOSIT)
        running_principal = batch.total_principal_before

        pending = DepositRequest.objects.filter(
            status=DepositRequest.STATUS_PENDING
        ).order_by("created_at", "id")

        for dep in pending:
            try:
                with transaction.atomic():
                    outcome = _settle_deposit(
                        dep,
                        resolved=resolved,
                        running_principal=running_principal,
                        epsilon=epsilon,
                        now=now,
                    )
            except SettlementRejected as e:
                batch.outcomes.append(_rejected(dep, e))
                continue

            running_principal += outcome.amount
            batch.outcomes.append(outcome)

    log.info(
        "deposit settlement done: executed=%s failed=%s",
        batch.executed,
        batch.failed,
    )
    return batch


# -----------------------------
# Withdrawals
# -----------------------------
def _settle_withdrawal(
    wd: WithdrawRequest,
    *,
    resolved: ResolvedSharePrice,
    epsilon: Decimal,
    forward_pricing: bool,
    now: datetime,
) -> RequestOutcome:
    snapshot = resolved.snapshot
    price = resolved.share_price

    amount = _check_amount(wd.amount)
    if forward_pricing:
        _check_forward_pricing(snapshot.created_at, wd.created_at)

    acct = InvestorAccount.objects.select_for_update().filter(user_id=wd.user_id).first()
    if acct is None:
        raise AccountNotFound()

    burn = _q_units(amount / price)
    current_shares = Decimal(acct.shares)
    if current_shares < burn - epsilon:
        raise InsufficientShares(burn_shares=burn, current_shares=current_shares)

    acct.shares = max(Decimal("0"), _q_units(current_shares - burn))
    acct.pending_withdraw = max(
        Decimal("0"), _q_usd(Decimal(acct.pending_withdraw) - amount)
    )
    acct.save(update_fields=["shares", "pending_withdraw", "updated_at"])

    wd.status = WithdrawRequest.STATUS_UNPAID
    wd.executed_at = now
    wd.share_price_used = price
    wd.burned_shares = burn
    wd.nav_snapshot = snapshot
    wd.save(
        update_fields=[
            "status",
            "executed_at",
            "share_price_used",
            "burned_shares",
            "nav_snapshot",
            "updated_at",
        ]
    )

    return RequestOutcome(
        id=wd.pk,
        user_id=wd.user_id,
        amount=amount,
        ok=True,
        details={
            "nav_snapshot_id": snapshot.pk,
            "share_price_used": price,
            "burn_shares": burn,
            "new_shares": acct.shares,
            "new_pending_withdraw": acct.pending_withdraw,
        },
    )


def execute_pending_withdrawals(
    *, now: Optional[datetime] = None
) -> SettlementBatch:
    """
    Burn shares for every PENDING withdrawal, oldest first, at one share
    price. Settled requests become UNPAID; paying out the cash is a
    separate manual step (see mark_withdrawal_paid).
    """
    now = now or timezone.now()
    epsilon = Decimal(settings.SETTLEMENT_SHARES_EPSILON)
    forward_pricing = bool(settings.SETTLEMENT_WITHDRAW_FORWARD_PRICING)

    with transaction.atomic():
        batch, resolved = _begin_batch(KIND_WITHDRAW)

        pending = WithdrawRequest.objects.filter(
            status=WithdrawRequest.STATUS_PENDING
        ).order_by("created_at", "id")

        for wd in pending:
            try:
                with transaction.atomic():
                    outcome = _settle_withdrawal(
                        wd,
                        resolved=resolved,
                        epsilon=epsilon,
                        forward_pricing=forward_pricing,
                        now=now,
                    )
            except SettlementRejected as e:
                batch.outcomes.append(_rejected(wd, e))
                continue

            batch.outcomes.append(outcome)

    log.info(
        "withdraw settlement done: executed=%s failed=%s",
        batch.executed,
        batch.failed,
    )
    return batch
