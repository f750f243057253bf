from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal

import pytest
from accounts.models import DepositRequest, InvestorAccount
from accounts.services.settlement import execute_pending_deposits
from core.exceptions import MissingSnapshotTimestamp, PriceUnavailable
from performance.models import PrincipalAdjustment
from performance.services.nav import SOURCE_LIVE_SUM, SOURCE_SNAPSHOT_RATIO

pytestmark = pytest.mark.django_db


def test_mint_at_snapshot_price(make_snapshot, make_account, make_deposit):
    snap = make_snapshot(1000, total_shares=100)
    make_account("u1", principal=500, shares=50)
    dep = make_deposit("u1", 200)

    batch = execute_pending_deposits(now=datetime(2026, 3, 15, 12, tzinfo=dt_timezone.utc))

    assert batch.executed == 1
    assert batch.share_price_used == Decimal("10")
    assert batch.share_price_source == SOURCE_SNAPSHOT_RATIO

    acct = InvestorAccount.objects.get(user_id="u1")
    assert acct.shares == Decimal("70")
    assert acct.principal == Decimal("700")

    dep.refresh_from_db()
    assert dep.status == DepositRequest.STATUS_MINTED
    assert dep.minted_shares == Decimal("20")
    assert dep.share_price_used == Decimal("10")
    assert dep.nav_snapshot_id == snap.pk
    assert dep.executed_at is not None

    adj = PrincipalAdjustment.objects.get()
    assert adj.month == "2026-03"
    assert adj.delta == Decimal("200")
    assert f"deposit_id={dep.pk}" in adj.note


def test_deposit_without_account_is_rejected(make_snapshot, make_account, make_deposit, now):
    make_snapshot(1000, share_price=10)
    make_account("known")
    orphan = make_deposit("newcomer", 100, created_at=now - timedelta(hours=2))
    known = make_deposit("known", 100, created_at=now - timedelta(hours=1))

    batch = execute_pending_deposits()

    assert batch.outcome_for(orphan.pk).reason == "AccountNotFound"
    assert batch.outcome_for(known.pk).ok
    assert not InvestorAccount.objects.filter(user_id="newcomer").exists()
    assert PrincipalAdjustment.objects.count() == 1
    orphan.refresh_from_db()
    assert orphan.status == DepositRequest.STATUS_PENDING


def test_aggregate_principal_is_capped_by_nav(make_snapshot, make_account, make_deposit, now):
    make_snapshot(1000, share_price=10)
    make_account("a")
    make_account("b")
    first = make_deposit("a", 600, created_at=now - timedelta(hours=2))
    second = make_deposit("b", 600, created_at=now - timedelta(hours=1))

    batch = execute_pending_deposits()

    assert batch.outcome_for(first.pk).ok
    rejected = batch.outcome_for(second.pk)
    assert not rejected.ok
    assert rejected.reason == "PrincipalExceedsNav"
    assert rejected.details["total_principal_before"] == Decimal("600")

    second.refresh_from_db()
    assert second.status == DepositRequest.STATUS_PENDING
    assert InvestorAccount.objects.get(user_id="b").shares == 0
    assert PrincipalAdjustment.objects.count() == 1


def test_smaller_later_deposit_still_fits(make_snapshot, make_account, make_deposit, now):
    make_snapshot(1000, share_price=10)
    for user_id in ("a", "b", "c"):
        make_account(user_id)
    make_deposit("a", 900, created_at=now - timedelta(hours=3))
    too_big = make_deposit("b", 500, created_at=now - timedelta(hours=2))
    fits = make_deposit("c", 100, created_at=now - timedelta(hours=1))

    batch = execute_pending_deposits()

    assert not batch.outcome_for(too_big.pk).ok
    assert batch.outcome_for(fits.pk).ok
    assert batch.executed == 2


def test_deposit_after_snapshot_is_not_priced(make_snapshot, make_deposit, now):
    make_snapshot(1000, share_price=10, created_at=now)
    late = make_deposit("a", 100, created_at=now + timedelta(minutes=1))

    batch = execute_pending_deposits()

    outcome = batch.outcome_for(late.pk)
    assert outcome.reason == "ForwardPricingViolation"
    late.refresh_from_db()
    assert late.status == DepositRequest.STATUS_PENDING


def test_non_positive_amount_rejected(make_snapshot, make_deposit):
    make_snapshot(1000, share_price=10)
    dep = make_deposit("a", 0)

    batch = execute_pending_deposits()

    assert batch.outcome_for(dep.pk).reason == "InvalidAmount"
    assert not InvestorAccount.objects.exists()


def test_price_is_fixed_for_the_whole_batch(make_snapshot, make_account, make_deposit, now):
    # No stored price or share count: the live sum is read once, before minting.
    make_snapshot(1000)
    make_account("a", principal=500, shares=100)
    make_account("b")
    make_deposit("a", 100, created_at=now - timedelta(hours=2))
    make_deposit("b", 100, created_at=now - timedelta(hours=1))

    batch = execute_pending_deposits()

    assert batch.share_price_source == SOURCE_LIVE_SUM
    assert [o.details["minted_shares"] for o in batch.outcomes] == [
        Decimal("10"),
        Decimal("10"),
    ]
    assert InvestorAccount.objects.get(user_id="a").shares == Decimal("110")


def test_only_pending_deposits_are_touched(make_snapshot, make_deposit):
    make_snapshot(1000, share_price=10)
    cancelled = make_deposit("a", 100, status=DepositRequest.STATUS_CANCELLED)

    batch = execute_pending_deposits()

    assert batch.outcomes == []
    assert batch.as_dict()["message"] == "no pending deposits"
    cancelled.refresh_from_db()
    assert cancelled.status == DepositRequest.STATUS_CANCELLED


def test_no_snapshot_aborts_batch(make_deposit):
    dep = make_deposit("a", 100)

    with pytest.raises(MissingSnapshotTimestamp):
        execute_pending_deposits()

    dep.refresh_from_db()
    assert dep.status == DepositRequest.STATUS_PENDING


def test_unpriceable_snapshot_aborts_batch(make_snapshot, make_deposit):
    make_snapshot(1000)
    make_deposit("a", 100)

    with pytest.raises(PriceUnavailable):
        execute_pending_deposits()


def test_batch_dict_is_json_ready(make_snapshot, make_account, make_deposit):
    snap = make_snapshot(1000, share_price=10)
    make_account("a")
    dep = make_deposit("a", 250)

    out = execute_pending_deposits().as_dict()

    assert out["ok"] is True
    assert out["kind"] == "deposit"
    assert out["nav_snapshot_id"] == snap.pk
    assert out["executed"] == 1
    row = out["results"][0]
    assert row["id"] == dep.pk
    assert row["ok"] is True
    assert Decimal(row["minted_shares"]) == Decimal("25")
    assert isinstance(row["new_principal"], str)
