"""
Shared fixtures for the moneyflow tests.

Factories take Decimal-friendly strings/ints and write rows straight to the
test database, so each test states its starting balances explicitly.
"""
import json
from datetime import timedelta
from decimal import Decimal

import pytest
from accounts.models import DepositRequest, InvestorAccount, WithdrawRequest
from django.test import Client
from django.utils import timezone
from performance.models import NavSnapshot

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def make_snapshot(now):
    def _make(total_nav, *, total_shares=None, share_price=None, created_at=None):
        return NavSnapshot.objects.create(
            total_nav=Decimal(str(total_nav)),
            total_shares=Decimal(str(total_shares)) if total_shares is not None else None,
            share_price=Decimal(str(share_price)) if share_price is not None else None,
            created_at=created_at or now,
        )

    return _make


@pytest.fixture
def make_account():
    def _make(user_id, *, principal=0, shares=0, pending_withdraw=0):
        return InvestorAccount.objects.create(
            user_id=user_id,
            principal=Decimal(str(principal)),
            shares=Decimal(str(shares)),
            pending_withdraw=Decimal(str(pending_withdraw)),
        )

    return _make


@pytest.fixture
def make_deposit(now):
    def _make(user_id, amount, *, created_at=None, status=DepositRequest.STATUS_PENDING):
        return DepositRequest.objects.create(
            user_id=user_id,
            amount=Decimal(str(amount)),
            status=status,
            created_at=created_at or now - timedelta(hours=1),
        )

    return _make


@pytest.fixture
def make_withdraw(now):
    def _make(user_id, amount, *, created_at=None, status=WithdrawRequest.STATUS_PENDING):
        return WithdrawRequest.objects.create(
            user_id=user_id,
            amount=Decimal(str(amount)),
            status=status,
            created_at=created_at or now - timedelta(hours=1),
        )

    return _make


@pytest.fixture
def api_client():
    return Client()


@pytest.fixture
def fund_admin_client():
    """A client holding a valid admin session cookie."""
    client = Client()
    resp = client.post(
        "/api/admin/login",
        data=json.dumps({"token": ADMIN_TOKEN}),
        content_type="application/json",
    )
    assert resp.status_code == 200
    return client


@pytest.fixture
def investor_client():
    return Client(HTTP_X_INVESTOR_ID="inv-1", HTTP_X_INVESTOR_EMAIL="alice@example.com")


@pytest.fixture
def post_json():
    def _post(client, path, payload=None):
        return client.post(
            path,
            data=json.dumps(payload if payload is not None else {}),
            content_type="application/json",
        )

    return _post
