from datetime import timedelta
from decimal import Decimal

import pytest
from accounts.models import DepositRequest, InvestorAccount, WithdrawRequest
from performance.models import PrincipalAdjustment, WtdAdjustment

pytestmark = pytest.mark.django_db


class TestSession:
    def test_login_sets_cookie(self, api_client, post_json):
        resp = post_json(api_client, "/api/admin/login", {"token": "test-admin-token"})

        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        cookie = resp.cookies["mf_admin"]
        assert cookie["httponly"]
        assert cookie["samesite"] == "Strict"

    def test_wrong_token(self, api_client, post_json):
        resp = post_json(api_client, "/api/admin/login", {"token": "nope"})

        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}
        assert "mf_admin" not in resp.cookies

    def test_missing_token(self, api_client, post_json):
        resp = post_json(api_client, "/api/admin/login")

        assert resp.status_code == 401

    def test_unconfigured_token(self, settings, api_client, post_json):
        settings.ADMIN_TOKEN = ""
        settings.ADMIN_API_KEY = ""

        resp = post_json(api_client, "/api/admin/login", {"token": "anything"})

        assert resp.status_code == 500
        assert resp.json()["error"] == "ADMIN_TOKEN not set"

    def test_me_and_logout(self, fund_admin_client, post_json):
        assert fund_admin_client.get("/api/admin/me").json() == {
            "ok": True,
            "is_admin": True,
        }

        post_json(fund_admin_client, "/api/admin/logout")

        assert fund_admin_client.get("/api/admin/me").json()["is_admin"] is False

    def test_forged_cookie_is_rejected(self, api_client):
        api_client.cookies["mf_admin"] = "1"

        assert api_client.get("/api/admin/me").json()["is_admin"] is False
        assert api_client.get("/api/admin/withdraw-queue").status_code == 401


@pytest.mark.parametrize(
    "method,path",
    [
        ("post", "/api/admin/execute-deposits"),
        ("post", "/api/admin/execute-withdrawals"),
        ("post", "/api/admin/principal"),
        ("post", "/api/admin/wtd-adjustments"),
        ("post", "/api/admin/investor-deposit"),
        ("get", "/api/admin/share-price"),
        ("get", "/api/admin/withdraw-queue"),
        ("get", "/api/admin/deposit-requests"),
    ],
)
def test_admin_endpoints_need_session(api_client, make_deposit, method, path):
    dep = make_deposit("u1", 100)

    resp = getattr(api_client, method)(path)

    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    dep.refresh_from_db()
    assert dep.status == DepositRequest.STATUS_PENDING


class TestSettlementEndpoints:
    def test_execute_deposits(
        self, fund_admin_client, post_json, make_snapshot, make_account, make_deposit
    ):
        snap = make_snapshot(1000, total_shares=100)
        make_account("u1")
        dep = make_deposit("u1", 200)

        resp = post_json(fund_admin_client, "/api/admin/execute-deposits")

        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["executed"] == 1
        assert body["nav_snapshot_id"] == snap.pk
        assert Decimal(body["share_price_used"]) == Decimal("10")
        row = body["results"][0]
        assert row["id"] == dep.pk
        assert Decimal(row["minted_shares"]) == Decimal("20")

    def test_execute_deposits_without_snapshot(self, fund_admin_client, post_json, make_deposit):
        make_deposit("u1", 200)

        resp = post_json(fund_admin_client, "/api/admin/execute-deposits")

        assert resp.status_code == 400
        assert resp.json() == {"error": "nav_created_at missing"}

    def test_execute_deposits_without_price(
        self, fund_admin_client, post_json, make_snapshot, make_deposit
    ):
        make_snapshot(1000)
        make_deposit("u1", 200)

        resp = post_json(fund_admin_client, "/api/admin/execute-deposits")

        assert resp.status_code == 400
        assert resp.json()["error"].startswith("share_price unavailable")

    def test_rejections_are_reported_not_raised(
        self, fund_admin_client, post_json, make_snapshot, make_account, make_withdraw
    ):
        make_snapshot(1000, share_price=10)
        make_account("u1", shares=3)
        wd = make_withdraw("u1", 50)

        resp = post_json(fund_admin_client, "/api/admin/execute-withdrawals")

        assert resp.status_code == 200
        body = resp.json()
        assert body["executed"] == 0
        assert body["results"] == [
            {
                "id": wd.pk,
                "ok": False,
                "user_id": "u1",
                "amount": "50.00",
                "reason": "InsufficientShares",
                "message": "insufficient shares",
                "burn_shares": "5.00000000",
                "current_shares": "3.00000000",
            }
        ]
        assert InvestorAccount.objects.get(user_id="u1").shares == Decimal("3")

    def test_get_not_allowed(self, fund_admin_client):
        assert fund_admin_client.get("/api/admin/execute-deposits").status_code == 405


class TestQueues:
    def test_withdraw_queue_newest_first(self, fund_admin_client, make_withdraw, now):
        older = make_withdraw("u1", 10, created_at=now - timedelta(days=2))
        newer = make_withdraw("u2", 20, status=WithdrawRequest.STATUS_UNPAID)

        body = fund_admin_client.get("/api/admin/withdraw-queue").json()

        assert [r["id"] for r in body["rows"]] == [newer.pk, older.pk]
        assert body["rows"][0]["status"] == "UNPAID"

    def test_deposit_requests_filter(self, fund_admin_client, make_deposit):
        pending = make_deposit("u1", 10)
        minted = make_deposit("u2", 20, status=DepositRequest.STATUS_MINTED)

        default = fund_admin_client.get("/api/admin/deposit-requests").json()
        by_status = fund_admin_client.get("/api/admin/deposit-requests?status=minted").json()

        assert [r["id"] for r in default["rows"]] == [pending.pk]
        assert by_status["status"] == "MINTED"
        assert [r["id"] for r in by_status["rows"]] == [minted.pk]

    def test_deposit_requests_bad_status(self, fund_admin_client):
        resp = fund_admin_client.get("/api/admin/deposit-requests?status=bogus")

        assert resp.status_code == 400


class TestInvestorDeposit:
    def test_records_pending_request(self, fund_admin_client, post_json, make_account):
        make_account("u1", principal=100, shares=10)

        resp = post_json(
            fund_admin_client,
            "/api/admin/investor-deposit",
            {"user_id": "u1", "amount": "250", "note": " bank wire "},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["deposit_request"]["status"] == "PENDING"
        assert body["deposit_request"]["note"] == "bank wire"
        acct = InvestorAccount.objects.get(user_id="u1")
        assert acct.principal == Decimal("100")
        assert acct.shares == Decimal("10")

    @pytest.mark.parametrize(
        "payload,error",
        [
            ({"amount": "10"}, "user_id required"),
            ({"user_id": "u1", "amount": "0"}, "amount must be > 0"),
            ({"user_id": "u1", "amount": "abc"}, "amount must be a number"),
            ({"user_id": "u1"}, "amount required"),
        ],
    )
    def test_validation(self, fund_admin_client, post_json, make_account, payload, error):
        make_account("u1")

        resp = post_json(fund_admin_client, "/api/admin/investor-deposit", payload)

        assert resp.status_code == 400
        assert resp.json() == {"error": error}
        assert not DepositRequest.objects.exists()

    def test_invalid_json(self, fund_admin_client):
        resp = fund_admin_client.post(
            "/api/admin/investor-deposit", data="{not json", content_type="application/json"
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON body"}

    def test_unknown_investor(self, fund_admin_client, post_json):
        resp = post_json(
            fund_admin_client, "/api/admin/investor-deposit", {"user_id": "ghost", "amount": 5}
        )

        assert resp.status_code == 404


def test_oversized_admin_deposit_is_bad_request(fund_admin_client, post_json, make_account):
    make_account("u1")

    resp = post_json(
        fund_admin_client, "/api/admin/investor-deposit", {"user_id": "u1", "amount": "1e30"}
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "amount is too large"}
    assert not DepositRequest.objects.exists()


class TestLedgers:
    def test_principal_adjustment(self, fund_admin_client, post_json, api_client):
        resp = post_json(
            fund_admin_client,
            "/api/admin/principal",
            {"month": "2026-02", "delta": "-150.5", "note": "fee rebate"},
        )

        assert resp.status_code == 200
        assert Decimal(resp.json()["row"]["delta"]) == Decimal("-150.50")

        public = api_client.get("/api/public/principal").json()
        assert Decimal(public["total_principal"]) == Decimal("-150.50")
        assert [r["month"] for r in public["rows"]] == ["2026-02"]

    @pytest.mark.parametrize(
        "payload,error",
        [
            ({"month": "2026-13", "delta": 10}, "Invalid month (YYYY-MM)"),
            ({"month": "Feb", "delta": 10}, "Invalid month (YYYY-MM)"),
            ({"month": "2026-02", "delta": 0}, "Invalid delta (non-zero number)"),
            ({"month": "2026-02", "delta": "x"}, "Invalid delta (non-zero number)"),
            ({"month": "2026-02", "delta": "1e30"}, "Invalid delta (non-zero number)"),
            ({"month": "2026-02", "delta": "-1e17"}, "Invalid delta (non-zero number)"),
        ],
    )
    def test_principal_validation(self, fund_admin_client, post_json, payload, error):
        resp = post_json(fund_admin_client, "/api/admin/principal", payload)

        assert resp.status_code == 400
        assert resp.json() == {"error": error}
        assert not PrincipalAdjustment.objects.exists()

    def test_wtd_adjustment(self, fund_admin_client, post_json, api_client):
        resp = post_json(
            fund_admin_client,
            "/api/admin/wtd-adjustments",
            {"week_start": "2026-03-02", "delta_usd": 75},
        )

        assert resp.status_code == 200
        rows = api_client.get("/api/public/wtd-adjustments").json()["rows"]
        assert rows[0]["week_start"] == "2026-03-02"
        assert Decimal(rows[0]["delta_usd"]) == Decimal("75")

    def test_wtd_validation(self, fund_admin_client, post_json):
        resp = post_json(
            fund_admin_client,
            "/api/admin/wtd-adjustments",
            {"week_start": "2026-02-30", "delta_usd": 5},
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid week_start (YYYY-MM-DD)"}
        assert not WtdAdjustment.objects.exists()


class TestAdminSharePrice:
    def test_strict_price(self, fund_admin_client, make_snapshot):
        snap = make_snapshot(1000, total_shares=100)

        body = fund_admin_client.get("/api/admin/share-price").json()

        assert body["nav_snapshot_id"] == snap.pk
        assert Decimal(body["share_price"]) == Decimal("10")
        assert body["share_price_source"] == "snapshot.total_nav/total_shares"

    def test_no_live_fallback(self, fund_admin_client, make_snapshot, make_account):
        make_account("u1", shares=100)
        make_snapshot(1000)

        resp = fund_admin_client.get("/api/admin/share-price")

        assert resp.status_code == 400
