# performance/models.py
from django.db import models
from django.utils import timezone


class NavSnapshot(models.Model):
    """
    Fund NAV at a point in time, written by the snapshot job.
    Rows are never edited; the newest one by created_at is authoritative.
    """

    total_nav = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        help_text="Total fund NAV (USDT)",
    )

    total_shares = models.DecimalField(
        max_digits=20,
        decimal_places=8,
        null=True,
        blank=True,
        help_text="Outstanding shares captured with the NAV",
    )

    share_price = models.DecimalField(
        max_digits=18,
        decimal_places=8,
        null=True,
        blank=True,
        help_text="NAV per share captured with the NAV",
    )

    change_24h = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        null=True,
        blank=True,
    )

    change_24h_pct = models.DecimalField(
        max_digits=10,
        decimal_places=4,
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "nav_snapshots"
        ordering = ["-created_at"]
        get_latest_by = "created_at"

    def __str__(self):
        return f"NAV {self.total_nav} @ {self.created_at:%Y-%m-%d %H:%M}"


class PositionSnapshot(models.Model):
    CATEGORY_WALLET = "wallet"
    CATEGORY_CEX = "cex"
    CATEGORY_DEFI = "defi"

    CATEGORY_CHOICES = [
        (CATEGORY_WALLET, "Wallet"),
        (CATEGORY_CEX, "CEX (OKX)"),
        (CATEGORY_DEFI, "DeFi"),
    ]

    timestamp = models.DateTimeField(db_index=True)

    source = models.CharField(max_length=64, blank=True, default="")
    position_key = models.CharField(max_length=256, blank=True, default="")
    asset_symbol = models.CharField(max_length=32)

    amount = models.DecimalField(max_digits=30, decimal_places=10, null=True, blank=True)
    value_usdt = models.DecimalField(
        max_digits=20, decimal_places=2, null=True, blank=True
    )

    chain = models.CharField(max_length=32, blank=True, default="")
    category = models.CharField(max_length=16, choices=CATEGORY_CHOICES)

    meta = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "position_snapshots"
        indexes = [
            models.Index(fields=["timestamp", "category"], name="position_ts_category_idx"),
        ]

    def __str__(self):
        return f"{self.asset_symbol} {self.category}/{self.chain} @ {self.timestamp:%Y-%m-%d %H:%M}"


class PrincipalAdjustment(models.Model):
    """
    Side ledger used only for dashboard PnL: new capital is credited here
    so it does not show up as performance.
    """

    month = models.CharField(max_length=7, help_text="YYYY-MM", db_index=True)
    delta = models.DecimalField(max_digits=18, decimal_places=2)
    note = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "principal_adjustments"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.month} {self.delta:+}"


class WtdAdjustment(models.Model):
    week_start = models.DateField(help_text="Monday of the adjusted week")
    delta_usd = models.DecimalField(max_digits=18, decimal_places=2)
    note = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "wtd_adjustments"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"week {self.week_start} {self.delta_usd:+}"
