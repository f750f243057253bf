from django.db import models
from django.utils import timezone


class InvestorAccount(models.Model):
    # identity issued by the external auth provider
    user_id = models.CharField(max_length=64, unique=True)

    principal = models.DecimalField(max_digits=20, decimal_places=2, default=0)
    shares = models.DecimalField(max_digits=20, decimal_places=8, default=0)
    pending_withdraw = models.DecimalField(max_digits=20, decimal_places=2, default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "investor_accounts"

    def __str__(self):
        return f"{self.user_id} shares={self.shares} principal={self.principal}"


class DepositRequest(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_MINTED = "MINTED"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_MINTED, "Minted"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    user_id = models.CharField(max_length=64, db_index=True)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    note = models.TextField(blank=True, null=True)

    status = models.CharField(
        max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True
    )

    # Filled on settlement
    share_price_used = models.DecimalField(
        max_digits=18, decimal_places=8, null=True, blank=True
    )
    minted_shares = models.DecimalField(
        max_digits=20, decimal_places=8, null=True, blank=True
    )
    nav_snapshot = models.ForeignKey(
        "performance.NavSnapshot",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="deposit_requests",
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    executed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "investor_deposit_requests"
        ordering = ["-created_at"]

    def __str__(self):
        return f"deposit #{self.pk} {self.user_id} {self.amount} [{self.status}]"


class WithdrawRequest(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_UNPAID = "UNPAID"
    STATUS_PAID = "PAID"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_UNPAID, "Unpaid (shares burned)"),
        (STATUS_PAID, "Paid"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    user_id = models.CharField(max_length=64, db_index=True)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    note = models.TextField(blank=True, null=True)

    status = models.CharField(
        max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True
    )

    share_price_used = models.DecimalField(
        max_digits=18, decimal_places=8, null=True, blank=True
    )
    burned_shares = models.DecimalField(
        max_digits=20, decimal_places=8, null=True, blank=True
    )
    nav_snapshot = models.ForeignKey(
        "performance.NavSnapshot",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="withdraw_requests",
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    executed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "investor_withdraw_requests"
        ordering = ["-created_at"]

    def __str__(self):
        return f"withdraw #{self.pk} {self.user_id} {self.amount} [{self.status}]"
