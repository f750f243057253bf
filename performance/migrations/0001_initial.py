import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NavSnapshot",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "total_nav",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Total fund NAV (USDT)",
                        max_digits=20,
                    ),
                ),
                (
                    "total_shares",
                    models.DecimalField(
                        blank=True,
                        decimal_places=8,
                        help_text="Outstanding shares captured with the NAV",
                        max_digits=20,
                        null=True,
                    ),
                ),
                (
                    "share_price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=8,
                        help_text="NAV per share captured with the NAV",
                        max_digits=18,
                        null=True,
                    ),
                ),
                (
                    "change_24h",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=20, null=True
                    ),
                ),
                (
                    "change_24h_pct",
                    models.DecimalField(
                        blank=True, decimal_places=4, max_digits=10, null=True
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
            ],
            options={
                "db_table": "nav_snapshots",
                "ordering": ["-created_at"],
                "get_latest_by": "created_at",
            },
        ),
        migrations.CreateModel(
            name="PositionSnapshot",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("timestamp", models.DateTimeField(db_index=True)),
                ("source", models.CharField(blank=True, default="", max_length=64)),
                (
                    "position_key",
                    models.CharField(blank=True, default="", max_length=256),
                ),
                ("asset_symbol", models.CharField(max_length=32)),
                (
                    "amount",
                    models.DecimalField(
                        blank=True, decimal_places=10, max_digits=30, null=True
                    ),
                ),
                (
                    "value_usdt",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=20, null=True
                    ),
                ),
                ("chain", models.CharField(blank=True, default="", max_length=32)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("wallet", "Wallet"),
                            ("cex", "CEX (OKX)"),
                            ("defi", "DeFi"),
                        ],
                        max_length=16,
                    ),
                ),
                ("meta", models.JSONField(blank=True, default=dict)),
            ],
            options={
                "db_table": "position_snapshots",
                "indexes": [
                    models.Index(
                        fields=["timestamp", "category"],
                        name="position_ts_category_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PrincipalAdjustment",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "month",
                    models.CharField(db_index=True, help_text="YYYY-MM", max_length=7),
                ),
                ("delta", models.DecimalField(decimal_places=2, max_digits=18)),
                ("note", models.TextField(blank=True, null=True)),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
            ],
            options={
                "db_table": "principal_adjustments",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="WtdAdjustment",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "week_start",
                    models.DateField(help_text="Monday of the adjusted week"),
                ),
                ("delta_usd", models.DecimalField(decimal_places=2, max_digits=18)),
                ("note", models.TextField(blank=True, null=True)),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
            ],
            options={
                "db_table": "wtd_adjustments",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
