# clients/models.py
from django.db import models
from django.utils import timezone


class InvestorProfile(models.Model):
    user_id = models.CharField(max_length=64, unique=True)

    email = models.EmailField(blank=True, null=True)
    display_name = models.CharField(max_length=200, blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "investor_profiles"

    @property
    def name(self) -> str:
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return "Investor"

    def __str__(self):
        return f"{self.name} ({self.user_id})"
