from __future__ import annotations

import json

from accounts.services.settlement import execute_pending_deposits
from core.exceptions import MoneyflowError
from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Mint shares for all PENDING deposit requests at the latest share price."

    def handle(self, *args, **opts):
        try:
            batch = execute_pending_deposits()
        except MoneyflowError as e:
            raise CommandError(e.message)

        self.stdout.write(json.dumps(batch.as_dict(), indent=2))
