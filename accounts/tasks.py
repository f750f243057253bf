from __future__ import annotations

from accounts.services.settlement import (
    execute_pending_deposits,
    execute_pending_withdrawals,
)
from celery import shared_task


# No autoretry: a failed batch is re-run by hand.
@shared_task(bind=True)
def execute_pending_deposits_task(self) -> dict:
    batch = execute_pending_deposits()
    return {"task_id": self.request.id, **batch.as_dict()}


@shared_task(bind=True)
def execute_pending_withdrawals_task(self) -> dict:
    batch = execute_pending_withdrawals()
    return {"task_id": self.request.id, **batch.as_dict()}
