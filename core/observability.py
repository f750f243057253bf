import logging

import sentry_sdk
from django.conf import settings
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration

log = logging.getLogger(__name__)


def init_sentry() -> bool:
    dsn = (getattr(settings, "SENTRY_URL", "") or "").strip()
    enabled = bool(getattr(settings, "SENTRY_ENABLED", False))

    if not (enabled and dsn):
        return False

    sentry_sdk.init(
        dsn=dsn,
        integrations=[DjangoIntegration(), CeleryIntegration()],
        send_default_pii=True,
        environment=getattr(settings, "SENTRY_ENVIRONMENT", "development"),
        traces_sample_rate=float(getattr(settings, "SENTRY_TRACES_SAMPLE_RATE", 0.0)),
    )
    log.info("Sentry enabled (environment=%s)", settings.SENTRY_ENVIRONMENT)
    return True
