"""
Django settings for the moneyflow project.

Settings are class based (django-configurations). Pick one with the
DJANGO_CONFIGURATION environment variable: Development, Production or Test.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from configurations import Configuration, values

BASE_DIR = Path(__file__).resolve().parent.parent


class Base(Configuration):
    SECRET_KEY = values.SecretValue()
    DEBUG = values.BooleanValue(False)
    ALLOWED_HOSTS = values.ListValue(["localhost", "127.0.0.1"])

    SERVICE_NAME = "moneyflow"
    ENV = "base"

    INSTALLED_APPS = [
        "django.contrib.admin",
        "django.contrib.auth",
        "django.contrib.contenttypes",
        "django.contrib.sessions",
        "django.contrib.messages",
        "django.contrib.staticfiles",
        "core.apps.CoreConfig",
        "clients",
        "accounts",
        "performance",
    ]

    MIDDLEWARE = [
        "django.middleware.security.SecurityMiddleware",
        "django.contrib.sessions.middleware.SessionMiddleware",
        "django.middleware.common.CommonMiddleware",
        "django.middleware.csrf.CsrfViewMiddleware",
        "django.contrib.auth.middleware.AuthenticationMiddleware",
        "django.contrib.messages.middleware.MessageMiddleware",
        "django.middleware.clickjacking.XFrameOptionsMiddleware",
    ]

    ROOT_URLCONF = "core.urls"
    WSGI_APPLICATION = "core.wsgi.application"

    TEMPLATES = [
        {
            "BACKEND": "django.template.backends.django.DjangoTemplates",
            "DIRS": [],
            "APP_DIRS": True,
            "OPTIONS": {
                "context_processors": [
                    "django.template.context_processors.request",
                    "django.contrib.auth.context_processors.auth",
                    "django.contrib.messages.context_processors.messages",
                ],
            },
        },
    ]

    # -----------------------------
    # Database (SQLite, WAL pragmas applied in core.db_pragmas)
    # -----------------------------
    SQLITE_PATH = values.Value(str(BASE_DIR / "moneyflow.db"), environ_prefix=None)

    @property
    def DATABASES(self):
        return {
            "default": {
                "ENGINE": "django.db.backends.sqlite3",
                "NAME": self.SQLITE_PATH,
                "OPTIONS": {"timeout": 30},
            }
        }

    DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

    LANGUAGE_CODE = "en-us"
    TIME_ZONE = "UTC"
    USE_I18N = True
    USE_TZ = True

    STATIC_URL = "static/"
    STATIC_ROOT = BASE_DIR / "staticfiles"

    # -----------------------------
    # Admin session (shared-secret token -> signed cookie)
    # -----------------------------
    ADMIN_TOKEN = values.Value("", environ_prefix=None)
    ADMIN_API_KEY = values.Value("", environ_prefix=None)
    ADMIN_COOKIE_NAME = "mf_admin"
    ADMIN_SESSION_MAX_AGE = values.IntegerValue(60 * 60 * 12, environ_prefix=None)
    ADMIN_LOGIN_DELAY_MS = values.IntegerValue(350, environ_prefix=None)

    # -----------------------------
    # Investor identity (set by the auth provider's gateway)
    # -----------------------------
    INVESTOR_ID_HEADER = values.Value("HTTP_X_INVESTOR_ID", environ_prefix=None)
    INVESTOR_EMAIL_HEADER = values.Value("HTTP_X_INVESTOR_EMAIL", environ_prefix=None)

    # -----------------------------
    # Settlement
    # -----------------------------
    SETTLEMENT_PRINCIPAL_EPSILON = values.DecimalValue(
        Decimal("0.000001"), environ_prefix=None
    )
    SETTLEMENT_SHARES_EPSILON = values.DecimalValue(
        Decimal("0.000000000001"), environ_prefix=None
    )
    SETTLEMENT_WITHDRAW_FORWARD_PRICING = values.BooleanValue(
        True, environ_prefix=None
    )

    # -----------------------------
    # Celery
    # -----------------------------
    CELERY_BROKER_URL = values.Value("redis://localhost:6379/0", environ_prefix=None)
    CELERY_RESULT_BACKEND = values.Value(
        "redis://localhost:6379/1", environ_prefix=None
    )
    CELERY_TASK_SERIALIZER = "json"
    CELERY_RESULT_SERIALIZER = "json"
    CELERY_ACCEPT_CONTENT = ["json"]
    CELERY_TIMEZONE = "UTC"

    # -----------------------------
    # Sentry
    # -----------------------------
    SENTRY_URL = values.Value("", environ_prefix=None)
    SENTRY_ENABLED = values.BooleanValue(False, environ_prefix=None)
    SENTRY_ENVIRONMENT = values.Value("development", environ_prefix=None)
    SENTRY_TRACES_SAMPLE_RATE = values.FloatValue(0.0, environ_prefix=None)

    # -----------------------------
    # Logging
    # -----------------------------
    LOG_LEVEL = values.Value("INFO", environ_prefix=None)

    @property
    def LOGGING(self):
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"handlers": ["console"], "level": "WARNING"},
            "loggers": {
                name: {
                    "handlers": ["console"],
                    "level": self.LOG_LEVEL,
                    "propagate": False,
                }
                for name in ("core", "clients", "accounts", "performance")
            },
        }


class Development(Base):
    DEBUG = values.BooleanValue(True)
    SECRET_KEY = values.Value("dev-insecure-secret-key")
    ENV = "development"


class Production(Base):
    ENV = "production"

    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")


class Test(Base):
    SECRET_KEY = "test-secret-key"
    DEBUG = False
    ENV = "test"
    ALLOWED_HOSTS = ["testserver", "localhost"]

    SQLITE_PATH = ":memory:"

    ADMIN_TOKEN = "test-admin-token"
    ADMIN_API_KEY = ""
    ADMIN_LOGIN_DELAY_MS = 0

    CELERY_BROKER_URL = "memory://"
    CELERY_RESULT_BACKEND = "cache+memory://"
    CELERY_TASK_ALWAYS_EAGER = True

    SENTRY_ENABLED = False
    LOG_LEVEL = "WARNING"
