from __future__ import annotations

import time
from dataclasses import dataclass
from functools import wraps

from core.exceptions import Unauthorized
from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.utils.crypto import constant_time_compare

ADMIN_COOKIE_SALT = "moneyflow.admin-session"


# -----------------------------
# Admin session
# -----------------------------
def expected_admin_token() -> str:
    return (settings.ADMIN_TOKEN or settings.ADMIN_API_KEY or "").strip()


def verify_admin_token(token: str) -> None:
    """
    Missing and wrong tokens fail the same way so nothing about the
    expected value leaks.
    """
    delay_ms = int(settings.ADMIN_LOGIN_DELAY_MS or 0)
    if delay_ms > 0:
        time.sleep(delay_ms / 1000)

    expected = expected_admin_token()
    if not token or not constant_time_compare(token, expected):
        raise Unauthorized()


def is_admin(request: HttpRequest) -> bool:
    value = request.get_signed_cookie(
        settings.ADMIN_COOKIE_NAME,
        default=None,
        salt=ADMIN_COOKIE_SALT,
        max_age=settings.ADMIN_SESSION_MAX_AGE,
    )
    return value == "1"


def start_admin_session(response: HttpResponse) -> HttpResponse:
    response.set_signed_cookie(
        settings.ADMIN_COOKIE_NAME,
        "1",
        salt=ADMIN_COOKIE_SALT,
        max_age=settings.ADMIN_SESSION_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.ENV == "production",
        samesite="Strict",
    )
    return response


def end_admin_session(response: HttpResponse) -> HttpResponse:
    response.delete_cookie(settings.ADMIN_COOKIE_NAME, path="/", samesite="Strict")
    return response


def admin_required(view):
    @wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs):
        if not is_admin(request):
            raise Unauthorized()
        return view(request, *args, **kwargs)

    return wrapper


# -----------------------------
# Investor identity (issued by the external auth provider)
# -----------------------------
@dataclass(frozen=True)
class InvestorIdentity:
    user_id: str
    email: str | None = None


def investor_identity(request: HttpRequest) -> InvestorIdentity:
    user_id = (request.META.get(settings.INVESTOR_ID_HEADER) or "").strip()
    if not user_id:
        raise Unauthorized()
    email = (request.META.get(settings.INVESTOR_EMAIL_HEADER) or "").strip() or None
    return InvestorIdentity(user_id=user_id, email=email)


def investor_required(view):
    @wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs):
        request.investor = investor_identity(request)
        return view(request, *args, **kwargs)

    return wrapper
