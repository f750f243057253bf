from __future__ import annotations

from core.auth import (
    end_admin_session,
    expected_admin_token,
    is_admin,
    start_admin_session,
    verify_admin_token,
)
from core.exceptions import MoneyflowError
from core.http import json_view, read_json
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST


class AdminTokenNotConfigured(MoneyflowError):
    status = 500
    default_message = "ADMIN_TOKEN not set"


@require_POST
@json_view
def admin_login(request):
    if not expected_admin_token():
        raise AdminTokenNotConfigured()

    body = read_json(request)
    verify_admin_token(str(body.get("token") or ""))

    return start_admin_session(JsonResponse({"ok": True}))


@require_POST
@json_view
def admin_logout(request):
    return end_admin_session(JsonResponse({"ok": True}))


@require_GET
@json_view
def admin_me(request):
    return {"ok": True, "is_admin": is_admin(request)}
