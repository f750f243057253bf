from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from functools import wraps
from typing import Any

from core.exceptions import InvalidInput, MoneyflowError
from django.db import DatabaseError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

log = logging.getLogger(__name__)

# Largest value a max_digits=18, decimal_places=2 column holds
MAX_USD_AMOUNT = Decimal("9999999999999999.99")


def error_response(message: str, *, status: int) -> JsonResponse:
    return JsonResponse({"error": message}, status=status)


def json_view(view):
    """
    Wrap a view that returns a dict (or a ready HttpResponse).

    Every error is answered at this boundary as {"error": message}:
    MoneyflowError subclasses carry their own status, database errors and
    anything unexpected become a 500 with the raw message.
    """

    @wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
        try:
            payload = view(request, *args, **kwargs)
        except MoneyflowError as e:
            if e.status >= 500:
                log.error("%s failed: %s", view.__name__, e.message)
            return error_response(e.message, status=e.status)
        except DatabaseError as e:
            log.exception("database error in %s", view.__name__)
            return error_response(str(e) or "database error", status=500)
        except Exception as e:
            log.exception("unhandled error in %s", view.__name__)
            return error_response(str(e) or "error", status=500)

        if isinstance(payload, HttpResponse):
            return payload
        return JsonResponse(payload)

    return csrf_exempt(wrapper)


def read_json(request: HttpRequest, *, strict: bool = False) -> dict[str, Any]:
    """
    Parse the request body as a JSON object. A missing or malformed body
    is an empty dict unless `strict`, in which case it is InvalidInput.
    """
    try:
        body = json.loads(request.body or b"null")
    except ValueError:
        body = None

    if isinstance(body, dict):
        return body
    if strict:
        raise InvalidInput("Invalid JSON body")
    return {}


def parse_decimal(value: Any, *, field: str) -> Decimal:
    if value is None or isinstance(value, bool) or value == "":
        raise InvalidInput(f"{field} required")
    try:
        out = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{field} must be a number")
    if not out.is_finite():
        raise InvalidInput(f"{field} must be a finite number")
    if abs(out) > MAX_USD_AMOUNT:
        raise InvalidInput(f"{field} is too large")
    return out


def parse_positive_amount(value: Any, *, field: str = "amount") -> Decimal:
    amount = parse_decimal(value, field=field)
    if amount <= 0:
        raise InvalidInput(f"{field} must be > 0")
    return amount


def optional_note(value: Any) -> str | None:
    if value is None:
        return None
    note = str(value).strip()
    return note or None
