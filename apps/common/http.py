from __future__ import annotations

import functools
import json
import logging
from typing import Any, Callable

from django.http import Http404, HttpRequest, JsonResponse

from .errors import ApiError, ValidationError

log = logging.getLogger(__name__)


def error_response(message: str, status: int) -> JsonResponse:
    return JsonResponse({"message": message}, status=status)


def parse_json(request: HttpRequest) -> dict[str, Any]:
    """Return the request payload as a dict.

    JSON bodies are decoded; form-encoded and multipart requests fall back to
    ``request.POST`` so admin uploads and plain forms go through the same path.
    """
    content_type = (request.content_type or "").lower()
    if content_type.startswith("multipart/") or content_type == "application/x-www-form-urlencoded":
        return {k: v for k, v in request.POST.items()}
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError("invalid json")
    if not isinstance(data, dict):
        raise ValidationError("invalid json")
    return data


def json_view(view: Callable[..., Any]) -> Callable[..., JsonResponse]:
    """Translate domain errors raised by ``view`` into JSON error responses.

    Unexpected exceptions become a 500 whose message is the exception text.
    """

    @functools.wraps(view)
    def _wrapped(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ApiError as e:
            return error_response(e.message, e.status_code)
        except Http404 as e:
            return error_response(str(e) or "Not found", 404)
        except Exception as e:
            log.exception("Unhandled error on %s %s", request.method, request.path)
            return error_response(str(e), 500)

    return _wrapped


def parse_int(raw: Any, *, field: str, minimum: int | None = None) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return value


def parse_price_cents(data: dict[str, Any]) -> int:
    """Accept either ``priceCents`` or a decimal ``price`` (e.g. "12.99")."""
    if data.get("priceCents") not in (None, ""):
        return parse_int(data["priceCents"], field="priceCents", minimum=0)
    raw = data.get("price")
    if raw in (None, ""):
        raise ValidationError("price required")
    try:
        cents = round(float(raw) * 100)
    except (TypeError, ValueError):
        raise ValidationError("price must be a number")
    if cents < 0:
        raise ValidationError("price must be >= 0")
    return int(cents)
