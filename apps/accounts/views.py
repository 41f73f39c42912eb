from __future__ import annotations

import logging

from django.contrib.auth import authenticate, get_user_model, login, logout
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST

from apps.common.errors import ValidationError
from apps.common.http import json_view, parse_json
from apps.common.rate_limit import throttle

from .decorators import login_required_json

User = get_user_model()
log = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@ensure_csrf_cookie
@require_GET
def csrf(request: HttpRequest) -> JsonResponse:
    return JsonResponse({"ok": True})


@require_POST
@json_view
@throttle("register", limit=10, window_seconds=60)
def register(request: HttpRequest) -> JsonResponse:
    data = parse_json(request)
    name = (data.get("name") or "").strip()
    email = _normalize_email(data.get("email", ""))
    password = data.get("password") or ""
    if len(name) < 2:
        raise ValidationError("Name required")
    if "@" not in email:
        raise ValidationError("Valid email required")
    try:
        validate_password(password)
    except DjangoValidationError as e:
        raise ValidationError(" ".join(e.messages))
    if User.objects.filter(email__iexact=email).exists():
        raise ValidationError("User already exists")
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=email, email=email, password=password, name=name, role=User.ROLE_CUSTOMER
            )
    except IntegrityError:
        raise ValidationError("User already exists")
    login(request, user)
    log.info("Registered user %s", user.id)
    return JsonResponse({"user": user.to_dict()}, status=201)


@require_POST
@json_view
@throttle("login", limit=20, window_seconds=60)
def login_view(request: HttpRequest) -> JsonResponse:
    data = parse_json(request)
    email = _normalize_email(data.get("email", ""))
    password = data.get("password") or ""
    user = authenticate(request, username=email, password=password)
    if user is None:
        raise ValidationError("Invalid credentials")
    login(request, user)
    return JsonResponse({"user": user.to_dict()})


@require_POST
@json_view
def logout_view(request: HttpRequest) -> JsonResponse:
    logout(request)
    return JsonResponse({"ok": True})


@require_GET
@json_view
@login_required_json
def me(request: HttpRequest) -> JsonResponse:
    request.user.refresh_from_db(fields=["discount_cents"])
    return JsonResponse({"user": request.user.to_dict()})
