from __future__ import annotations

import logging
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.http.multipartparser import MultiPartParser
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods

from apps.accounts.decorators import admin_required
from apps.common.errors import ValidationError
from apps.common.http import json_view, parse_int, parse_json, parse_price_cents
from apps.common.validators import validate_upload

from .models import MenuItem
from .serializers import serialize_menu_item

log = logging.getLogger(__name__)


def _payload(request: HttpRequest) -> tuple[dict[str, Any], Any]:
    # Django only parses multipart bodies for POST; PUT uploads need the parser directly.
    if request.method == "PUT" and (request.content_type or "").startswith("multipart/"):
        data, files = MultiPartParser(request.META, request, request.upload_handlers).parse()
        return {k: v for k, v in data.items()}, files.get("image")
    return parse_json(request), request.FILES.get("image")


def _as_bool(raw: Any, default: bool) -> bool:
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def _apply(item: MenuItem, data: dict[str, Any], image, *, partial: bool) -> None:
    if not partial or "name" in data:
        name = (data.get("name") or "").strip()
        if len(name) < 2:
            raise ValidationError("name required")
        item.name = name
    if "description" in data:
        item.description = (data.get("description") or "").strip()
    if not partial or "price" in data or "priceCents" in data:
        item.price_cents = parse_price_cents(data)
    if "category" in data:
        item.category = (data.get("category") or "").strip()
    if not partial or "quantity" in data:
        item.quantity = parse_int(data.get("quantity"), field="quantity", minimum=0)
    if "available" in data or not partial:
        item.available = _as_bool(data.get("available"), default=item.available)
    if image is not None:
        validate_upload(image)
        item.image = image
    elif isinstance(data.get("image"), str):
        item.image_url = data["image"].strip()


@require_http_methods(["GET", "POST"])
@json_view
def menu_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "GET":
        items = MenuItem.objects.all()
        return JsonResponse([serialize_menu_item(i) for i in items], safe=False)
    return _create(request)


@admin_required
def _create(request: HttpRequest) -> JsonResponse:
    data, image = _payload(request)
    item = MenuItem()
    _apply(item, data, image, partial=False)
    item.save()
    log.info("Menu item %s created by %s", item.id, request.user.id)
    return JsonResponse(serialize_menu_item(item), status=201)


@require_http_methods(["GET", "PUT", "DELETE"])
@json_view
def menu_detail(request: HttpRequest, item_id) -> JsonResponse:
    if request.method == "GET":
        item = get_object_or_404(MenuItem, pk=item_id)
        return JsonResponse(serialize_menu_item(item))
    if request.method == "PUT":
        return _update(request, item_id)
    return _delete(request, item_id)


@admin_required
def _update(request: HttpRequest, item_id) -> JsonResponse:
    item = get_object_or_404(MenuItem, pk=item_id)
    data, image = _payload(request)
    _apply(item, data, image, partial=True)
    item.save()
    return JsonResponse(serialize_menu_item(item))


@admin_required
def _delete(request: HttpRequest, item_id) -> JsonResponse:
    item = get_object_or_404(MenuItem, pk=item_id)
    item.delete()
    log.info("Menu item %s deleted by %s", item_id, request.user.id)
    return JsonResponse({"message": "Menu item deleted"})
