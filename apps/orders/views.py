from __future__ import annotations

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods

from apps.accounts.decorators import admin_required, login_required_json
from apps.common.errors import Forbidden
from apps.common.http import json_view, parse_json
from apps.common.rate_limit import throttle

from . import services
from .serializers import public_projection, serialize_order, tracking_projection


@require_http_methods(["GET", "POST"])
@json_view
def orders_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        return _create_order(request)
    return _admin_orders(request)


@login_required_json
def _create_order(request: HttpRequest) -> JsonResponse:
    data = parse_json(request)
    # A client-side "total" may be sent; the server prices the order itself.
    order = services.create_order(request.user, data.get("items"), (data.get("paymentMethod") or "").strip())
    return JsonResponse(serialize_order(order), status=201)


@admin_required
def _admin_orders(request: HttpRequest) -> JsonResponse:
    return JsonResponse([serialize_order(o) for o in services.admin_listing()], safe=False)


@require_GET
@json_view
@login_required_json
def user_orders(request: HttpRequest) -> JsonResponse:
    return JsonResponse([serialize_order(o) for o in services.user_listing(request.user)], safe=False)


@require_GET
@json_view
@throttle("track", limit=120, window_seconds=60)
def track_order(request: HttpRequest, order_number: str) -> JsonResponse:
    order = services.find_by_number(order_number)
    return JsonResponse(tracking_projection(order))


@require_GET
@json_view
def public_orders(request: HttpRequest) -> JsonResponse:
    return JsonResponse([public_projection(o) for o in services.public_listing()], safe=False)


@require_GET
@json_view
@login_required_json
def order_detail(request: HttpRequest, order_id) -> JsonResponse:
    order = services.get_order(order_id)
    if order.user_id != request.user.id and not request.user.is_admin:
        raise Forbidden()
    return JsonResponse(serialize_order(order))


@require_http_methods(["PUT", "PATCH"])
@json_view
@admin_required
def update_status(request: HttpRequest, order_id) -> JsonResponse:
    data = parse_json(request)
    order = services.transition_status(order_id, (data.get("status") or "").strip(), source="admin")
    return JsonResponse(serialize_order(order))
