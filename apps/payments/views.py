from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.decorators import login_required_json
from apps.common.errors import Forbidden, NotFound
from apps.common.http import json_view
from apps.orders.models import Order

from . import services


def _check_access(request: HttpRequest, order_id) -> None:
    order = Order.objects.filter(pk=order_id).only("id", "user_id").first()
    if order is None:
        raise NotFound("Payment not found")
    if order.user_id != request.user.id and not request.user.is_admin:
        raise Forbidden()


@require_POST
@json_view
@login_required_json
def process(request: HttpRequest, order_id) -> JsonResponse:
    _check_access(request, order_id)
    payment = services.process_payment(order_id)
    return JsonResponse({"message": "Payment processed successfully", "payment": payment.to_dict()})


@require_GET
@json_view
@login_required_json
def status(request: HttpRequest, order_id) -> JsonResponse:
    _check_access(request, order_id)
    return JsonResponse({"status": services.payment_status(order_id)})
