from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from apps.common.errors import NotFound

from .models import Payment

log = logging.getLogger(__name__)


def create_payment(order) -> Payment:
    return Payment.objects.create(
        order=order,
        order_number=order.order_number,
        amount_cents=order.total_cents,
        method=order.payment_method,
    )


def redeem_discount(user) -> None:
    """Consume the whole discount balance, however much of it the order used."""
    if user is None:
        return
    user.reset_discount()


@transaction.atomic
def process_payment(order_id) -> Payment:
    """Mock gateway: every payment succeeds on the first call."""
    payment = Payment.objects.select_for_update(of=("self",)).select_related("order", "order__user").filter(order_id=order_id).first()
    if payment is None:
        raise NotFound("Payment not found")
    if payment.status != Payment.STATUS_COMPLETED:
        payment.status = Payment.STATUS_COMPLETED
        payment.processed_at = timezone.now()
        payment.save(update_fields=["status", "processed_at", "updated_at"])
    redeem_discount(payment.order.user)
    log.info("Payment %s for order #%s processed", payment.id, payment.order.order_number)
    return payment


def payment_status(order_id) -> str:
    payment = Payment.objects.filter(order_id=order_id).only("status").first()
    if payment is None:
        raise NotFound("Payment not found")
    return payment.status
