"""Order lifecycle: checkout, status transitions, tracking and timed removal."""
from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import Any, Iterable

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.common.errors import NotFound, ValidationError
from apps.common.http import parse_int
from apps.menu.models import MenuItem
from apps.payments.services import create_payment
from apps.realtime import topics
from apps.realtime.notifier import publish

from .models import Order, OrderDeletion, OrderItem
from .sequences import ORDER_NUMBER_SEQUENCE, next_sequence
from .serializers import customer_name, estimated_time, serialize_order

log = logging.getLogger(__name__)

STATUS_PRIORITY = {
    Order.STATUS_PENDING: 1,
    Order.STATUS_APPROVED: 2,
    Order.STATUS_PREPARING: 3,
    Order.STATUS_READY: 4,
    Order.STATUS_COMPLETED: 5,
}
UNKNOWN_STATUS_PRIORITY = 6
PUBLIC_STATUSES = (Order.STATUS_APPROVED, Order.STATUS_COMPLETED)
# Largest value a PositiveIntegerField holds on every supported database.
MAX_ORDER_NUMBER = 2147483647
MAX_DELETION_ATTEMPTS = 5


def order_queryset():
    return Order.objects.select_related("user", "payment").prefetch_related("items")


def delete_delay_seconds() -> int:
    return int(getattr(settings, "ORDER_DELETE_DELAY_SECONDS", 10))


def deletion_retention() -> dt.timedelta:
    return dt.timedelta(hours=float(getattr(settings, "ORDER_DELETION_RETENTION_HOURS", 24)))


# Checkout ---------------------------------------------------------------


def normalize_items(raw_items: Any) -> list[tuple[str, int]]:
    """Validate ``[{"menuId": ..., "quantity": n}, ...]`` and merge duplicate ids."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("Order must contain at least one item")
    merged: dict[str, int] = {}
    for entry in raw_items:
        if not isinstance(entry, dict):
            raise ValidationError("Invalid order item")
        raw_id = entry.get("menuId") or entry.get("menuItemId")
        try:
            menu_id = str(uuid.UUID(str(raw_id)))
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid menu item id: {raw_id}")
        qty = parse_int(entry.get("quantity", 1), field="quantity", minimum=1)
        merged[menu_id] = merged.get(menu_id, 0) + qty
    return list(merged.items())


@transaction.atomic
def create_order(user, raw_items: Any, payment_method: str) -> Order:
    """Place an order for ``user``.

    Prices come from the menu at checkout time, the caller's discount balance
    is taken up to the subtotal, and the stock of each item is decremented.
    A pending Payment is created next to the order.
    """
    if payment_method not in Order.PAYMENT_METHODS:
        raise ValidationError("Invalid payment method")
    lines = normalize_items(raw_items)

    menu = {
        str(m.id): m
        for m in MenuItem.objects.select_for_update().filter(pk__in=[menu_id for menu_id, _qty in lines])
    }
    subtotal = 0
    for menu_id, qty in lines:
        item = menu.get(menu_id)
        if item is None:
            raise NotFound(f"Menu item {menu_id} not found")
        if not item.available:
            raise ValidationError(f"{item.name} is not available")
        if item.quantity < qty:
            raise ValidationError(f"Not enough stock for {item.name}")
        subtotal += item.price_cents * qty

    discount = user.take_discount(subtotal)

    order = Order.objects.create(
        order_number=next_sequence(ORDER_NUMBER_SEQUENCE),
        user=user,
        status=Order.STATUS_PENDING,
        payment_method=payment_method,
        subtotal_cents=subtotal,
        discount_cents=discount,
        total_cents=subtotal - discount,
    )
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                menu_item=menu[menu_id],
                name_snapshot=menu[menu_id].name,
                quantity=qty,
                unit_price_cents_snapshot=menu[menu_id].price_cents,
                line_total_cents=menu[menu_id].price_cents * qty,
            )
            for menu_id, qty in lines
        ]
    )
    for menu_id, qty in lines:
        MenuItem.objects.filter(pk=menu_id).update(quantity=F("quantity") - qty)
    create_payment(order)

    order = order_queryset().get(pk=order.pk)
    payload = serialize_order(order)
    transaction.on_commit(lambda: publish(topics.BROADCAST, "newOrder", payload))
    log.info("Order #%s created for user %s (total=%s)", order.order_number, user.pk, order.total_cents)
    return order


# Status transitions -----------------------------------------------------


def transition_status(order_id, status: str, *, source: str = "admin") -> Order:
    """Set any of the five statuses directly and fan the change out.

    Reaching ``completed`` also notifies the owner and schedules the order's
    removal after ``ORDER_DELETE_DELAY_SECONDS``.
    """
    if status not in Order.STATUSES:
        raise ValidationError("Invalid status")
    with transaction.atomic():
        order = Order.objects.select_for_update(of=("self",)).filter(pk=order_id).first()
        if order is None:
            raise NotFound("Order not found")
        order.set_status(status, source=source)
        if status == Order.STATUS_COMPLETED:
            schedule_deletion(order)
        order = order_queryset().get(pk=order.pk)
        payload = serialize_order(order)
        transaction.on_commit(lambda: announce_status(order, payload))
    log.info("Order #%s -> %s (%s)", order.order_number, status, source)
    return order


def announce_status(order: Order, payload: dict[str, Any] | None = None) -> None:
    publish(
        topics.order_topic(order.order_number),
        "orderStatusUpdate",
        {
            "orderNumber": order.order_number,
            "status": order.status,
            "estimatedTime": estimated_time(order.status),
        },
    )
    publish(
        topics.PUBLIC_ORDERS,
        "publicOrderUpdate",
        {
            "orderId": str(order.id),
            "orderNumber": order.order_number,
            "status": order.status,
            "customerName": customer_name(order),
            "estimatedTime": estimated_time(order.status),
            "isCompleted": order.status == Order.STATUS_COMPLETED,
        },
    )
    publish(topics.BROADCAST, "orderStatusChanged", payload if payload is not None else serialize_order(order))
    if order.status == Order.STATUS_COMPLETED and order.user_id:
        publish(
            topics.user_topic(order.user_id),
            "orderCompleted",
            {"message": "Your order is ready!", "orderNumber": order.order_number},
        )


# Timed removal ----------------------------------------------------------


def schedule_deletion(order: Order) -> OrderDeletion:
    """Persist the removal deadline and hand it to the worker after commit.

    The row is the source of truth: if the broker or worker loses the
    countdown task, ``sweep_order_deletions`` still runs it once due.
    """
    existing = OrderDeletion.objects.filter(order_id=order.id, status=OrderDeletion.STATUS_SCHEDULED).first()
    if existing is not None:
        return existing
    delay = delete_delay_seconds()
    deletion = OrderDeletion.objects.create(
        order_id=order.id,
        order_number=order.order_number,
        user_id=order.user_id,
        run_at=timezone.now() + dt.timedelta(seconds=delay),
    )

    def _dispatch():
        from .tasks import delete_completed_order

        try:
            delete_completed_order.apply_async(args=[str(deletion.id)], countdown=delay)
        except Exception:
            log.warning("Could not enqueue deletion %s; the sweep will pick it up", deletion.id, exc_info=True)

    transaction.on_commit(_dispatch)
    return deletion


def run_deletion(deletion_id) -> str:
    """Remove the order behind a scheduled deletion; returns the final status."""
    with transaction.atomic():
        deletion = OrderDeletion.objects.select_for_update().filter(pk=deletion_id).first()
        if deletion is None:
            log.warning("Order deletion %s not found", deletion_id)
            return "unknown"
        if deletion.status != OrderDeletion.STATUS_SCHEDULED:
            return deletion.status
        deleted, _per_model = Order.objects.filter(pk=deletion.order_id).delete()
        deletion.attempts += 1
        deletion.status = OrderDeletion.STATUS_DONE if deleted else OrderDeletion.STATUS_MISSING
        deletion.finished_at = timezone.now()
        deletion.save(update_fields=["attempts", "status", "finished_at", "updated_at"])
        if deleted:
            transaction.on_commit(lambda: announce_deletion(deletion.order_id, deletion.order_number))
    log.info("Order #%s removal: %s", deletion.order_number, deletion.status)
    return deletion.status


def run_deletion_safely(deletion_id) -> str:
    """``run_deletion`` for background callers: failures are logged, never raised."""
    try:
        return run_deletion(deletion_id)
    except Exception as e:
        log.exception("Error deleting order for deletion %s", deletion_id)
        OrderDeletion.objects.filter(pk=deletion_id).update(attempts=F("attempts") + 1, last_error=str(e)[:2000])
        return "error"


def run_due_deletions(now: dt.datetime | None = None, limit: int = 100) -> int:
    now = now or timezone.now()
    due = list(
        OrderDeletion.objects.filter(
            status=OrderDeletion.STATUS_SCHEDULED, run_at__lte=now, attempts__lt=MAX_DELETION_ATTEMPTS
        )
        .order_by("run_at")
        .values_list("id", flat=True)[:limit]
    )
    for deletion_id in due:
        run_deletion_safely(deletion_id)
    return len(due)


def prune_finished_deletions(now: dt.datetime | None = None) -> int:
    """Drop done/missing deletion rows that finished before the retention window."""
    cutoff = (now or timezone.now()) - deletion_retention()
    pruned, _per_model = OrderDeletion.objects.filter(
        status__in=(OrderDeletion.STATUS_DONE, OrderDeletion.STATUS_MISSING), finished_at__lt=cutoff
    ).delete()
    return pruned


def announce_deletion(order_id, order_number: int) -> None:
    publish(topics.BROADCAST, "orderDeleted", str(order_id))
    publish(topics.order_topic(order_number), "orderDeleted", order_number)
    publish(topics.PUBLIC_ORDERS, "publicOrderDeleted", str(order_id))


# Queries ----------------------------------------------------------------


def parse_order_number(raw: Any) -> int:
    try:
        number = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError("Invalid order number")
    if number < 1:
        raise ValidationError("Invalid order number")
    return number


def find_by_number(raw_number: Any) -> Order:
    number = parse_order_number(raw_number)
    if number > MAX_ORDER_NUMBER:
        raise NotFound("Order not found")
    order = order_queryset().filter(order_number=number).first()
    if order is None:
        raise NotFound("Order not found")
    return order


def get_order(order_id) -> Order:
    order = order_queryset().filter(pk=order_id).first()
    if order is None:
        raise NotFound("Order not found")
    return order


def sort_for_admin(orders: Iterable[Order]) -> list[Order]:
    return sorted(orders, key=lambda o: (STATUS_PRIORITY.get(o.status, UNKNOWN_STATUS_PRIORITY), o.created_at))


def admin_listing() -> list[Order]:
    """Every order, pending first through completed, oldest first within a status."""
    return sort_for_admin(order_queryset())


def public_listing() -> list[Order]:
    return list(order_queryset().filter(status__in=PUBLIC_STATUSES).order_by("-created_at"))


def user_listing(user) -> list[Order]:
    return list(order_queryset().filter(user=user).order_by("-created_at"))
