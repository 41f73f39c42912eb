from __future__ import annotations

from typing import Any

from .models import Order, OrderItem

ESTIMATED_TIMES = {
    Order.STATUS_PENDING: "5-10 minutes",
    Order.STATUS_APPROVED: "15-20 minutes",
    Order.STATUS_PREPARING: "10-15 minutes",
    Order.STATUS_READY: "Ready for pickup",
    Order.STATUS_COMPLETED: "Completed",
}


def estimated_time(status: str) -> str:
    return ESTIMATED_TIMES.get(status, "Calculating...")


def customer_name(order: Order) -> str:
    user = order.user
    name = user.display_name if user is not None else ""
    return name or "Anonymous"


def serialize_item(item: OrderItem) -> dict[str, Any]:
    return {
        "menuItemId": str(item.menu_item_id) if item.menu_item_id else None,
        "name": item.name_snapshot or "Unknown Item",
        "quantity": item.quantity,
        "priceCents": item.unit_price_cents_snapshot or 0,
    }


def _items(order: Order) -> list[dict[str, Any]]:
    return [serialize_item(i) for i in order.items.all()]


def serialize_order(order: Order) -> dict[str, Any]:
    user = order.user
    payment = getattr(order, "payment", None)
    return {
        "id": str(order.id),
        "orderNumber": order.order_number,
        "status": order.status,
        "paymentMethod": order.payment_method,
        "subtotalCents": order.subtotal_cents,
        "discountCents": order.discount_cents,
        "totalCents": order.total_cents,
        "createdAt": order.created_at,
        "user": {"id": str(user.id), "name": user.display_name, "email": user.email} if user else None,
        "items": _items(order),
        "payment": payment.to_dict() if payment is not None else None,
        "estimatedTime": estimated_time(order.status),
    }


def tracking_projection(order: Order) -> dict[str, Any]:
    """What an anonymous visitor may see for a single order number."""
    return {
        "orderNumber": order.order_number,
        "status": order.status,
        "totalCents": order.total_cents,
        "createdAt": order.created_at,
        "items": _items(order),
        "estimatedTime": estimated_time(order.status),
    }


def public_projection(order: Order) -> dict[str, Any]:
    return {
        "id": str(order.id),
        "orderNumber": order.order_number,
        "status": order.status,
        "totalCents": order.total_cents,
        "createdAt": order.created_at,
        "customerName": customer_name(order),
        "items": _items(order),
        "estimatedTime": estimated_time(order.status),
        "isCompleted": order.status == Order.STATUS_COMPLETED,
    }
