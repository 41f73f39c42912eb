from __future__ import annotations

from typing import Any

from .models import MenuItem


def image_ref(item: MenuItem) -> str:
    if item.image and getattr(item.image, "name", ""):
        return item.image.url
    return item.image_url or ""


def serialize_menu_item(item: MenuItem) -> dict[str, Any]:
    return {
        "id": str(item.id),
        "name": item.name,
        "description": item.description,
        "priceCents": item.price_cents,
        "category": item.category,
        "image": image_ref(item),
        "quantity": item.quantity,
        "available": item.available,
    }
