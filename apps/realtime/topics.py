"""Group names used on the channel layer.

Channel group names are limited to ASCII letters, digits, hyphens,
underscores and periods, so every topic is built here.
"""

BROADCAST = "broadcast"
PUBLIC_ORDERS = "public-orders"


def order_topic(order_number: int) -> str:
    return f"order-{int(order_number)}"


def user_topic(user_id) -> str:
    return f"user-{user_id}"
