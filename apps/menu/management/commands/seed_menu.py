from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.menu.models import MenuItem
from apps.orders.models import Order
from apps.orders.services import create_order

User = get_user_model()


@dataclass
class SeedItem:
    name: str
    description: str
    price_cents: int
    category: str
    quantity: int


SAMPLE_MENU = [
    SeedItem("Margherita Pizza", "Classic pizza with tomato sauce, mozzarella, and basil", 1299, "Main Course", 50),
    SeedItem("Caesar Salad", "Crisp romaine lettuce with Caesar dressing, croutons, and parmesan", 899, "Appetizer", 30),
    SeedItem("Grilled Chicken Burger", "Juicy grilled chicken patty with lettuce, tomato, and mayo", 1099, "Main Course", 40),
    SeedItem("Chocolate Brownie", "Rich chocolate brownie with vanilla ice cream", 599, "Dessert", 20),
    SeedItem("French Fries", "Crispy golden fries seasoned with salt", 499, "Side", 60),
    SeedItem("Mojito", "Refreshing drink with mint, lime, and soda", 699, "Beverage", 25),
]


class Command(BaseCommand):
    help = "Reset the menu to the sample items and ensure an admin and a sample customer exist."

    def add_arguments(self, parser):
        parser.add_argument("--admin-email", default="admin@example.com")
        parser.add_argument("--admin-password", default="admin-Passw0rd!")
        parser.add_argument("--customer-email", default="customer@example.com")
        parser.add_argument("--customer-password", default="customer-Passw0rd!")
        parser.add_argument("--keep-orders", action="store_true", help="Do not delete existing orders")

    @transaction.atomic
    def handle(self, *args, **opts):
        if not opts["keep_orders"]:
            Order.objects.all().delete()
        MenuItem.objects.all().delete()
        items = [
            MenuItem.objects.create(
                name=s.name,
                description=s.description,
                price_cents=s.price_cents,
                category=s.category,
                quantity=s.quantity,
                available=True,
            )
            for s in SAMPLE_MENU
        ]
        self.stdout.write(self.style.SUCCESS(f"{len(items)} menu items inserted"))

        self._ensure_user(opts["admin_email"], opts["admin_password"], "Admin", User.ROLE_ADMIN)
        customer = self._ensure_user(
            opts["customer_email"], opts["customer_password"], "Sample Customer", User.ROLE_CUSTOMER
        )

        if not Order.objects.filter(user=customer).exists():
            order = create_order(
                customer,
                [{"menuId": str(items[0].id), "quantity": 2}, {"menuId": str(items[1].id), "quantity": 1}],
                "card",
            )
            self.stdout.write(self.style.SUCCESS(f"Sample order #{order.order_number} created"))

    def _ensure_user(self, email: str, password: str, name: str, role: str):
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            user = User(username=email, email=email, name=name, role=role, is_staff=role == User.ROLE_ADMIN)
            action = "created"
        else:
            user.role = role
            action = "updated"
        user.set_password(password)
        user.save()
        self.stdout.write(self.style.SUCCESS(f"{role} {email} {action}"))
        return user
