import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import Client

from apps.menu.models import MenuItem
from apps.orders.services import create_order

PASSWORD = "s3cret-Passw0rd"


@pytest.fixture(autouse=True)
def _clear_cache():
    # Rate-limit buckets live in the cache.
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email: str, *, name: str = "Cliente", role: str = "customer", discount_cents: int = 0):
        return get_user_model().objects.create_user(
            username=email, email=email, password=PASSWORD, name=name, role=role, discount_cents=discount_cents
        )

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user("maria@example.com", name="Maria Cliente")


@pytest.fixture
def other_user(make_user):
    return make_user("joao@example.com", name="João")


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@example.com", name="Admin", role="admin")


@pytest.fixture
def customer_client(user):
    c = Client()
    c.force_login(user)
    return c


@pytest.fixture
def admin_client(admin_user):
    c = Client()
    c.force_login(admin_user)
    return c


@pytest.fixture
def menu_items(db):
    pizza = MenuItem.objects.create(
        name="Margherita Pizza", price_cents=1299, category="Main Course", quantity=50, available=True
    )
    salad = MenuItem.objects.create(name="Caesar Salad", price_cents=899, category="Appetizer", quantity=30)
    return pizza, salad


@pytest.fixture
def place_order(user, menu_items):
    pizza, salad = menu_items

    def _place_order(owner=None, *, pizzas: int = 2, salads: int = 1, method: str = "card"):
        items = [{"menuId": str(pizza.id), "quantity": pizzas}]
        if salads:
            items.append({"menuId": str(salad.id), "quantity": salads})
        return create_order(owner or user, items, method)

    return _place_order


@pytest.fixture
def published(monkeypatch):
    """Record (topic, event, payload) for every event the services publish."""
    events = []

    def _record(topic, event, payload=None):
        events.append((topic, event, payload))
        return True

    monkeypatch.setattr("apps.orders.services.publish", _record)
    monkeypatch.setattr("apps.rewards.services.publish", _record)
    return events


@pytest.fixture
def queued_deletions(monkeypatch):
    """Capture countdown tasks instead of running them eagerly."""
    calls = []

    class _Task:
        def apply_async(self, args=None, countdown=None, **kwargs):
            calls.append({"args": args, "countdown": countdown})

    monkeypatch.setattr("apps.orders.tasks.delete_completed_order", _Task())
    return calls
