import datetime as dt
import json
import threading
import uuid

import pytest
from django.db import connection
from django.utils import timezone

from apps.common.errors import NotFound
from apps.menu.models import MenuItem
from apps.orders import services, tasks
from apps.orders.models import Order, OrderDeletion
from apps.orders.sequences import next_sequence
from apps.payments.models import Payment


def _put_status(client, order, status):
    return client.put(
        f"/api/orders/{order.id}/status", data=json.dumps({"status": status}), content_type="application/json"
    )


@pytest.mark.django_db
def test_sequence_starts_at_one_and_increments():
    assert next_sequence("test") == 1
    assert next_sequence("test") == 2
    assert next_sequence("other") == 1


@pytest.mark.django_db(transaction=True)
def test_concurrent_sequence_numbers_are_distinct_and_contiguous():
    if connection.vendor == "sqlite":
        pytest.skip("needs a server database with row locks; set TEST_DATABASE_URL")

    workers, per_worker = 8, 25
    barrier = threading.Barrier(workers)
    results: dict[int, list[int]] = {}
    errors = []

    def _worker(index):
        try:
            barrier.wait()
            results[index] = [next_sequence("concurrent") for _ in range(per_worker)]
        except Exception as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=_worker, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    for numbers in results.values():
        assert numbers == sorted(numbers)
    issued = sorted(n for numbers in results.values() for n in numbers)
    assert issued == list(range(1, workers * per_worker + 1))


@pytest.mark.django_db
def test_order_numbers_increase_and_are_never_reused(place_order):
    first = place_order()
    second = place_order()
    third = place_order()
    assert first.order_number < second.order_number < third.order_number

    Order.objects.filter(pk=third.pk).delete()
    fourth = place_order()
    assert fourth.order_number > third.order_number


@pytest.mark.django_db
def test_checkout_prices_order_from_menu(customer_client, menu_items, published, django_capture_on_commit_callbacks):
    pizza, salad = menu_items
    payload = {
        "items": [{"menuId": str(pizza.id), "quantity": 2}, {"menuId": str(salad.id), "quantity": 1}],
        "paymentMethod": "card",
        "total": 1,
    }
    with django_capture_on_commit_callbacks(execute=True):
        resp = customer_client.post("/api/orders", data=json.dumps(payload), content_type="application/json")

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "pending"
    assert data["orderNumber"] >= 1
    assert data["totalCents"] == 1299 * 2 + 899
    assert data["estimatedTime"] == "5-10 minutes"
    assert data["payment"]["amountCents"] == 3497
    assert data["payment"]["status"] == "pending"
    assert sorted((i["name"], i["quantity"]) for i in data["items"]) == [("Caesar Salad", 1), ("Margherita Pizza", 2)]

    pizza.refresh_from_db()
    assert pizza.quantity == 48
    assert Payment.objects.get(order_id=data["id"]).method == "card"
    assert [(t, e) for t, e, _p in published] == [("broadcast", "newOrder")]


@pytest.mark.django_db
def test_checkout_applies_discount_balance(make_user, place_order):
    rich = make_user("rica@example.com", discount_cents=1000)
    order = place_order(rich)
    assert order.subtotal_cents == 3497
    assert order.discount_cents == 1000
    assert order.total_cents == 2497
    assert order.payment.amount_cents == 2497

    poorer = make_user("pedro@example.com", discount_cents=9000)
    capped = place_order(poorer, pizzas=1, salads=0)
    assert capped.discount_cents == 1299
    assert capped.total_cents == 0
    poorer.refresh_from_db()
    assert poorer.discount_cents == 9000 - 1299


@pytest.mark.django_db
def test_discount_balance_is_not_spent_twice(make_user, place_order):
    buyer = make_user("bia@example.com", discount_cents=1000)
    first = place_order(buyer)
    second = place_order(buyer)

    assert first.discount_cents == 1000
    assert second.discount_cents == 0
    assert second.total_cents == second.subtotal_cents
    buyer.refresh_from_db()
    assert buyer.discount_cents == 0


@pytest.mark.django_db
def test_checkout_validation(customer_client, menu_items):
    pizza, _salad = menu_items

    def post(payload):
        return customer_client.post("/api/orders", data=json.dumps(payload), content_type="application/json")

    item = {"menuId": str(pizza.id), "quantity": 1}
    assert post({"items": [item], "paymentMethod": "bitcoin"}).status_code == 400
    assert post({"items": [], "paymentMethod": "cash"}).status_code == 400
    assert post({"items": [{"menuId": "nope"}], "paymentMethod": "cash"}).status_code == 400
    assert post({"items": [{"menuId": str(uuid.uuid4())}], "paymentMethod": "cash"}).status_code == 404
    assert post({"items": [{"menuId": str(pizza.id), "quantity": 51}], "paymentMethod": "cash"}).status_code == 400

    MenuItem.objects.filter(pk=pizza.pk).update(available=False)
    resp = post({"items": [item], "paymentMethod": "cash"})
    assert resp.status_code == 400
    assert "not available" in resp.json()["message"]
    assert Order.objects.count() == 0


@pytest.mark.django_db
def test_checkout_requires_login(client, menu_items):
    pizza, _salad = menu_items
    payload = {"items": [{"menuId": str(pizza.id), "quantity": 1}], "paymentMethod": "cash"}
    resp = client.post("/api/orders", data=json.dumps(payload), content_type="application/json")
    assert resp.status_code == 401


@pytest.mark.django_db
def test_order_status_changes_logged(place_order):
    order = place_order()
    assert list(order.status_changes.values_list("status", flat=True)) == ["pending"]

    order.set_status("approved", source="test")
    order.set_status("approved", source="test")
    order.set_status("preparing", source="test")

    history = list(order.status_changes.order_by("created_at").values_list("status", flat=True))
    assert history == ["pending", "approved", "preparing"]


@pytest.mark.django_db
def test_admin_listing_sorted_by_status_then_age(admin_client, place_order):
    done = place_order()
    waiting = place_order()
    cooking = place_order()
    waiting_later = place_order()
    done.set_status("completed")
    cooking.set_status("preparing")

    resp = admin_client.get("/api/orders")
    assert resp.status_code == 200
    numbers = [o["orderNumber"] for o in resp.json()]
    assert numbers == [
        waiting.order_number,
        waiting_later.order_number,
        cooking.order_number,
        done.order_number,
    ]


def test_unknown_status_sorts_last():
    known = Order(status="completed", created_at=timezone.now())
    odd = Order(status="cancelled", created_at=timezone.now() - dt.timedelta(hours=1))
    assert services.sort_for_admin([odd, known]) == [known, odd]


@pytest.mark.django_db
def test_admin_listing_requires_admin(client, customer_client):
    assert client.get("/api/orders").status_code == 401
    resp = customer_client.get("/api/orders")
    assert resp.status_code == 403
    assert resp.json()["message"] == "Admin access required"


@pytest.mark.django_db
def test_user_orders_and_detail_are_scoped_to_owner(customer_client, other_user, admin_client, place_order):
    mine = place_order()
    theirs = place_order(other_user)

    resp = customer_client.get("/api/orders/user")
    assert [o["id"] for o in resp.json()] == [str(mine.id)]

    assert customer_client.get(f"/api/orders/{mine.id}").status_code == 200
    assert customer_client.get(f"/api/orders/{theirs.id}").status_code == 403
    assert admin_client.get(f"/api/orders/{theirs.id}").status_code == 200
    assert admin_client.get(f"/api/orders/{uuid.uuid4()}").status_code == 404


@pytest.mark.django_db
def test_public_listing_shows_approved_and_completed(client, place_order):
    approved = place_order()
    completed = place_order()
    place_order()
    approved.set_status("approved")
    completed.set_status("completed")

    resp = client.get("/api/orders/public")
    assert resp.status_code == 200
    data = resp.json()
    assert [o["orderNumber"] for o in data] == [completed.order_number, approved.order_number]
    assert data[0]["isCompleted"] is True
    assert data[1]["isCompleted"] is False
    assert data[1]["customerName"] == "Maria Cliente"
    assert data[1]["estimatedTime"] == "15-20 minutes"
    assert "user" not in data[0]


@pytest.mark.django_db
def test_track_by_order_number(client, place_order):
    order = place_order()

    resp = client.get(f"/api/orders/track/{order.order_number}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["orderNumber"] == order.order_number
    assert data["status"] == "pending"
    assert data["estimatedTime"] == "5-10 minutes"
    assert len(data["items"]) == 2

    assert client.get("/api/orders/track/abc").status_code == 400
    assert client.get("/api/orders/track/0").status_code == 400
    assert client.get("/api/orders/track/99999").status_code == 404
    assert client.get("/api/orders/track/99999999999999999999").status_code == 404
    assert client.get(f"/api/orders/track/{services.MAX_ORDER_NUMBER + 1}").status_code == 404


@pytest.mark.django_db
def test_status_update_fans_out(
    admin_client, place_order, published, queued_deletions, django_capture_on_commit_callbacks
):
    order = place_order()
    with django_capture_on_commit_callbacks(execute=True):
        resp = _put_status(admin_client, order, "approved")

    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    events = {(t, e): p for t, e, p in published}
    assert events[(f"order-{order.order_number}", "orderStatusUpdate")] == {
        "orderNumber": order.order_number,
        "status": "approved",
        "estimatedTime": "15-20 minutes",
    }
    public = events[("public-orders", "publicOrderUpdate")]
    assert public["isCompleted"] is False
    assert public["customerName"] == "Maria Cliente"
    assert events[("broadcast", "orderStatusChanged")]["id"] == str(order.id)
    assert queued_deletions == []
    assert not OrderDeletion.objects.exists()


@pytest.mark.django_db
def test_status_update_rejects_bad_input(admin_client, customer_client, place_order):
    order = place_order()
    assert _put_status(admin_client, order, "cancelled").status_code == 400
    assert _put_status(customer_client, order, "approved").status_code == 403
    resp = admin_client.put(
        f"/api/orders/{uuid.uuid4()}/status", data=json.dumps({"status": "ready"}), content_type="application/json"
    )
    assert resp.status_code == 404
    order.refresh_from_db()
    assert order.status == "pending"


@pytest.mark.django_db
def test_completed_order_removed_after_delay(
    admin_client, user, place_order, published, queued_deletions, django_capture_on_commit_callbacks
):
    order = place_order()
    before = timezone.now()
    with django_capture_on_commit_callbacks(execute=True):
        resp = _put_status(admin_client, order, "completed")
    assert resp.status_code == 200

    deletion = OrderDeletion.objects.get(order_id=order.id)
    assert deletion.status == OrderDeletion.STATUS_SCHEDULED
    assert deletion.run_at >= before + dt.timedelta(seconds=10)
    assert queued_deletions == [{"args": [str(deletion.id)], "countdown": 10}]
    assert (f"user-{user.id}", "orderCompleted", {"message": "Your order is ready!", "orderNumber": order.order_number}) in published

    # Still visible until the deadline passes.
    assert services.run_due_deletions(now=timezone.now()) == 0
    assert Order.objects.filter(pk=order.pk).exists()

    published.clear()
    with django_capture_on_commit_callbacks(execute=True):
        assert services.run_due_deletions(now=timezone.now() + dt.timedelta(seconds=11)) == 1

    assert not Order.objects.filter(pk=order.pk).exists()
    with pytest.raises(NotFound):
        services.find_by_number(order.order_number)
    deletion.refresh_from_db()
    assert deletion.status == OrderDeletion.STATUS_DONE
    assert published == [
        ("broadcast", "orderDeleted", str(order.id)),
        (f"order-{order.order_number}", "orderDeleted", order.order_number),
        ("public-orders", "publicOrderDeleted", str(order.id)),
    ]


@pytest.mark.django_db
def test_completing_twice_keeps_one_deletion(place_order, queued_deletions, django_capture_on_commit_callbacks):
    order = place_order()
    with django_capture_on_commit_callbacks(execute=True):
        services.transition_status(order.id, "completed")
        services.transition_status(order.id, "completed")
    assert OrderDeletion.objects.filter(order_id=order.id).count() == 1
    assert len(queued_deletions) == 1


@pytest.mark.django_db
def test_deletion_of_missing_order(place_order, queued_deletions):
    order = place_order()
    services.transition_status(order.id, "completed")
    deletion = OrderDeletion.objects.get(order_id=order.id)
    Order.objects.filter(pk=order.pk).delete()

    assert services.run_deletion(deletion.id) == OrderDeletion.STATUS_MISSING
    # Second run is a no-op.
    assert services.run_deletion(deletion.id) == OrderDeletion.STATUS_MISSING
    assert services.run_deletion(uuid.uuid4()) == "unknown"


@pytest.mark.django_db
def test_sweep_task_runs_due_deletions(place_order, queued_deletions):
    order = place_order()
    services.transition_status(order.id, "completed")
    OrderDeletion.objects.update(run_at=timezone.now() - dt.timedelta(seconds=1))

    assert tasks.sweep_order_deletions()["processed"] == 1
    assert not Order.objects.filter(pk=order.pk).exists()
    assert tasks.sweep_order_deletions() == {"processed": 0, "pruned": 0}


@pytest.mark.django_db
def test_countdown_task_deletes_order(place_order):
    order = place_order()
    services.transition_status(order.id, "completed")
    deletion = OrderDeletion.objects.get(order_id=order.id)

    assert tasks.delete_completed_order(str(deletion.id)) == OrderDeletion.STATUS_DONE
    assert not Order.objects.filter(pk=order.pk).exists()


@pytest.mark.django_db
def test_order_number_survives_deletion(place_order, queued_deletions):
    order = place_order()
    services.transition_status(order.id, "completed")
    services.run_due_deletions(now=timezone.now() + dt.timedelta(seconds=30))
    assert place_order().order_number == order.order_number + 1


@pytest.mark.django_db
def test_payment_survives_order_removal(place_order, queued_deletions):
    order = place_order()
    payment_id = order.payment.id
    services.transition_status(order.id, "completed")
    assert services.run_due_deletions(now=timezone.now() + dt.timedelta(seconds=30)) == 1

    assert not Order.objects.filter(pk=order.pk).exists()
    payment = Payment.objects.get(pk=payment_id)
    assert payment.order_id is None
    assert payment.order_number == order.order_number
    assert payment.amount_cents == order.total_cents
    assert payment.to_dict()["orderId"] is None


@pytest.mark.django_db
def test_sweep_prunes_old_finished_deletions(place_order, queued_deletions, settings):
    settings.ORDER_DELETION_RETENTION_HOURS = 1
    old = place_order()
    recent = place_order()
    waiting = place_order()
    for order in (old, recent, waiting):
        services.transition_status(order.id, "completed")
    OrderDeletion.objects.filter(order_id__in=[old.id, recent.id]).update(
        run_at=timezone.now() - dt.timedelta(seconds=1)
    )
    assert services.run_due_deletions() == 2
    OrderDeletion.objects.filter(order_id=old.id).update(finished_at=timezone.now() - dt.timedelta(hours=2))

    assert tasks.sweep_order_deletions() == {"processed": 0, "pruned": 1}
    remaining = set(OrderDeletion.objects.values_list("order_id", "status"))
    assert remaining == {
        (recent.id, OrderDeletion.STATUS_DONE),
        (waiting.id, OrderDeletion.STATUS_SCHEDULED),
    }
