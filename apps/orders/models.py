from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.common.models import BaseModel


class Counter(models.Model):
    """Named monotonic sequence; see ``apps.orders.sequences``."""

    name = models.CharField(max_length=40, primary_key=True)
    seq = models.PositiveBigIntegerField(default=0)

    def __str__(self):
        return f"{self.name}={self.seq}"


class Order(BaseModel):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_PREPARING = "preparing"
    STATUS_READY = "ready"
    STATUS_COMPLETED = "completed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_PREPARING, "Preparing"),
        (STATUS_READY, "Ready"),
        (STATUS_COMPLETED, "Completed"),
    ]
    STATUSES = frozenset(code for code, _label in STATUS_CHOICES)
    PAYMENT_METHOD_CHOICES = [("cash", "Cash"), ("card", "Card"), ("online", "Online")]
    PAYMENT_METHODS = frozenset(code for code, _label in PAYMENT_METHOD_CHOICES)

    order_number = models.PositiveIntegerField(unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="orders"
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES)
    subtotal_cents = models.IntegerField(validators=[MinValueValidator(0)])
    discount_cents = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    total_cents = models.IntegerField(validators=[MinValueValidator(0)])

    class Meta:
        indexes = [models.Index(fields=["status", "created_at"], name="orders_status_created_idx")]

    def __str__(self):
        return f"Order #{self.order_number} ({self.status})"

    def save(self, *args, **kwargs):
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            OrderStatusChange.objects.create(order=self, status=self.status, source="initial")

    def set_status(self, status: str, *, source: str = "") -> bool:
        """Persist ``status``; the history only grows when the value actually changes."""
        changed = status != self.status
        self.status = status
        self.save(update_fields=["status", "updated_at"])
        if changed:
            OrderStatusChange.objects.create(order=self, status=status, source=source)
        return changed


class OrderItem(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey("menu.MenuItem", on_delete=models.SET_NULL, null=True, blank=True)
    name_snapshot = models.CharField(max_length=160, blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price_cents_snapshot = models.IntegerField(validators=[MinValueValidator(0)])
    line_total_cents = models.IntegerField(validators=[MinValueValidator(0)])

    class Meta:
        ordering = ["created_at"]


class OrderStatusChange(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_changes")
    status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    source = models.CharField(max_length=32, blank=True)

    class Meta:
        indexes = [models.Index(fields=["order", "created_at"], name="orders_statuschange_idx")]
        ordering = ["created_at"]


class OrderDeletion(BaseModel):
    """Durable deadline for removing a completed order.

    Rows outlive the order they point at, so the order is referenced by value.
    """

    STATUS_SCHEDULED = "scheduled"
    STATUS_DONE = "done"
    STATUS_MISSING = "missing"
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_DONE, "Done"),
        (STATUS_MISSING, "Order already gone"),
    ]

    order_id = models.UUIDField(db_index=True)
    order_number = models.PositiveIntegerField()
    user_id = models.UUIDField(null=True, blank=True)
    run_at = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [models.Index(fields=["status", "run_at"], name="orders_deletion_due_idx")]
