from django.core.validators import MinValueValidator
from django.db import models

from apps.common.models import BaseModel


class Payment(BaseModel):
    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_CHOICES = [(STATUS_PENDING, "Pending"), (STATUS_COMPLETED, "Completed")]

    # Completed orders are removed later; the payment stays and keeps the number by value.
    order = models.OneToOneField(
        "orders.Order", on_delete=models.SET_NULL, null=True, blank=True, related_name="payment"
    )
    order_number = models.PositiveIntegerField(null=True, blank=True)
    amount_cents = models.IntegerField(validators=[MinValueValidator(0)])
    method = models.CharField(max_length=10)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    processed_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"Payment(#{self.order_number}, {self.status})"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "orderId": str(self.order_id) if self.order_id else None,
            "orderNumber": self.order_number,
            "amountCents": self.amount_cents,
            "method": self.method,
            "status": self.status,
            "processedAt": self.processed_at,
        }
