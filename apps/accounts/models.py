from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, UniqueConstraint
from django.db.models.functions import Lower

from apps.common.models import BaseModel


class User(BaseModel, AbstractUser):
    """Customer or administrator account.

    Email is the login identifier (case-insensitive unique); ``username`` is
    kept because ``AbstractUser`` requires it and is filled from the email.
    ``discount_cents`` is the scratch-card credit consumed at the next payment.
    """

    ROLE_CUSTOMER = "customer"
    ROLE_ADMIN = "admin"
    ROLE_CHOICES = [(ROLE_CUSTOMER, "Customer"), (ROLE_ADMIN, "Admin")]

    email = models.EmailField("email address", blank=True)
    name = models.CharField(max_length=160, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    discount_cents = models.IntegerField(default=0, validators=[MinValueValidator(0)])

    class Meta(AbstractUser.Meta):
        constraints = [
            UniqueConstraint(
                Lower("email"), name="accounts_user_email_lower_uniq", violation_error_message="Email already registered"
            )
        ]

    def save(self, *args, **kwargs):
        if self.email:
            self.email = str(self.email).strip().lower()
        if not self.username and self.email:
            self.username = self.email
        return super().save(*args, **kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or ""

    def add_discount(self, amount_cents: int) -> None:
        type(self).objects.filter(pk=self.pk).update(discount_cents=F("discount_cents") + amount_cents)

    def take_discount(self, limit_cents: int) -> int:
        """Deduct up to ``limit_cents`` from the balance and return the amount taken.

        Locks the user row, so it must run inside a transaction.
        """
        users = type(self).objects
        balance = users.select_for_update().filter(pk=self.pk).values_list("discount_cents", flat=True).first() or 0
        taken = min(max(balance, 0), max(limit_cents, 0))
        if taken:
            users.filter(pk=self.pk).update(discount_cents=F("discount_cents") - taken)
        return taken

    def reset_discount(self) -> None:
        type(self).objects.filter(pk=self.pk).update(discount_cents=0)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.display_name,
            "email": self.email,
            "role": self.role,
            "discountCents": self.discount_cents,
        }
