from django.core.validators import MinValueValidator
from django.db import models

from apps.common.models import BaseModel


class MenuItem(BaseModel):
    name = models.CharField(max_length=160)
    description = models.TextField(blank=True)
    price_cents = models.IntegerField(validators=[MinValueValidator(0)])
    category = models.CharField(max_length=80, blank=True)
    image = models.ImageField(upload_to="uploads/menu/", max_length=255, blank=True, null=True)
    image_url = models.URLField(max_length=500, blank=True)
    quantity = models.PositiveIntegerField(default=0)
    available = models.BooleanField(default=True)

    class Meta:
        indexes = [models.Index(fields=["category", "available"], name="menu_item_cat_avail_idx")]
        ordering = ["category", "name"]

    def __str__(self):
        return self.name
