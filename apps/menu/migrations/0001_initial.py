import uuid

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MenuItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=160)),
                ("description", models.TextField(blank=True)),
                ("price_cents", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("category", models.CharField(blank=True, max_length=80)),
                ("image", models.ImageField(blank=True, max_length=255, null=True, upload_to="uploads/menu/")),
                ("image_url", models.URLField(blank=True, max_length=500)),
                ("quantity", models.PositiveIntegerField(default=0)),
                ("available", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["category", "name"],
                "indexes": [models.Index(fields=["category", "available"], name="menu_item_cat_avail_idx")],
            },
        ),
    ]
