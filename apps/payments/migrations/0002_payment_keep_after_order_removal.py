import django.db.models.deletion
from django.db import migrations, models


def copy_order_numbers(apps, schema_editor):
    Payment = apps.get_model("payments", "Payment")
    for payment in Payment.objects.filter(order__isnull=False).select_related("order"):
        payment.order_number = payment.order.order_number
        payment.save(update_fields=["order_number"])


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0001_initial"),
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="payment",
            name="order_number",
            field=models.PositiveIntegerField(blank=True, null=True),
        ),
        migrations.AlterField(
            model_name="payment",
            name="order",
            field=models.OneToOneField(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="payment",
                to="orders.order",
            ),
        ),
        migrations.RunPython(copy_order_numbers, migrations.RunPython.noop),
    ]
