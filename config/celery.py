import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Completed orders carry a persisted removal deadline; the sweep runs any that
# the countdown task missed (worker restart, broker flush).
app.conf.beat_schedule = {
    "sweep-order-deletions": {
        "task": "apps.orders.tasks.sweep_order_deletions",
        "schedule": float(os.getenv("ORDER_DELETION_SWEEP_SECONDS", "60")),
    },
}
