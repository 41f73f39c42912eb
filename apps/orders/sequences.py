from django.db import transaction
from django.db.models import F

from .models import Counter

ORDER_NUMBER_SEQUENCE = "orderNumber"


def next_sequence(name: str) -> int:
    """Atomically increment the named counter and return the new value.

    The ``UPDATE ... SET seq = seq + 1`` takes the row lock, and the read
    happens inside the same transaction, so concurrent callers queue on the
    row and each one observes its own increment. Values are never handed out
    twice and never rewound, even when the rows that used them are deleted.
    """
    with transaction.atomic():
        Counter.objects.get_or_create(name=name)
        Counter.objects.filter(name=name).update(seq=F("seq") + 1)
        return Counter.objects.filter(name=name).values_list("seq", flat=True).get()
