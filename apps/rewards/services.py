from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from apps.common.errors import Forbidden, NotFound, ValidationError
from apps.realtime import topics
from apps.realtime.notifier import publish

from . import policy
from .models import ScratchCard

log = logging.getLogger(__name__)


def create_card(user) -> ScratchCard:
    return ScratchCard.objects.create(user=user)


def list_cards(user) -> list[ScratchCard]:
    return list(ScratchCard.objects.filter(user=user).order_by("-created_at"))


@transaction.atomic
def scratch(card_id, user) -> int:
    """Reveal a card's prize and credit it to the owner's discount balance.

    The prize is written with a ``scratched=False`` guard, so of two racing
    scratches only one ever assigns a prize and credits the balance.
    """
    card = ScratchCard.objects.filter(pk=card_id).only("id", "user_id", "scratched").first()
    if card is None:
        raise NotFound("Card not found")
    if card.user_id != user.pk:
        raise Forbidden("Card belongs to another user")
    if card.scratched:
        raise ValidationError("Already scratched")

    prize = policy.draw_prize(policy.count_high_prizes())
    updated = ScratchCard.objects.filter(pk=card.pk, scratched=False).update(
        scratched=True, prize=prize, scratched_at=timezone.now(), updated_at=timezone.now()
    )
    if not updated:
        raise ValidationError("Already scratched")
    user.add_discount(prize * 100)
    transaction.on_commit(
        lambda: publish(topics.user_topic(user.pk), "prizeWon", {"cardId": str(card.pk), "prize": prize})
    )
    log.info("Card %s scratched by %s: prize=%s", card.pk, user.pk, prize)
    return prize
