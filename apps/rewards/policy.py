"""Scratch-card prize draw.

While fewer than ``SCRATCH_HIGH_PRIZE_CAP`` scratched cards (across every
user) carry a prize above ``SCRATCH_HIGH_PRIZE_THRESHOLD``, prizes are drawn
uniformly from 1..30; afterwards only from 1..20.
"""
from __future__ import annotations

import random

from django.conf import settings

from .models import ScratchCard

WIDE_RANGE = (1, 30)
NARROW_RANGE = (1, 20)


def high_prize_threshold() -> int:
    return int(getattr(settings, "SCRATCH_HIGH_PRIZE_THRESHOLD", 20))


def high_prize_cap() -> int:
    return int(getattr(settings, "SCRATCH_HIGH_PRIZE_CAP", 4))


def count_high_prizes() -> int:
    return ScratchCard.objects.filter(scratched=True, prize__gt=high_prize_threshold()).count()


def prize_range(high_prize_count: int) -> tuple[int, int]:
    return WIDE_RANGE if high_prize_count < high_prize_cap() else NARROW_RANGE


def draw_prize(high_prize_count: int, rng: random.Random | None = None) -> int:
    low, high = prize_range(high_prize_count)
    return (rng or random).randint(low, high)
