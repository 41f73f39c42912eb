from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.common.models import BaseModel


class ScratchCard(BaseModel):
    """Gift box redeemable once; ``prize`` is whole currency units, set when scratched."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="scratch_cards")
    prize = models.PositiveIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    scratched = models.BooleanField(default=False)
    scratched_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [models.Index(fields=["scratched", "prize"], name="rewards_scratched_prize_idx")]

    def __str__(self):
        return f"ScratchCard({self.user_id}, prize={self.prize})"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "userId": str(self.user_id),
            "prize": self.prize,
            "scratched": self.scratched,
            "scratchedAt": self.scratched_at,
            "createdAt": self.created_at,
        }
