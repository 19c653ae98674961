"""Tier pricing for gift box drafts."""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from unboxme.domain.boxes import GiftBoxDraft, GiftCard

DELUXE_CARD_THRESHOLD = 5


class Tier(Enum):
    """Price tiers; each member carries its display name, price and features."""

    STANDARD = (
        "Standard",
        Decimal("4.99"),
        ("Up to 5 cards", "Text & images", "Basic themes", "Instant delivery"),
    )
    DELUXE = (
        "Deluxe",
        Decimal("7.99"),
        (
            "Up to 7 cards",
            "Text, images & audio",
            "Confetti animation",
            "Background music",
        ),
    )
    TIME_CAPSULE = (
        "Time Capsule",
        Decimal("9.99"),
        (
            "Up to 7 cards",
            "Text, images & audio",
            "Delayed delivery",
            "All premium features",
        ),
    )

    def __init__(self, label: str, price: Decimal, features: tuple[str, ...]) -> None:
        self.label = label
        self.price = price
        self.features = features


@dataclass(frozen=True)
class PriceQuote:
    """Price computed for a draft."""

    tier: Tier
    amount: Decimal

    @property
    def tier_name(self) -> str:
        return self.tier.label

    @property
    def amount_minor(self) -> int:
        """Amount in cents for the payment processor."""
        return int(self.amount * 100)


def price(draft: GiftBoxDraft) -> PriceQuote:
    """Return the tier and amount for the current state of a draft."""
    tier = select_tier(draft.cards, has_confetti=draft.has_confetti)
    return PriceQuote(tier=tier, amount=tier.price)


def select_tier(cards: Sequence[GiftCard], *, has_confetti: bool) -> Tier:
    """Pick the tier for a card collection; the first matching rule wins."""
    if any(max(card.unlock_delay_days, 0) > 0 for card in cards):
        return Tier.TIME_CAPSULE
    if (
        len(cards) > DELUXE_CARD_THRESHOLD
        or any(card.has_audio for card in cards)
        or has_confetti
    ):
        return Tier.DELUXE
    return Tier.STANDARD
