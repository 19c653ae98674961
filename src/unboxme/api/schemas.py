"""Pydantic models for the HTTP API."""

import math
from datetime import datetime

from pydantic import BaseModel, Field

from unboxme.domain.boxes import GiftBoxDraft, GiftBoxRecord, GiftCard, Theme
from unboxme.domain.pricing import PriceQuote, Tier
from unboxme.domain.unlock import CardLockState
from unboxme.services.viewer import BoxView, CardView


class CardOut(BaseModel):
    """Card content."""

    id: str
    message: str
    image_url: str | None = None
    audio_url: str | None = None
    unlock_delay_days: int = 0

    @classmethod
    def from_card(cls, card: GiftCard) -> "CardOut":
        return cls(
            id=card.id,
            message=card.message,
            image_url=card.image_url,
            audio_url=card.audio_url,
            unlock_delay_days=card.unlock_delay_days,
        )


class QuoteOut(BaseModel):
    """Current price of a draft."""

    tier: str
    tier_name: str
    amount: str
    features: list[str]

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "QuoteOut":
        return cls(
            tier=quote.tier.name.lower(),
            tier_name=quote.tier_name,
            amount=str(quote.amount),
            features=list(quote.tier.features),
        )


class TierOut(BaseModel):
    """Entry of the tier catalogue."""

    tier: str
    tier_name: str
    amount: str
    features: list[str]

    @classmethod
    def from_tier(cls, tier: Tier) -> "TierOut":
        return cls(
            tier=tier.name.lower(),
            tier_name=tier.label,
            amount=str(tier.price),
            features=list(tier.features),
        )


class DraftOut(BaseModel):
    """Builder view of a draft, always carrying a fresh quote."""

    id: str
    title: str
    theme: Theme
    emoji: str
    has_confetti: bool
    has_background_music: bool
    spotify_embed: str | None
    cards: list[CardOut]
    quote: QuoteOut
    problems: list[str]
    ready: bool

    @classmethod
    def from_draft(
        cls, draft: GiftBoxDraft, quote: PriceQuote, problems: list[str]
    ) -> "DraftOut":
        return cls(
            id=str(draft.id),
            title=draft.title,
            theme=draft.theme,
            emoji=draft.emoji,
            has_confetti=draft.has_confetti,
            has_background_music=draft.has_background_music,
            spotify_embed=draft.spotify_embed,
            cards=[CardOut.from_card(card) for card in draft.cards],
            quote=QuoteOut.from_quote(quote),
            problems=problems,
            ready=not problems,
        )


class DraftUpdate(BaseModel):
    """Box-level fields a builder may change."""

    title: str | None = None
    theme: Theme | None = None
    emoji: str | None = None
    has_confetti: bool | None = None
    has_background_music: bool | None = None
    spotify_embed: str | None = None


class CardUpdate(BaseModel):
    """Card fields a builder may change."""

    message: str | None = None
    unlock_delay_days: int | None = Field(default=None, ge=0)


class CheckoutRequest(BaseModel):
    """Contact details for starting a payment."""

    email: str


class CheckoutOut(BaseModel):
    """Payment details for the checkout screen."""

    draft_id: str
    payment_intent_id: str
    client_secret: str | None
    quote: QuoteOut


class CompleteRequest(BaseModel):
    """Reference of a payment the client reports as completed."""

    payment_intent_id: str


class PurchaseOut(BaseModel):
    """Result of a completed purchase."""

    slug: str
    share_link: str
    created_at: datetime
    title: str
    card_count: int


class BoxCardOut(BaseModel):
    """Viewer state of one card."""

    index: int
    state: CardLockState
    eligible: bool
    unlocks_at: datetime
    remaining_seconds: int | None
    countdown: str | None
    card: CardOut | None

    @classmethod
    def from_view(cls, view: CardView) -> "BoxCardOut":
        return cls(
            index=view.index,
            state=view.state,
            eligible=view.eligible,
            unlocks_at=view.unlocks_at,
            remaining_seconds=(
                math.ceil(view.remaining.total_seconds())
                if view.remaining is not None
                else None
            ),
            countdown=view.countdown,
            card=CardOut.from_card(view.card) if view.card else None,
        )


class BoxOut(BaseModel):
    """Viewer summary of a purchased box."""

    slug: str
    title: str
    theme: Theme
    emoji: str
    has_confetti: bool
    has_background_music: bool
    spotify_embed: str | None
    created_at: datetime
    viewed_at: datetime
    cards: list[BoxCardOut]

    @classmethod
    def from_view(cls, view: BoxView) -> "BoxOut":
        box: GiftBoxRecord = view.box
        return cls(
            slug=box.slug,
            title=box.title,
            theme=box.theme,
            emoji=box.emoji,
            has_confetti=box.has_confetti,
            has_background_music=box.has_background_music,
            spotify_embed=box.spotify_embed,
            created_at=box.created_at,
            viewed_at=view.viewed_at,
            cards=[BoxCardOut.from_view(card) for card in view.cards],
        )
