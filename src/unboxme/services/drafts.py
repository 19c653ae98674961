"""Builder operations over in-memory gift box drafts."""

import logging
from copy import deepcopy
from dataclasses import dataclass, replace
from uuid import UUID

from unboxme.domain.boxes import GiftBoxDraft, GiftCard, MediaKind, Theme, new_card_id
from unboxme.domain.errors import NotFound, ValidationError
from unboxme.domain.pricing import PriceQuote, price
from unboxme.domain.validation import submission_problems
from unboxme.services.cache import Cache

_logger = logging.getLogger(__name__)

_BOX_FIELDS = {
    "title",
    "theme",
    "emoji",
    "has_confetti",
    "has_background_music",
    "spotify_embed",
}
_NULLABLE_BOX_FIELDS = {"spotify_embed"}


@dataclass
class DraftService:
    """Application service backing the box builder."""

    cache: Cache
    max_cards: int = 7
    max_unlock_delay_days: int = 365
    ttl_seconds: int = 24 * 60 * 60

    def create_draft(self) -> GiftBoxDraft:
        """Start a new draft with one blank card."""
        draft = GiftBoxDraft.blank()
        self.save(draft)
        _logger.info("Draft created: draft_id=%s", draft.id)
        return draft

    def get_draft(self, draft_id: UUID) -> GiftBoxDraft:
        """Return a live draft or raise NotFound."""
        draft = self.cache.get(_key(draft_id))
        if not isinstance(draft, GiftBoxDraft):
            raise NotFound(f"Draft {draft_id} not found or expired")
        return draft

    def save(self, draft: GiftBoxDraft) -> None:
        """Store a draft and refresh its expiry."""
        self.cache.set(_key(draft.id), draft, self.ttl_seconds)

    def discard(self, draft_id: UUID) -> None:
        """Forget a draft, e.g. once it has been purchased."""
        self.cache.delete(_key(draft_id))

    def hold_for_payment(self, draft: GiftBoxDraft, payment_reference: str) -> None:
        """Keep a copy of the draft exactly as it was priced for a payment."""
        self.cache.set(
            _held_key(payment_reference), deepcopy(draft), self.ttl_seconds
        )

    def held_for_payment(self, payment_reference: str) -> GiftBoxDraft | None:
        """Return the copy taken when the payment started, if still held."""
        held = self.cache.get(_held_key(payment_reference))
        return held if isinstance(held, GiftBoxDraft) else None

    def release_payment(self, payment_reference: str) -> None:
        """Drop the copy held for a payment."""
        self.cache.delete(_held_key(payment_reference))

    def update_box(self, draft_id: UUID, **fields: object) -> GiftBoxDraft:
        """Update box-level fields such as title, theme and effects."""
        unknown = set(fields) - _BOX_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        cleared = sorted(
            name
            for name, value in fields.items()
            if value is None and name not in _NULLABLE_BOX_FIELDS
        )
        if cleared:
            raise ValidationError([f"{name} cannot be null" for name in cleared])
        if "theme" in fields:
            try:
                fields["theme"] = Theme(fields["theme"])
            except ValueError as exc:
                raise ValidationError(f"Unknown theme: {fields['theme']}") from exc
        draft = self.get_draft(draft_id)
        for name, value in fields.items():
            setattr(draft, name, value)
        self.save(draft)
        return draft

    def add_card(self, draft_id: UUID) -> GiftCard:
        """Append a blank card, up to the configured maximum."""
        draft = self.get_draft(draft_id)
        if len(draft.cards) >= self.max_cards:
            raise ValidationError(f"A gift box holds at most {self.max_cards} cards")
        card = GiftCard(id=new_card_id())
        draft.cards.append(card)
        self.save(draft)
        return card

    def remove_card(self, draft_id: UUID, card_id: str) -> GiftBoxDraft:
        """Remove a card; the last remaining card cannot be removed."""
        draft = self.get_draft(draft_id)
        index = _card_index(draft, card_id)
        if len(draft.cards) <= 1:
            raise ValidationError("A gift box needs at least one card")
        del draft.cards[index]
        draft.pending_uploads = {
            pending for pending in draft.pending_uploads if pending[0] != card_id
        }
        self.save(draft)
        return draft

    def update_card(
        self,
        draft_id: UUID,
        card_id: str,
        *,
        message: str | None = None,
        unlock_delay_days: int | None = None,
    ) -> GiftCard:
        """Edit a card's message or unlock delay."""
        draft = self.get_draft(draft_id)
        index = _card_index(draft, card_id)
        card = draft.cards[index]
        if message is not None:
            card = replace(card, message=message)
        if unlock_delay_days is not None:
            if unlock_delay_days > self.max_unlock_delay_days:
                raise ValidationError(
                    f"Unlock delay cannot exceed {self.max_unlock_delay_days} days"
                )
            card = replace(card, unlock_delay_days=max(unlock_delay_days, 0))
        draft.cards[index] = card
        self.save(draft)
        return card

    def attach_media(
        self, draft_id: UUID, card_id: str, kind: MediaKind, url: str | None
    ) -> GiftCard:
        """Set or clear the media URL of a card."""
        draft = self.get_draft(draft_id)
        index = _card_index(draft, card_id)
        field_name = "image_url" if kind is MediaKind.IMAGE else "audio_url"
        card = replace(draft.cards[index], **{field_name: url})
        draft.cards[index] = card
        self.save(draft)
        return card

    def clear_media(self, draft_id: UUID, card_id: str, kind: MediaKind) -> GiftCard:
        """Detach media from a card."""
        return self.attach_media(draft_id, card_id, kind, None)

    def mark_pending(
        self, draft_id: UUID, card_id: str, kind: MediaKind, pending: bool
    ) -> None:
        """Track whether an upload for a card is in flight."""
        draft = self.get_draft(draft_id)
        _card_index(draft, card_id)
        if pending:
            draft.pending_uploads.add((card_id, kind))
        else:
            draft.pending_uploads.discard((card_id, kind))
        self.save(draft)

    def quote(self, draft_id: UUID) -> PriceQuote:
        """Price the current state of a draft."""
        return price(self.get_draft(draft_id))

    @staticmethod
    def readiness(draft: GiftBoxDraft) -> list[str]:
        """Return the problems blocking checkout; empty when ready."""
        return submission_problems(draft)


def _key(draft_id: UUID) -> str:
    return f"draft:{draft_id}"


def _held_key(payment_reference: str) -> str:
    return f"checkout:{payment_reference}"


def _card_index(draft: GiftBoxDraft, card_id: str) -> int:
    index = draft.find_card(card_id)
    if index is None:
        raise NotFound(f"Card {card_id} not found")
    return index
