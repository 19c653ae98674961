"""Checkout: payment start and one-time conversion of drafts into boxes."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from unboxme.domain.boxes import GiftBoxDraft, GiftBoxRecord
from unboxme.domain.errors import PaymentNotCompleted, ValidationError
from unboxme.domain.pricing import PriceQuote, price
from unboxme.domain.validation import ensure_email, ensure_submittable
from unboxme.services.drafts import DraftService

_logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class PaymentIntent:
    """Payment processor view of a payment attempt."""

    id: str
    status: str
    amount_minor: int
    currency: str
    client_secret: str | None
    metadata: dict[str, str]


class PaymentClient(Protocol):
    """Interface to the payment processor."""

    async def create_payment_intent(
        self,
        amount_minor: int,
        currency: str,
        email: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        """Create a payment intent for a customer identified by email."""

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        """Fetch the current state of a payment intent."""


class GiftBoxRepository(Protocol):
    """Persistence interface for purchased gift boxes."""

    def create_box(
        self,
        draft: GiftBoxDraft,
        payment_reference: str,
        buyer_email: str | None,
    ) -> GiftBoxRecord:
        """Persist a draft once; the store assigns slug and created_at."""

    def get_by_slug(self, slug: str) -> GiftBoxRecord | None:
        """Return a box by slug, if present."""

    def get_by_payment_reference(self, payment_reference: str) -> GiftBoxRecord | None:
        """Return the box created for a payment, if any."""


@dataclass(frozen=True)
class CheckoutSession:
    """Payment details handed back to the checkout screen."""

    draft_id: UUID
    quote: PriceQuote
    payment_intent_id: str
    client_secret: str | None


@dataclass
class CheckoutService:
    """Coordinates pricing, payment and persistence for a purchase."""

    drafts: DraftService
    payments: PaymentClient
    repository: GiftBoxRepository
    currency: str = "usd"
    public_base_url: str = "https://unboxme.app"

    async def start_payment(self, draft_id: UUID, email: str) -> CheckoutSession:
        """Validate the draft, price it fresh and open a payment intent."""
        draft = self.drafts.get_draft(draft_id)
        ensure_submittable(draft)
        contact = ensure_email(email)
        quote = price(draft)
        intent = await self.payments.create_payment_intent(
            amount_minor=quote.amount_minor,
            currency=self.currency,
            email=contact,
            metadata={
                "draft_id": str(draft.id),
                "gift_box_title": draft.title,
                "card_count": str(len(draft.cards)),
                "customer_email": contact,
                "tier": quote.tier_name,
            },
        )
        self.drafts.hold_for_payment(draft, intent.id)
        _logger.info(
            "Payment intent created: draft_id=%s intent=%s amount=%s",
            draft.id,
            intent.id,
            quote.amount,
        )
        return CheckoutSession(
            draft_id=draft.id,
            quote=quote,
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
        )

    async def complete_purchase(
        self, draft_id: UUID, payment_reference: str
    ) -> GiftBoxRecord:
        """Persist what was paid for on a succeeded payment.

        The box is built from the copy of the draft taken when the payment
        started, so edits made while the buyer was paying are not persisted.
        Repeat calls for the same payment return the existing record.
        """
        existing = self.repository.get_by_payment_reference(payment_reference)
        if existing is not None:
            _logger.info(
                "Purchase already completed: intent=%s slug=%s",
                payment_reference,
                existing.slug,
            )
            return existing

        draft = self.drafts.held_for_payment(payment_reference)
        if draft is None:
            draft = self.drafts.get_draft(draft_id)
        if draft.id != draft_id:
            raise ValidationError("Payment belongs to a different gift box")
        ensure_submittable(draft)
        intent = await self.payments.retrieve_payment_intent(payment_reference)
        if intent.status != PAYMENT_SUCCEEDED:
            _logger.warning(
                "Payment not completed: intent=%s status=%s",
                payment_reference,
                intent.status,
            )
            raise PaymentNotCompleted(payment_reference, intent.status)
        if intent.metadata.get("draft_id") != str(draft.id):
            raise ValidationError("Payment belongs to a different gift box")
        # Only reachable when the held copy has expired and the live draft
        # has since grown into a pricier tier.
        if intent.amount_minor < price(draft).amount_minor:
            raise ValidationError("Payment does not cover this gift box")

        record = self.repository.create_box(
            draft,
            payment_reference=payment_reference,
            buyer_email=intent.metadata.get("customer_email"),
        )
        self.drafts.discard(draft.id)
        self.drafts.release_payment(payment_reference)
        _logger.info(
            "Purchase completed: draft_id=%s slug=%s", draft.id, record.slug
        )
        return record

    def share_link(self, slug: str) -> str:
        """Return the public link recipients open."""
        return f"{self.public_base_url.rstrip('/')}/box/{slug}"
