"""Checkout endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Request, status

from unboxme.api.schemas import (
    CheckoutOut,
    CheckoutRequest,
    CompleteRequest,
    PurchaseOut,
    QuoteOut,
)

if TYPE_CHECKING:
    from unboxme.containers import AppContainer

router = APIRouter(prefix="/drafts", tags=["checkout"])


@router.post("/{draft_id}/checkout")
async def start_checkout(
    draft_id: UUID, body: CheckoutRequest, request: Request
) -> CheckoutOut:
    """Open a payment for the freshly priced draft."""
    container: AppContainer = request.app.state.container
    session = await container.checkout_service.start_payment(draft_id, body.email)
    return CheckoutOut(
        draft_id=str(session.draft_id),
        payment_intent_id=session.payment_intent_id,
        client_secret=session.client_secret,
        quote=QuoteOut.from_quote(session.quote),
    )


@router.post("/{draft_id}/complete", status_code=status.HTTP_201_CREATED)
async def complete_checkout(
    draft_id: UUID, body: CompleteRequest, request: Request
) -> PurchaseOut:
    """Persist the gift box once its payment has succeeded."""
    container: AppContainer = request.app.state.container
    checkout = container.checkout_service
    record = await checkout.complete_purchase(draft_id, body.payment_intent_id)
    return PurchaseOut(
        slug=record.slug,
        share_link=checkout.share_link(record.slug),
        created_at=record.created_at,
        title=record.title,
        card_count=len(record.cards),
    )
