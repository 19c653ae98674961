"""Builder endpoints for composing gift box drafts."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, File, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from unboxme.api.schemas import (
    CardUpdate,
    DraftOut,
    DraftUpdate,
    QuoteOut,
    TierOut,
)
from unboxme.domain.boxes import MediaKind
from unboxme.domain.pricing import Tier, price

if TYPE_CHECKING:
    from unboxme.containers import AppContainer
    from unboxme.domain.boxes import GiftBoxDraft
    from unboxme.services.drafts import DraftService

router = APIRouter(tags=["builder"])


def _drafts(request: Request) -> DraftService:
    container: AppContainer = request.app.state.container
    return container.draft_service


def _draft_out(drafts: DraftService, draft: GiftBoxDraft) -> DraftOut:
    return DraftOut.from_draft(draft, price(draft), drafts.readiness(draft))


@router.get("/tiers")
async def list_tiers() -> list[TierOut]:
    """Return the tier catalogue."""
    return [TierOut.from_tier(tier) for tier in Tier]


@router.post("/drafts", status_code=status.HTTP_201_CREATED)
async def create_draft(request: Request) -> DraftOut:
    """Start a new draft with one blank card."""
    drafts = _drafts(request)
    return _draft_out(drafts, drafts.create_draft())


@router.get("/drafts/{draft_id}")
async def get_draft(draft_id: UUID, request: Request) -> DraftOut:
    """Return a draft with its live price and checkout readiness."""
    drafts = _drafts(request)
    return _draft_out(drafts, drafts.get_draft(draft_id))


@router.patch("/drafts/{draft_id}")
async def update_draft(
    draft_id: UUID, update: DraftUpdate, request: Request
) -> DraftOut:
    """Update title, theme and effects."""
    drafts = _drafts(request)
    draft = drafts.update_box(draft_id, **update.model_dump(exclude_unset=True))
    return _draft_out(drafts, draft)


@router.get("/drafts/{draft_id}/price")
async def get_price(draft_id: UUID, request: Request) -> QuoteOut:
    """Price the current state of a draft."""
    return QuoteOut.from_quote(_drafts(request).quote(draft_id))


@router.post("/drafts/{draft_id}/cards", status_code=status.HTTP_201_CREATED)
async def add_card(draft_id: UUID, request: Request) -> DraftOut:
    """Append a blank card."""
    drafts = _drafts(request)
    drafts.add_card(draft_id)
    return _draft_out(drafts, drafts.get_draft(draft_id))


@router.patch("/drafts/{draft_id}/cards/{card_id}")
async def update_card(
    draft_id: UUID, card_id: str, update: CardUpdate, request: Request
) -> DraftOut:
    """Edit a card's message or unlock delay."""
    drafts = _drafts(request)
    drafts.update_card(
        draft_id,
        card_id,
        message=update.message,
        unlock_delay_days=update.unlock_delay_days,
    )
    return _draft_out(drafts, drafts.get_draft(draft_id))


@router.delete("/drafts/{draft_id}/cards/{card_id}")
async def remove_card(draft_id: UUID, card_id: str, request: Request) -> DraftOut:
    """Remove a card."""
    drafts = _drafts(request)
    return _draft_out(drafts, drafts.remove_card(draft_id, card_id))


@router.put("/drafts/{draft_id}/cards/{card_id}/{kind}")
async def upload_media(
    draft_id: UUID,
    card_id: str,
    kind: MediaKind,
    request: Request,
    file: UploadFile = File(...),
) -> DraftOut:
    """Upload an image or audio clip for a card."""
    container: AppContainer = request.app.state.container
    content = await file.read()
    await run_in_threadpool(
        container.media_service.upload,
        draft_id,
        card_id,
        kind,
        content=content,
        content_type=file.content_type,
        filename=file.filename,
    )
    drafts = container.draft_service
    return _draft_out(drafts, drafts.get_draft(draft_id))


@router.delete("/drafts/{draft_id}/cards/{card_id}/{kind}")
async def remove_media(
    draft_id: UUID, card_id: str, kind: MediaKind, request: Request
) -> DraftOut:
    """Detach media from a card."""
    drafts = _drafts(request)
    drafts.clear_media(draft_id, card_id, kind)
    return _draft_out(drafts, drafts.get_draft(draft_id))
