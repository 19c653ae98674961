"""Viewer endpoints for purchased gift boxes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

from unboxme.api.schemas import BoxOut, CardOut

if TYPE_CHECKING:
    from unboxme.containers import AppContainer

router = APIRouter(prefix="/boxes", tags=["viewer"])


@router.get("/{slug}")
async def view_box(slug: str, request: Request) -> BoxOut:
    """Return the box with each card's lock state and countdown."""
    container: AppContainer = request.app.state.container
    return BoxOut.from_view(container.viewer_service.view_box(slug))


@router.post("/{slug}/cards/{index}/reveal")
async def reveal_card(slug: str, index: int, request: Request) -> CardOut:
    """Open an unlocked card."""
    container: AppContainer = request.app.state.container
    return CardOut.from_card(container.viewer_service.reveal_card(slug, index))
