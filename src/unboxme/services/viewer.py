"""Viewer service: loads purchased boxes and applies reveal rules."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from unboxme.domain.boxes import GiftBoxRecord, GiftCard
from unboxme.domain.errors import CardLocked, NotFound
from unboxme.domain.unlock import (
    CardLockState,
    card_state,
    format_remaining,
    remaining_time,
    unlocks_at,
)
from unboxme.services.cache import utc_now
from unboxme.services.checkout import GiftBoxRepository

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardView:
    """What a viewer sees for one card at a point in time."""

    index: int
    state: CardLockState
    unlocks_at: datetime
    remaining: timedelta | None
    countdown: str | None
    card: GiftCard | None

    @property
    def eligible(self) -> bool:
        return self.state is CardLockState.UNLOCKED


@dataclass(frozen=True)
class BoxView:
    """A purchased box as seen by a viewer at ``viewed_at``."""

    box: GiftBoxRecord
    viewed_at: datetime
    cards: list[CardView]


@dataclass
class ViewerService:
    """Read-only access to purchased boxes for recipients."""

    repository: GiftBoxRepository
    clock: Callable[[], datetime] = utc_now

    def get_box(self, slug: str) -> GiftBoxRecord:
        """Return a box by slug or raise NotFound."""
        box = self.repository.get_by_slug(slug)
        if box is None:
            _logger.info("Gift box not found: slug=%s", slug)
            raise NotFound(f"Gift box {slug} not found")
        return box

    def view_box(self, slug: str, now: datetime | None = None) -> BoxView:
        """Evaluate every card's lock state independently at ``now``."""
        box = self.get_box(slug)
        at = now or self.clock()
        return BoxView(
            box=box,
            viewed_at=at,
            cards=[_card_view(box, index, at) for index in range(len(box.cards))],
        )

    def reveal_card(
        self, slug: str, card_index: int, now: datetime | None = None
    ) -> GiftCard:
        """Open an eligible card; locked cards raise CardLocked."""
        box = self.get_box(slug)
        if not 0 <= card_index < len(box.cards):
            raise NotFound(f"Card {card_index + 1} not found in {slug}")
        view = _card_view(box, card_index, now or self.clock())
        if view.card is None:
            raise CardLocked(card_index, view.remaining or timedelta(0))
        return view.card


def _card_view(box: GiftBoxRecord, index: int, now: datetime) -> CardView:
    card = box.cards[index]
    state = card_state(box.created_at, card.unlock_delay_days, now, index)
    remaining = remaining_time(box.created_at, card.unlock_delay_days, now, index)
    return CardView(
        index=index,
        state=state,
        unlocks_at=(
            box.created_at
            if index == 0
            else unlocks_at(box.created_at, card.unlock_delay_days)
        ),
        remaining=remaining,
        countdown=format_remaining(remaining),
        card=card if state is CardLockState.UNLOCKED else None,
    )
