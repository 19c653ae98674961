"""Time-gated card reveal rules.

Every function here is a pure function of the box creation time, the card's
unlock delay and an injected ``now``. The first card of a box is the opening
card and is never gated.
"""

import math
from datetime import datetime, timedelta
from enum import StrEnum

HOURS_PER_DAY = 24
_HOUR = timedelta(hours=1)


class CardLockState(StrEnum):
    """Eligibility state of a card for a viewer."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"


def required_delay(unlock_delay_days: int) -> timedelta:
    """Return the wait configured for a card; negative delays count as zero."""
    return timedelta(hours=max(unlock_delay_days, 0) * HOURS_PER_DAY)


def unlocks_at(created_at: datetime, unlock_delay_days: int) -> datetime:
    """Return the moment a gated card becomes revealable."""
    return created_at + required_delay(unlock_delay_days)


def can_reveal(
    created_at: datetime, unlock_delay_days: int, now: datetime, card_index: int
) -> bool:
    """Return whether the card at ``card_index`` may be revealed at ``now``."""
    if card_index == 0:
        return True
    return now - created_at >= required_delay(unlock_delay_days)


def remaining_time(
    created_at: datetime,
    unlock_delay_days: int,
    now: datetime,
    card_index: int | None = None,
) -> timedelta | None:
    """Return the time left before a card unlocks, or None once revealable."""
    index = 1 if card_index is None else card_index
    if can_reveal(created_at, unlock_delay_days, now, index):
        return None
    return required_delay(unlock_delay_days) - (now - created_at)


def card_state(
    created_at: datetime, unlock_delay_days: int, now: datetime, card_index: int
) -> CardLockState:
    """Return the lock state of a card at ``now``."""
    if can_reveal(created_at, unlock_delay_days, now, card_index):
        return CardLockState.UNLOCKED
    return CardLockState.LOCKED


def format_remaining(remaining: timedelta | None) -> str | None:
    """Render a remaining duration as whole days and hours for display.

    Partial hours round up so a locked card never reads "0 hours".
    """
    if remaining is None:
        return None
    total_hours = max(math.ceil(remaining / _HOUR), 1)
    days, hours = divmod(total_hours, HOURS_PER_DAY)
    parts = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    return f"{', '.join(parts)} remaining"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
