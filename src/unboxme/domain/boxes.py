"""Domain models for gift boxes and their cards."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

DEFAULT_EMOJI = "🎁"


class Theme(StrEnum):
    """Visual style of a gift box."""

    PURPLE_PINK = "purple-pink"
    BLUE_TEAL = "blue-teal"
    WARM_SUNSET = "warm-sunset"


class MediaKind(StrEnum):
    """Kinds of media a card can carry."""

    IMAGE = "image"
    AUDIO = "audio"


@dataclass(frozen=True)
class GiftCard:
    """A single card inside a gift box."""

    id: str
    message: str = ""
    image_url: str | None = None
    audio_url: str | None = None
    unlock_delay_days: int = 0

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_url)

    def media_url(self, kind: MediaKind) -> str | None:
        """Return the attached URL for a media kind."""
        return self.image_url if kind is MediaKind.IMAGE else self.audio_url


def new_card_id() -> str:
    """Return a fresh card identifier."""
    return uuid4().hex[:12]


@dataclass
class GiftBoxDraft:
    """Mutable draft owned by the builder until checkout completes."""

    id: UUID
    title: str = ""
    cards: list[GiftCard] = field(default_factory=list)
    theme: Theme = Theme.PURPLE_PINK
    emoji: str = DEFAULT_EMOJI
    has_confetti: bool = False
    has_background_music: bool = False
    spotify_embed: str | None = None
    pending_uploads: set[tuple[str, MediaKind]] = field(default_factory=set)

    @classmethod
    def blank(cls) -> "GiftBoxDraft":
        """Create an empty draft holding one blank card."""
        return cls(id=uuid4(), cards=[GiftCard(id=new_card_id())])

    def find_card(self, card_id: str) -> int | None:
        """Return the position of a card, if present."""
        for index, card in enumerate(self.cards):
            if card.id == card_id:
                return index
        return None


@dataclass(frozen=True)
class GiftBoxRecord:
    """Purchased gift box, immutable after creation."""

    slug: str
    created_at: datetime
    title: str
    cards: tuple[GiftCard, ...]
    theme: Theme
    emoji: str
    has_confetti: bool
    has_background_music: bool
    spotify_embed: str | None
    payment_reference: str | None = None
    buyer_email: str | None = None
