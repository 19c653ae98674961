"""Supabase-backed repository for purchased gift boxes."""

from dataclasses import dataclass
from datetime import UTC, datetime

from postgrest.exceptions import APIError
from supabase import Client

from unboxme.domain.boxes import GiftBoxDraft, GiftBoxRecord, GiftCard, Theme
from unboxme.domain.errors import UpstreamFailure
from unboxme.domain.slugs import resolve_unique_slug, slugify
from unboxme.services.checkout import GiftBoxRepository

_TABLE = "gift_boxes"
_UNIQUE_VIOLATION = "23505"
_SLUG_ATTEMPTS = 3


@dataclass
class SupabaseGiftBoxRepository(GiftBoxRepository):
    """Supabase implementation for gift box persistence.

    ``created_at`` is left to the table default so the write time is always
    the database's clock, never the caller's. The table is expected to carry
    unique constraints on ``slug`` and ``payment_reference`` and a
    ``timestamptz`` ``created_at`` column.
    """

    client: Client

    def create_box(
        self,
        draft: GiftBoxDraft,
        payment_reference: str,
        buyer_email: str | None,
    ) -> GiftBoxRecord:
        """Insert a gift box row with a collision-free slug and return it.

        A concurrent insert for the same payment returns the row that won. A
        slug taken between lookup and insert is resolved again a few times.
        """
        for _ in range(_SLUG_ATTEMPTS):
            slug = self._unique_slug(slugify(draft.title))
            try:
                response = (
                    self.client.table(_TABLE)
                    .insert(_box_payload(draft, slug, payment_reference, buyer_email))
                    .execute()
                )
            except APIError as exc:
                conflict = _unique_conflict(exc)
                if conflict == "payment_reference":
                    existing = self.get_by_payment_reference(payment_reference)
                    if existing is not None:
                        return existing
                if conflict != "slug":
                    raise UpstreamFailure(
                        f"Failed to create gift box: {exc.message}"
                    ) from exc
                continue
            if not response.data:
                raise UpstreamFailure("Failed to create gift box")
            return _parse_box(response.data[0])
        raise UpstreamFailure("Failed to create gift box: slug kept colliding")

    def get_by_slug(self, slug: str) -> GiftBoxRecord | None:
        """Return a gift box by slug, if present."""
        response = (
            self.client.table(_TABLE).select("*").eq("slug", slug).limit(1).execute()
        )
        if not response.data:
            return None
        return _parse_box(response.data[0])

    def get_by_payment_reference(self, payment_reference: str) -> GiftBoxRecord | None:
        """Return the gift box created for a payment, if any."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("payment_reference", payment_reference)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_box(response.data[0])

    def _unique_slug(self, base: str) -> str:
        response = (
            self.client.table(_TABLE).select("slug").like("slug", f"{base}%").execute()
        )
        taken = [str(row["slug"]) for row in response.data or []]
        return resolve_unique_slug(base, taken)


def _box_payload(
    draft: GiftBoxDraft,
    slug: str,
    payment_reference: str,
    buyer_email: str | None,
) -> dict[str, object]:
    return {
        "slug": slug,
        "title": draft.title.strip(),
        "theme": str(draft.theme),
        "emoji": draft.emoji,
        "has_confetti": draft.has_confetti,
        "has_background_music": draft.has_background_music,
        "spotify_embed": draft.spotify_embed,
        "cards": [_card_payload(card) for card in draft.cards],
        "payment_reference": payment_reference,
        "buyer_email": buyer_email,
    }


def _unique_conflict(exc: APIError) -> str | None:
    """Name the column behind a unique violation, if that is what failed."""
    if exc.code != _UNIQUE_VIOLATION:
        return None
    text = f"{exc.message or ''} {exc.details or ''}"
    if "payment_reference" in text:
        return "payment_reference"
    if "slug" in text:
        return "slug"
    return None


def _parse_timestamp(value: object) -> datetime:
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _card_payload(card: GiftCard) -> dict[str, object]:
    return {
        "id": card.id,
        "message": card.message,
        "image_url": card.image_url,
        "audio_url": card.audio_url,
        "unlock_delay_days": max(card.unlock_delay_days, 0),
    }


def _parse_card(row: dict[str, object]) -> GiftCard:
    return GiftCard(
        id=str(row.get("id", "")),
        message=str(row.get("message", "")),
        image_url=row.get("image_url"),
        audio_url=row.get("audio_url"),
        unlock_delay_days=int(row.get("unlock_delay_days") or 0),
    )


def _parse_box(row: dict[str, object]) -> GiftBoxRecord:
    """Parse a gift box row into a domain model."""
    return GiftBoxRecord(
        slug=str(row["slug"]),
        created_at=_parse_timestamp(row["created_at"]),
        title=str(row.get("title", "")),
        cards=tuple(_parse_card(card) for card in row.get("cards") or []),
        theme=Theme(row.get("theme") or Theme.PURPLE_PINK),
        emoji=str(row.get("emoji") or ""),
        has_confetti=bool(row.get("has_confetti")),
        has_background_music=bool(row.get("has_background_music")),
        spotify_embed=row.get("spotify_embed"),
        payment_reference=row.get("payment_reference"),
        buyer_email=row.get("buyer_email"),
    )
