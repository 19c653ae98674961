"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from unboxme.config import Settings
from unboxme.containers import AppContainer
from unboxme.domain.boxes import GiftBoxDraft, GiftBoxRecord
from unboxme.domain.slugs import resolve_unique_slug, slugify
from unboxme.services.cache import InMemoryCache
from unboxme.services.checkout import (
    CheckoutService,
    GiftBoxRepository,
    PaymentClient,
    PaymentIntent,
)
from unboxme.services.drafts import DraftService
from unboxme.services.media import MediaService, MediaStorage
from unboxme.services.viewer import ViewerService

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = T0

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class InMemoryGiftBoxRepository(GiftBoxRepository):
    """In-memory gift box repository that stamps rows with its own clock."""

    clock: Callable[[], datetime] = lambda: T0
    boxes: dict[str, GiftBoxRecord] = field(default_factory=dict)

    def create_box(
        self,
        draft: GiftBoxDraft,
        payment_reference: str,
        buyer_email: str | None,
    ) -> GiftBoxRecord:
        slug = resolve_unique_slug(slugify(draft.title), self.boxes)
        record = GiftBoxRecord(
            slug=slug,
            created_at=self.clock(),
            title=draft.title.strip(),
            cards=tuple(draft.cards),
            theme=draft.theme,
            emoji=draft.emoji,
            has_confetti=draft.has_confetti,
            has_background_music=draft.has_background_music,
            spotify_embed=draft.spotify_embed,
            payment_reference=payment_reference,
            buyer_email=buyer_email,
        )
        self.boxes[slug] = record
        return record

    def get_by_slug(self, slug: str) -> GiftBoxRecord | None:
        return self.boxes.get(slug)

    def get_by_payment_reference(self, payment_reference: str) -> GiftBoxRecord | None:
        for box in self.boxes.values():
            if box.payment_reference == payment_reference:
                return box
        return None


@dataclass
class FakePaymentClient(PaymentClient):
    """Fake payment processor keeping intents in memory."""

    intents: dict[str, PaymentIntent] = field(default_factory=dict)
    created: list[dict[str, object]] = field(default_factory=list)
    retrieved: list[str] = field(default_factory=list)

    async def create_payment_intent(
        self,
        amount_minor: int,
        currency: str,
        email: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        intent_id = f"pi_{len(self.intents) + 1}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            amount_minor=amount_minor,
            currency=currency,
            client_secret=f"{intent_id}_secret",
            metadata=metadata,
        )
        self.intents[intent_id] = intent
        self.created.append(
            {"amount_minor": amount_minor, "email": email, "metadata": metadata}
        )
        return intent

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        self.retrieved.append(payment_intent_id)
        return self.intents[payment_intent_id]

    def settle(self, payment_intent_id: str, status: str = "succeeded") -> None:
        intent = self.intents[payment_intent_id]
        self.intents[payment_intent_id] = PaymentIntent(
            id=intent.id,
            status=status,
            amount_minor=intent.amount_minor,
            currency=intent.currency,
            client_secret=intent.client_secret,
            metadata=intent.metadata,
        )


@dataclass
class InMemoryMediaStorage(MediaStorage):
    """In-memory object store returning fake public URLs."""

    objects: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    fail: bool = False

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        if self.fail:
            raise ConnectionError("storage unavailable")
        self.objects[path] = (content, content_type)
        return f"https://cdn.test/{path}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        stripe_secret_key="sk_test_key",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def draft_service() -> DraftService:
    return DraftService(cache=InMemoryCache())


@pytest.fixture
def box_repository(clock: FakeClock) -> InMemoryGiftBoxRepository:
    return InMemoryGiftBoxRepository(clock=clock)


@pytest.fixture
def payment_client() -> FakePaymentClient:
    return FakePaymentClient()


@pytest.fixture
def media_storage() -> InMemoryMediaStorage:
    return InMemoryMediaStorage()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    clock: FakeClock,
    draft_service: DraftService,
    box_repository: InMemoryGiftBoxRepository,
    payment_client: FakePaymentClient,
    media_storage: InMemoryMediaStorage,
) -> AppContainer:
    media_service = MediaService(storage=media_storage, drafts=draft_service)
    checkout_service = CheckoutService(
        drafts=draft_service,
        payments=payment_client,
        repository=box_repository,
        currency=settings.currency,
        public_base_url=settings.public_base_url,
    )
    viewer_service = ViewerService(box_repository, clock=clock)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        draft_service=draft_service,
        media_service=media_service,
        checkout_service=checkout_service,
        viewer_service=viewer_service,
        close_resources=close_resources,
    )


def fill_draft(
    drafts: DraftService, title: str = "Happy Birthday", messages: int = 1
) -> GiftBoxDraft:
    """Create a draft that passes submission checks."""
    draft = drafts.create_draft()
    drafts.update_box(draft.id, title=title)
    for _ in range(messages - 1):
        drafts.add_card(draft.id)
    for index, card in enumerate(list(draft.cards)):
        drafts.update_card(draft.id, card.id, message=f"Message {index + 1}")
    return drafts.get_draft(draft.id)
