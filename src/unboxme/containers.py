"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from unboxme.adapters.stripe_client import HttpxStripeClient
from unboxme.adapters.supabase_box_repository import SupabaseGiftBoxRepository
from unboxme.adapters.supabase_media_storage import SupabaseMediaStorage
from unboxme.config import Settings
from unboxme.services.cache import InMemoryCache
from unboxme.services.checkout import CheckoutService
from unboxme.services.drafts import DraftService
from unboxme.services.media import MediaService
from unboxme.services.viewer import ViewerService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    draft_service: DraftService
    media_service: MediaService
    checkout_service: CheckoutService
    viewer_service: ViewerService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    box_repository = SupabaseGiftBoxRepository(supabase_client)
    media_storage = SupabaseMediaStorage(
        client=supabase_client, bucket=resolved_settings.supabase_storage_bucket
    )
    stripe_client = HttpxStripeClient.create(
        secret_key=resolved_settings.stripe_secret_key,
        base_url=resolved_settings.stripe_base_url,
    )
    draft_service = DraftService(
        cache=InMemoryCache(),
        max_cards=resolved_settings.max_cards,
        max_unlock_delay_days=resolved_settings.max_unlock_delay_days,
        ttl_seconds=resolved_settings.draft_ttl_seconds,
    )
    media_service = MediaService(
        storage=media_storage,
        drafts=draft_service,
        max_upload_bytes=resolved_settings.max_upload_bytes,
    )
    checkout_service = CheckoutService(
        drafts=draft_service,
        payments=stripe_client,
        repository=box_repository,
        currency=resolved_settings.currency,
        public_base_url=resolved_settings.public_base_url,
    )
    viewer_service = ViewerService(box_repository)

    async def close_resources() -> None:
        await stripe_client.close()

    return AppContainer(
        settings=resolved_settings,
        draft_service=draft_service,
        media_service=media_service,
        checkout_service=checkout_service,
        viewer_service=viewer_service,
        close_resources=close_resources,
    )
