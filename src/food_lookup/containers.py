"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
from supabase import create_client

from food_lookup.adapters.fatsecret_auth import FatSecretTokenManager
from food_lookup.adapters.fatsecret_client import HttpxFatSecretClient
from food_lookup.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from food_lookup.adapters.supabase_product_repository import (
    SupabaseProductRepository,
)
from food_lookup.config import Settings, primary_source_enabled
from food_lookup.services.cache import InMemorySearchCache
from food_lookup.services.lookup_events import LoggingLookupEventSink
from food_lookup.services.products import ProductLookupService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    product_service: ProductLookupService
    search_cache: InMemorySearchCache
    token_manager: FatSecretTokenManager | None
    close_resources: Callable[[], Awaitable[None]]
    reset_state: Callable[[], None]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    repository = SupabaseProductRepository(supabase_client)
    search_cache = InMemorySearchCache()

    fatsecret_http = httpx.AsyncClient()
    token_manager: FatSecretTokenManager | None = None
    fatsecret_client: HttpxFatSecretClient | None = None
    if primary_source_enabled(resolved_settings):
        timeout_seconds = resolved_settings.fatsecret_timeout_ms / 1000
        token_manager = FatSecretTokenManager(
            client_id=resolved_settings.fatsecret_client_id,
            client_secret=resolved_settings.fatsecret_client_secret,
            token_url=resolved_settings.fatsecret_token_url,
            http_client=fatsecret_http,
            timeout_seconds=timeout_seconds,
        )
        fatsecret_client = HttpxFatSecretClient(
            base_url=resolved_settings.fatsecret_base_url,
            token_provider=token_manager,
            http_client=fatsecret_http,
            timeout_seconds=timeout_seconds,
            region=resolved_settings.fatsecret_region,
            language=resolved_settings.fatsecret_language,
        )

    openfoodfacts_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.openfoodfacts_base_url,
        timeout_seconds=resolved_settings.openfoodfacts_timeout_ms / 1000,
    )
    product_service = ProductLookupService(
        repository=repository,
        cache=search_cache,
        primary_client=fatsecret_client,
        secondary_client=openfoodfacts_client,
        event_sink=LoggingLookupEventSink(),
        max_results=resolved_settings.fatsecret_max_results,
        fallback_enabled=resolved_settings.fatsecret_fallback_enabled,
        translate_queries=resolved_settings.translate_queries,
    )

    async def close_resources() -> None:
        await fatsecret_http.aclose()
        await openfoodfacts_client.close()

    def reset_state() -> None:
        product_service.reset()
        if token_manager is not None:
            token_manager.reset()

    return AppContainer(
        settings=resolved_settings,
        product_service=product_service,
        search_cache=search_cache,
        token_manager=token_manager,
        close_resources=close_resources,
        reset_state=reset_state,
    )
