"""Product lookup across the local store, FatSecret and Open Food Facts."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Protocol, TypeVar

from food_lookup.adapters.fatsecret_client import MIN_QUERY_LENGTH, FatSecretClient
from food_lookup.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_lookup.domain.errors import ApiError, NetworkError, ProductSourceError
from food_lookup.domain.lookup import FallbackEvent, FallbackReason, LookupTier
from food_lookup.domain.products import NormalizedProduct, ProductSource
from food_lookup.services.cache import SearchCache
from food_lookup.services.lookup_events import LoggingLookupEventSink, LookupEventSink
from food_lookup.services.query_variants import search_variants

_T = TypeVar("_T")

_logger = logging.getLogger(__name__)


class ProductRepository(Protocol):
    """Persistence interface for previously seen and user-submitted products."""

    def search_products(self, query: str, limit: int) -> list[NormalizedProduct]:
        """Search products by name or brand."""

    def get_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Return a product by barcode, if present."""

    def save_product(self, product: NormalizedProduct) -> str | None:
        """Insert a product on first use and return its id."""

    def increment_usage(self, product_id: str) -> None:
        """Increment the usage counter for a product."""


@dataclass
class ProductLookupService:
    """Resolves products through the local store, the cache and external sources.

    Search order: local store, then the search cache, then FatSecret (retried
    on transient failures), then Open Food Facts. Local results always come
    first in the answer. Source outages are logged and never raised.
    """

    repository: ProductRepository
    cache: SearchCache
    primary_client: FatSecretClient | None
    secondary_client: OpenFoodFactsClient | None
    event_sink: LookupEventSink = field(default_factory=LoggingLookupEventSink)
    max_results: int = 20
    fallback_enabled: bool = True
    translate_queries: bool = True
    retry_attempts: int = 2
    retry_delay_seconds: float = 0.5

    async def search_products(
        self, query: str, limit: int | None = None
    ) -> list[NormalizedProduct]:
        """Search products by free text."""
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []
        if not limit or limit <= 0 or limit > self.max_results:
            limit = self.max_results

        local_results = self._search_local(query, limit)
        if len(local_results) >= limit:
            _logger.info(
                "Product search served from local store: query=%s results=%s",
                query,
                len(local_results),
            )
            return local_results[:limit]

        external = await self._search_external(query, limit - len(local_results))
        combined = _merge(local_results, external, limit)
        _logger.info(
            "Product search completed: query=%s total=%s local=%s external=%s",
            query,
            len(combined),
            len(local_results),
            len(external),
        )
        return combined

    async def get_product_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Find a product by barcode."""
        barcode = barcode.strip()
        if not barcode:
            return None

        local_product = self._barcode_local(barcode)
        if local_product is not None:
            _logger.info(
                "Barcode found in local store: barcode=%s product_id=%s",
                barcode,
                local_product.id,
            )
            return local_product

        product = await self._barcode_primary(barcode)
        if product is None:
            product = await self._barcode_secondary(barcode)
        if product is None:
            _logger.info("Barcode not found in any source: barcode=%s", barcode)
            return None
        return self._persist(product)

    def reset(self) -> None:
        """Drop cached search results."""
        self.cache.clear()

    async def _search_external(
        self, query: str, limit: int
    ) -> list[NormalizedProduct]:
        cached = self.cache.get(query)
        if cached is not None:
            _logger.debug("Search cache hit: query=%s results=%s", query, len(cached))
            return cached

        # Primary pages are cached at full size; the merge trims them per call.
        primary_results = await self._search_primary(query, self.max_results)
        if primary_results:
            persisted = [self._persist(product) for product in primary_results]
            self.cache.set(query, persisted)
            return persisted
        return await self._search_secondary(query, limit)

    async def _search_primary(self, query: str, limit: int) -> list[NormalizedProduct]:
        client = self.primary_client
        if client is None:
            self._record(LookupTier.PRIMARY, FallbackReason.DISABLED, query=query)
            return []

        variants = search_variants(query) if self.translate_queries else [query]
        try:
            for variant in variants:
                results = await self._call_with_retry(
                    lambda variant=variant: client.search_foods(variant, limit, 0),
                    action=f"search:{variant}",
                )
                if results:
                    return results
        except ProductSourceError as exc:
            _logger.warning("FatSecret search failed: query=%s error=%s", query, exc)
            self._record(LookupTier.PRIMARY, FallbackReason.API_ERROR, query=query)
            return []

        self._record(LookupTier.PRIMARY, FallbackReason.NO_RESULTS, query=query)
        return []

    async def _search_secondary(
        self, query: str, limit: int
    ) -> list[NormalizedProduct]:
        client = self.secondary_client
        if not self.fallback_enabled or client is None:
            return []
        try:
            results = await client.search_products(query, limit)
        except ProductSourceError as exc:
            _logger.error(
                "Both product sources failed, returning local results only: "
                "query=%s error=%s",
                query,
                exc,
            )
            self._record(LookupTier.SECONDARY, FallbackReason.API_ERROR, query=query)
            return []
        if not results:
            self._record(LookupTier.SECONDARY, FallbackReason.NO_RESULTS, query=query)
            return []
        return [self._persist(product) for product in results]

    async def _barcode_primary(self, barcode: str) -> NormalizedProduct | None:
        client = self.primary_client
        if client is None:
            self._record(LookupTier.PRIMARY, FallbackReason.DISABLED, barcode=barcode)
            return None
        try:
            product = await self._call_with_retry(
                lambda: client.find_food_by_barcode(barcode),
                action=f"barcode:{barcode}",
            )
        except ProductSourceError as exc:
            _logger.warning(
                "FatSecret barcode lookup failed: barcode=%s error=%s", barcode, exc
            )
            self._record(LookupTier.PRIMARY, FallbackReason.API_ERROR, barcode=barcode)
            return None
        if product is None:
            self._record(LookupTier.PRIMARY, FallbackReason.NO_RESULTS, barcode=barcode)
            return None
        return replace(product, barcode=barcode)

    async def _barcode_secondary(self, barcode: str) -> NormalizedProduct | None:
        client = self.secondary_client
        if not self.fallback_enabled or client is None:
            return None
        try:
            product = await client.get_product_by_barcode(barcode)
        except ProductSourceError as exc:
            _logger.error(
                "Open Food Facts barcode lookup failed: barcode=%s error=%s",
                barcode,
                exc,
            )
            self._record(
                LookupTier.SECONDARY, FallbackReason.API_ERROR, barcode=barcode
            )
            return None
        if product is None:
            self._record(
                LookupTier.SECONDARY, FallbackReason.NO_RESULTS, barcode=barcode
            )
        return product

    def _search_local(self, query: str, limit: int) -> list[NormalizedProduct]:
        try:
            return self.repository.search_products(query, limit)
        except Exception:
            _logger.exception("Local product search failed: query=%s", query)
            return []

    def _barcode_local(self, barcode: str) -> NormalizedProduct | None:
        try:
            return self.repository.get_by_barcode(barcode)
        except Exception:
            _logger.exception("Local barcode lookup failed: barcode=%s", barcode)
            return None

    def _persist(self, product: NormalizedProduct) -> NormalizedProduct:
        """Save an external product locally, attaching the stored id."""
        try:
            product_id = self.repository.save_product(product)
        except Exception:
            _logger.exception(
                "Failed to save product locally: source=%s source_id=%s",
                product.source,
                product.source_id,
            )
            return product
        if product_id is None:
            return product
        return replace(product, id=product_id)

    def _record(
        self,
        tier: LookupTier,
        reason: FallbackReason,
        *,
        query: str | None = None,
        barcode: str | None = None,
    ) -> None:
        self.event_sink.record_fallback(
            FallbackEvent(
                tier=tier,
                reason=reason,
                source=self._next_source(tier),
                query=query,
                barcode=barcode,
            )
        )

    def _next_source(self, tier: LookupTier) -> str:
        if (
            tier is LookupTier.PRIMARY
            and self.fallback_enabled
            and self.secondary_client is not None
        ):
            return str(ProductSource.SECONDARY)
        return str(ProductSource.LOCAL)

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[_T]], *, action: str
    ) -> _T:
        """Call FatSecret, retrying transient failures with exponential backoff."""
        attempt = 0
        while True:
            try:
                return await func()
            except (ApiError, NetworkError) as exc:
                attempt += 1
                status_code = exc.status_code if isinstance(exc, ApiError) else "n/a"
                _logger.warning(
                    "FatSecret %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    status_code,
                    exc,
                )
                if not _is_transient(exc) or attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds * 2 ** (attempt - 1))


def _is_transient(exc: ProductSourceError) -> bool:
    if isinstance(exc, NetworkError):
        return True
    return isinstance(exc, ApiError) and exc.is_transient


def _merge(
    local: list[NormalizedProduct], external: list[NormalizedProduct], limit: int
) -> list[NormalizedProduct]:
    """Append external products that the local results do not already hold."""
    merged = list(local)
    seen_identities = {item.identity() for item in local} - {None}
    seen_barcodes = {item.barcode for item in local if item.barcode}
    for product in external:
        identity = product.identity()
        if identity is not None and identity in seen_identities:
            continue
        if product.barcode and product.barcode in seen_barcodes:
            continue
        merged.append(product)
        if identity is not None:
            seen_identities.add(identity)
        if product.barcode:
            seen_barcodes.add(product.barcode)
    return merged[:limit]
