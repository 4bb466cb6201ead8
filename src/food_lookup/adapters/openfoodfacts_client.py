"""Open Food Facts API client used as the fallback product source."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from food_lookup.domain.errors import ApiError, NetworkError
from food_lookup.domain.products import NormalizedProduct, ProductSource
from food_lookup.services.normalization import parse_amount

_SOURCE = "openfoodfacts"
_SEARCH_FIELDS = (
    "code,product_name,product_name_en,brands,nutriments,image_url,image_front_url"
)
_USER_AGENT = "food-lookup/0.1 (nutrition tracker)"

_logger = logging.getLogger(__name__)


class OpenFoodFactsClient(Protocol):
    """Interface for the fallback product source."""

    async def search_products(self, query: str, limit: int = 20) -> list[NormalizedProduct]:
        """Search products by free text."""

    async def get_product_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Look up a product by barcode."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 8.0

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 8.0
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": _USER_AGENT}),
            timeout_seconds=timeout_seconds,
        )

    async def search_products(self, query: str, limit: int = 20) -> list[NormalizedProduct]:
        """Search products, keeping only named ones with calorie data."""
        query = query.strip()
        if len(query) < 2:
            return []
        response = await self._get(
            f"{self.base_url}/cgi/search.pl",
            params={
                "search_terms": query,
                "page_size": str(limit),
                "json": "1",
                "fields": _SEARCH_FIELDS,
            },
        )
        if response.is_error:
            raise ApiError(_SOURCE, response.status_code, response.text)
        payload = _json_object(response)
        raw_products = payload.get("products")
        if not isinstance(raw_products, list):
            raw_products = []
        products = [
            transform_product(item)
            for item in raw_products
            if isinstance(item, dict) and _product_name(item)
        ]
        results = [product for product in products if product.calories_per_100g > 0]
        _logger.info(
            "Open Food Facts search completed: query=%s results=%s", query, len(results)
        )
        return results

    async def get_product_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Look up a product by barcode; unknown barcodes return None."""
        barcode = barcode.strip()
        if not barcode:
            return None
        response = await self._get(f"{self.base_url}/api/v0/product/{barcode}.json")
        if response.status_code == 404:
            _logger.info("Open Food Facts has no product: barcode=%s", barcode)
            return None
        if response.is_error:
            raise ApiError(_SOURCE, response.status_code, response.text)
        payload = _json_object(response)
        product = payload.get("product")
        if payload.get("status") == 0 or not isinstance(product, dict):
            _logger.info("Open Food Facts has no product: barcode=%s", barcode)
            return None
        if not product.get("code"):
            product = {**product, "code": barcode}
        return transform_product(product)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get(
        self, url: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        try:
            return await self.http_client.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except httpx.RequestError as exc:
            _logger.error("Open Food Facts transport error: url=%s error=%s", url, exc)
            raise NetworkError(f"Open Food Facts transport error: {exc}", _SOURCE) from exc


def transform_product(product: dict[str, object]) -> NormalizedProduct:
    """Map an Open Food Facts product to a normalized product."""
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}
    code = product.get("code")
    code = str(code) if isinstance(code, str | int) and code else None
    brand = product.get("brands")
    brand = brand.strip() if isinstance(brand, str) else ""
    image_url = product.get("image_url") or product.get("image_front_url")
    return NormalizedProduct(
        name=_product_name(product) or "Unknown",
        brand=brand or None,
        calories_per_100g=max(parse_amount(nutriments.get("energy-kcal_100g")), 0.0),
        protein_per_100g=max(parse_amount(nutriments.get("proteins_100g")), 0.0),
        fats_per_100g=max(parse_amount(nutriments.get("fat_100g")), 0.0),
        carbs_per_100g=max(parse_amount(nutriments.get("carbohydrates_100g")), 0.0),
        source=ProductSource.SECONDARY,
        source_id=code,
        barcode=code,
        image_url=image_url if isinstance(image_url, str) else None,
    )


def _product_name(product: dict[str, object]) -> str | None:
    for key in ("product_name", "product_name_en"):
        value = product.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _json_object(response: httpx.Response) -> dict[str, object]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ApiError(_SOURCE, response.status_code, response.text) from exc
    if not isinstance(payload, dict):
        raise ApiError(_SOURCE, response.status_code, response.text)
    return payload
