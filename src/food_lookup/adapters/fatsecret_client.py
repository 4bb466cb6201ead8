"""FatSecret Platform API client."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from pydantic import ValidationError

from food_lookup.adapters.fatsecret_auth import TokenProvider
from food_lookup.adapters.fatsecret_models import FatSecretFood, as_list
from food_lookup.domain.errors import ApiError, NetworkError
from food_lookup.domain.products import NormalizedProduct
from food_lookup.services.normalization import normalize_food

_SOURCE = "fatsecret"
MIN_QUERY_LENGTH = 2

_logger = logging.getLogger(__name__)


class FatSecretClient(Protocol):
    """Interface for FatSecret lookups returning normalized products."""

    async def search_foods(
        self, query: str, limit: int = 20, offset: int = 0
    ) -> list[NormalizedProduct]:
        """Search foods by free text."""

    async def get_food_by_id(self, food_id: str) -> NormalizedProduct | None:
        """Fetch a single food by its FatSecret id."""

    async def find_food_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Resolve a barcode to a food."""


@dataclass
class HttpxFatSecretClient(FatSecretClient):
    """HTTPX-backed FatSecret client."""

    base_url: str
    token_provider: TokenProvider
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0
    region: str | None = None
    language: str | None = None

    async def search_foods(
        self, query: str, limit: int = 20, offset: int = 0
    ) -> list[NormalizedProduct]:
        """Search foods; ``offset`` is the zero-based page number."""
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            _logger.debug("FatSecret search query too short: query=%r", query)
            return []

        payload = await self._request(
            "foods.search.v4",
            {
                "search_expression": query,
                "max_results": str(limit),
                "page_number": str(offset),
            },
        )
        foods_block = payload.get("foods")
        if not isinstance(foods_block, dict):
            _logger.debug("FatSecret search returned no foods: query=%s", query)
            return []
        products = [
            normalize_food(food) for food in _parse_foods(foods_block.get("food"))
        ]
        _logger.info(
            "FatSecret search completed: query=%s results=%s", query, len(products)
        )
        return products

    async def get_food_by_id(self, food_id: str) -> NormalizedProduct | None:
        """Fetch food details by id."""
        food_id = food_id.strip()
        if not food_id:
            _logger.warning("FatSecret get_food_by_id called with empty id")
            return None

        payload = await self._request("food.get.v4", {"food_id": food_id})
        foods = _parse_foods(payload.get("food"))
        if not foods:
            _logger.debug("FatSecret food not found: food_id=%s", food_id)
            return None
        return normalize_food(foods[0])

    async def find_food_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Resolve a barcode to a food id, then fetch the food."""
        barcode = barcode.strip()
        if not barcode:
            _logger.warning("FatSecret find_food_by_barcode called with empty barcode")
            return None

        payload = await self._request("food.find_id_for_barcode", {"barcode": barcode})
        food_id = _barcode_food_id(payload.get("food_id"))
        if food_id is None:
            _logger.debug("FatSecret has no food for barcode: barcode=%s", barcode)
            return None
        return await self.get_food_by_id(food_id)

    async def _request(self, method: str, params: dict[str, str]) -> dict[str, object]:
        token = await self.token_provider.get_token()
        query: dict[str, str] = {"method": method, "format": "json", **params}
        if self.region:
            query["region"] = self.region
        if self.language:
            query["language"] = self.language

        try:
            response = await self.http_client.get(
                self.base_url,
                params=query,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            _logger.error(
                "FatSecret API timeout: method=%s timeout=%ss", method, self.timeout_seconds
            )
            raise NetworkError(f"FatSecret API timeout: {exc}", _SOURCE) from exc
        except httpx.RequestError as exc:
            _logger.error("FatSecret transport error: method=%s error=%s", method, exc)
            raise NetworkError(f"FatSecret transport error: {exc}", _SOURCE) from exc

        if response.is_error:
            _logger.error(
                "FatSecret API error response: method=%s status=%s body=%s",
                method,
                response.status_code,
                response.text,
            )
            raise ApiError(_SOURCE, response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(_SOURCE, response.status_code, response.text) from exc
        if not isinstance(payload, dict):
            raise ApiError(_SOURCE, response.status_code, response.text)

        error = payload.get("error")
        if isinstance(error, dict):
            _logger.error(
                "FatSecret API error body: method=%s code=%s message=%s",
                method,
                error.get("code"),
                error.get("message"),
            )
            raise ApiError(_SOURCE, response.status_code, response.text)
        return payload


def _parse_foods(raw: object) -> list[FatSecretFood]:
    """Validate food records, skipping ones without an id or name."""
    foods: list[FatSecretFood] = []
    for item in as_list(raw):
        try:
            foods.append(FatSecretFood.model_validate(item))
        except ValidationError as exc:
            _logger.warning(
                "Skipping malformed FatSecret food: errors=%s", exc.error_count()
            )
    return foods


def _barcode_food_id(raw: object) -> str | None:
    """Pull the food id out of a ``food.find_id_for_barcode`` answer."""
    value = raw.get("value") if isinstance(raw, dict) else raw
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value == "0":
        return None
    return value
