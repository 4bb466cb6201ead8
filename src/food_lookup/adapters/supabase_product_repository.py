"""Supabase implementation of the local product store."""

import logging
from dataclasses import dataclass

from supabase import Client

from food_lookup.domain.products import NormalizedProduct, ProductSource
from food_lookup.services.normalization import parse_amount
from food_lookup.services.products import ProductRepository

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseProductRepository(ProductRepository):
    """Supabase-backed repository for previously seen products."""

    client: Client
    table_name: str = "products"

    def search_products(self, query: str, limit: int) -> list[NormalizedProduct]:
        """Search products by name or brand, most used first."""
        pattern = _ilike_pattern(query)
        response = (
            self.client.table(self.table_name)
            .select("*")
            .or_(f"name.ilike.{pattern},brand.ilike.{pattern}")
            .order("usage_count", desc=True)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_product(row) for row in response.data or []]

    def get_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Return a product by barcode, if present."""
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("barcode", barcode)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def save_product(self, product: NormalizedProduct) -> str | None:
        """Insert a product on first use, or bump usage of the existing row."""
        existing_id = self._find_existing_id(product)
        if existing_id is not None:
            self.increment_usage(existing_id)
            return existing_id

        response = (
            self.client.table(self.table_name)
            .insert(_product_row(product))
            .execute()
        )
        if not response.data:
            _logger.warning(
                "Product insert returned no row: source=%s source_id=%s",
                product.source,
                product.source_id,
            )
            return None
        return str(response.data[0]["id"])

    def increment_usage(self, product_id: str) -> None:
        """Increment the usage counter for a product."""
        response = (
            self.client.table(self.table_name)
            .select("usage_count")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return
        current = int(response.data[0].get("usage_count") or 0)
        self.client.table(self.table_name).update({"usage_count": current + 1}).eq(
            "id", product_id
        ).execute()

    def _find_existing_id(self, product: NormalizedProduct) -> str | None:
        if product.source_id:
            response = (
                self.client.table(self.table_name)
                .select("id")
                .eq("source", str(product.source))
                .eq("source_id", product.source_id)
                .limit(1)
                .execute()
            )
            if response.data:
                return str(response.data[0]["id"])
        if product.barcode:
            response = (
                self.client.table(self.table_name)
                .select("id")
                .eq("barcode", product.barcode)
                .limit(1)
                .execute()
            )
            if response.data:
                return str(response.data[0]["id"])
        return None


def _ilike_pattern(query: str) -> str:
    """Build an ilike pattern safe to embed in a PostgREST ``or`` filter."""
    cleaned = "".join(char for char in query.strip() if char not in ",()%*\\\"")
    return f"%{cleaned}%"


def _product_row(product: NormalizedProduct) -> dict[str, object]:
    return {
        "name": product.name,
        "brand": product.brand,
        "barcode": product.barcode,
        "calories_per_100g": product.calories_per_100g,
        "protein_per_100g": product.protein_per_100g,
        "fats_per_100g": product.fats_per_100g,
        "carbs_per_100g": product.carbs_per_100g,
        "source": str(product.source),
        "source_id": product.source_id,
        "image_url": product.image_url,
    }


def _parse_product(row: dict[str, object]) -> NormalizedProduct:
    """Parse a products row into a domain model."""
    raw_source = row.get("source")
    try:
        source = ProductSource(raw_source)
    except ValueError:
        source = ProductSource.USER
    return NormalizedProduct(
        id=str(row["id"]) if row.get("id") is not None else None,
        name=str(row.get("name", "")),
        brand=row.get("brand"),
        barcode=row.get("barcode"),
        calories_per_100g=_non_negative(row.get("calories_per_100g")),
        protein_per_100g=_non_negative(row.get("protein_per_100g")),
        fats_per_100g=_non_negative(row.get("fats_per_100g")),
        carbs_per_100g=_non_negative(row.get("carbs_per_100g")),
        source=source,
        source_id=row.get("source_id"),
        image_url=row.get("image_url"),
    )


def _non_negative(value: object) -> float:
    return max(parse_amount(value), 0.0)
