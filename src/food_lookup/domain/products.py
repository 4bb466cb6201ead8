"""Product domain models."""

from dataclasses import dataclass
from enum import StrEnum


class ProductSource(StrEnum):
    """Where a product record came from."""

    PRIMARY = "fatsecret"
    SECONDARY = "openfoodfacts"
    LOCAL = "local"
    USER = "user"


@dataclass(frozen=True)
class NormalizedProduct:
    """Product with nutrients expressed per 100 grams."""

    name: str
    brand: str | None
    calories_per_100g: float
    protein_per_100g: float
    fats_per_100g: float
    carbs_per_100g: float
    source: ProductSource
    source_id: str | None = None
    barcode: str | None = None
    image_url: str | None = None
    id: str | None = None

    def identity(self) -> tuple[str, str] | None:
        """Return the (source, source_id) pair, if the record has one."""
        if not self.source_id:
            return None
        return (str(self.source), self.source_id)
