"""Conversion of FatSecret foods into per-100g products."""

import logging
import math
from dataclasses import dataclass

from food_lookup.adapters.fatsecret_models import FatSecretFood, FatSecretServing, as_list
from food_lookup.domain.products import NormalizedProduct, ProductSource

_METRIC_UNITS = {"g", "ml"}
_REFERENCE_AMOUNT = 100.0

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServingNutrients:
    """Nutrient values for one serving, or a serving scaled to 100 g."""

    calories: float
    protein: float
    fat: float
    carbohydrate: float
    saturated_fat: float | None = None
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None

    def scaled(self, factor: float) -> "ServingNutrients":
        """Return a copy with every value multiplied by ``factor``."""
        return ServingNutrients(
            calories=self.calories * factor,
            protein=self.protein * factor,
            fat=self.fat * factor,
            carbohydrate=self.carbohydrate * factor,
            saturated_fat=_scale_optional(self.saturated_fat, factor),
            fiber=_scale_optional(self.fiber, factor),
            sugar=_scale_optional(self.sugar, factor),
            sodium=_scale_optional(self.sodium, factor),
        )


_ZERO = ServingNutrients(calories=0.0, protein=0.0, fat=0.0, carbohydrate=0.0)


def parse_amount(value: object) -> float:
    """Parse a wire-encoded number; anything unusable becomes 0.0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def normalize_food(food: FatSecretFood) -> NormalizedProduct:
    """Build a per-100g product from a FatSecret food record."""
    nutrients = per_100g_nutrients(food.servings)
    brand = (food.brand_name or "").strip() or None
    return NormalizedProduct(
        name=food.food_name.strip(),
        brand=brand,
        calories_per_100g=_non_negative(nutrients.calories),
        protein_per_100g=_non_negative(nutrients.protein),
        fats_per_100g=_non_negative(nutrients.fat),
        carbs_per_100g=_non_negative(nutrients.carbohydrate),
        source=ProductSource.PRIMARY,
        source_id=food.food_id,
        image_url=extract_image_url(food.food_images),
    )


def per_100g_nutrients(servings: list[FatSecretServing]) -> ServingNutrients:
    """Find a 100 g serving or scale the best metric serving to 100 g.

    Preference order: an exact 100 g/ml serving, the first g/ml serving with a
    positive amount, then the first serving scaled by its amount as an
    estimate. Without any of those every value is zero.
    """
    if not servings:
        _logger.debug("No servings provided, using zero nutrients")
        return _ZERO

    for serving in servings:
        if _is_metric(serving) and parse_amount(serving.metric_serving_amount) == (
            _REFERENCE_AMOUNT
        ):
            return _serving_nutrients(serving)

    for serving in servings:
        amount = parse_amount(serving.metric_serving_amount)
        if _is_metric(serving) and amount > 0:
            return _serving_nutrients(serving).scaled(_REFERENCE_AMOUNT / amount)

    first = servings[0]
    amount = parse_amount(first.metric_serving_amount)
    if amount > 0:
        _logger.debug(
            "Estimating 100g values from first serving: unit=%s amount=%s",
            first.metric_serving_unit,
            amount,
        )
        return _serving_nutrients(first).scaled(_REFERENCE_AMOUNT / amount)

    _logger.warning("Unable to derive 100g values: servings=%s", len(servings))
    return _ZERO


def extract_image_url(images: object) -> str | None:
    """Return the URL of the first image that has one."""
    if isinstance(images, dict):
        images = images.get("food_image")
    for image in as_list(images):
        if not isinstance(image, dict):
            continue
        url = image.get("image_url")
        if isinstance(url, str) and url.strip():
            return url.strip()
    return None


def _is_metric(serving: FatSecretServing) -> bool:
    unit = (serving.metric_serving_unit or "").strip().lower()
    return unit in _METRIC_UNITS


def _serving_nutrients(serving: FatSecretServing) -> ServingNutrients:
    return ServingNutrients(
        calories=parse_amount(serving.calories),
        protein=parse_amount(serving.protein),
        fat=parse_amount(serving.fat),
        carbohydrate=parse_amount(serving.carbohydrate),
        saturated_fat=_optional_amount(serving.saturated_fat),
        fiber=_optional_amount(serving.fiber),
        sugar=_optional_amount(serving.sugar),
        sodium=_optional_amount(serving.sodium),
    )


def _optional_amount(value: str | None) -> float | None:
    if value is None:
        return None
    return parse_amount(value)


def _scale_optional(value: float | None, factor: float) -> float | None:
    if value is None:
        return None
    return value * factor


def _non_negative(value: float) -> float:
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value
