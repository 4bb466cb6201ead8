"""Portion calculations on per-100g products."""

import math

from food_lookup.domain.nutrition import MacroProfile
from food_lookup.domain.products import NormalizedProduct


def macros_for_weight(product: NormalizedProduct, grams: float) -> MacroProfile:
    """Scale a product's per-100g values to a portion of ``grams``."""
    if not math.isfinite(grams) or grams < 0:
        raise ValueError(f"Portion weight must be a finite, non-negative number: {grams}")
    factor = grams / 100.0
    return MacroProfile(
        calories=_scaled(product.calories_per_100g, factor),
        protein_g=_scaled(product.protein_per_100g, factor),
        fat_g=_scaled(product.fats_per_100g, factor),
        carbs_g=_scaled(product.carbs_per_100g, factor),
    )


def _scaled(value: float, factor: float) -> float:
    if not math.isfinite(value) or value <= 0:
        return 0.0
    return value * factor
