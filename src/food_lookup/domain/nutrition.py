"""Nutrition domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MacroProfile:
    """Macronutrient totals for a concrete portion."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float
