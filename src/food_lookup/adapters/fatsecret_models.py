"""Pydantic models for FatSecret API payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_list(value: object) -> list[object]:
    """Coerce FatSecret's bare-object-or-list shape into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict) and not value:
        return []
    return [value]


def _wire_text(value: object) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int | float):
        return str(value)
    return None


class FatSecretServing(BaseModel):
    """One serving representation of a food."""

    model_config = ConfigDict(extra="ignore")

    serving_id: str | None = None
    serving_description: str | None = None
    metric_serving_amount: str | None = None
    metric_serving_unit: str | None = None
    calories: str | None = None
    carbohydrate: str | None = None
    protein: str | None = None
    fat: str | None = None
    saturated_fat: str | None = None
    fiber: str | None = None
    sugar: str | None = None
    sodium: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> str | None:
        return _wire_text(value)


class FatSecretFood(BaseModel):
    """Food record as returned by ``food.get`` and ``foods.search``."""

    model_config = ConfigDict(extra="ignore")

    food_id: str
    food_name: str
    brand_name: str | None = None
    food_type: str = "Generic"
    food_url: str | None = None
    food_images: Any = None
    servings: list[FatSecretServing] = Field(default_factory=list)

    @field_validator("food_id", "food_name", mode="before")
    @classmethod
    def _coerce_required_text(cls, value: object) -> object:
        text = _wire_text(value)
        if text is None or not text.strip():
            raise ValueError("missing required text field")
        return text

    @field_validator("brand_name", "food_url", mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: object) -> str | None:
        return _wire_text(value)

    @field_validator("food_type", mode="before")
    @classmethod
    def _default_food_type(cls, value: object) -> str:
        return _wire_text(value) or "Generic"

    @field_validator("servings", mode="before")
    @classmethod
    def _unwrap_servings(cls, value: object) -> list[object]:
        if isinstance(value, dict) and "serving" in value:
            value = value["serving"]
        return [item for item in as_list(value) if isinstance(item, dict)]

    @property
    def is_branded(self) -> bool:
        """Return True for branded (packaged) foods."""
        return self.food_type.lower() in {"brand", "branded"}
