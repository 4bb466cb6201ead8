"""Lookup cascade models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class LookupTier(StrEnum):
    """Stage of the lookup cascade."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class FallbackReason(StrEnum):
    """Why a tier handed over to the next one."""

    NO_RESULTS = "no_results"
    API_ERROR = "api_error"
    DISABLED = "disabled"


@dataclass(frozen=True)
class FallbackEvent:
    """A transition from one tier of the cascade to the next."""

    tier: LookupTier
    reason: FallbackReason
    source: str
    query: str | None = None
    barcode: str | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
