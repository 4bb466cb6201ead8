"""Sinks for lookup cascade events."""

import logging
from dataclasses import dataclass
from typing import Protocol

from food_lookup.domain.lookup import FallbackEvent

_logger = logging.getLogger(__name__)


class LookupEventSink(Protocol):
    """Receives fallback events emitted by the lookup cascade."""

    def record_fallback(self, event: FallbackEvent) -> None:
        """Record a transition to the next tier."""


@dataclass
class LoggingLookupEventSink(LookupEventSink):
    """Writes fallback events to the application log."""

    def record_fallback(self, event: FallbackEvent) -> None:
        """Log a fallback event with its context."""
        _logger.warning(
            "Lookup fallback: tier=%s reason=%s fallback_source=%s query=%s "
            "barcode=%s at=%s",
            event.tier,
            event.reason,
            event.source,
            event.query,
            event.barcode,
            event.occurred_at.isoformat(),
        )
