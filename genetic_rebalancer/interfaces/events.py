"""
Genetic Rebalancer — Event definitions.
Layer 0 (interfaces). Depends only on interfaces.enums.

Payloads are wire-encoded messages (decimals as strings) so a listener
can forward them without touching Decimal objects.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from genetic_rebalancer.interfaces.enums import EventType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Event:
    event_type: EventType
    timestamp: datetime = field(default_factory=_utcnow)
    source: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)


# ── Factory functions ────────────────────────────────────────

def search_started_event(
    population_size: int, stop_after: int, investment_limit: str, asset_count: int,
) -> Event:
    return Event(
        event_type=EventType.SEARCH_STARTED, source="search_service",
        payload={"populationSize": population_size,
                 "stopAfterNGenerationsWithoutBetterResult": stop_after,
                 "investmentLimit": investment_limit,
                 "assetCount": asset_count},
    )


def generation_complete_event(message: Dict[str, Any]) -> Event:
    return Event(
        event_type=EventType.GENERATION_COMPLETE, source="population_manager",
        payload=message,
    )


def search_finished_event(message: Dict[str, Any]) -> Event:
    return Event(
        event_type=EventType.SEARCH_FINISHED, source="population_manager",
        payload=message,
    )


def search_cancelled_event(last_generation: int) -> Event:
    return Event(
        event_type=EventType.SEARCH_CANCELLED, source="search_service",
        payload={"generation": last_generation},
    )


def search_failed_event(error: BaseException) -> Event:
    return Event(
        event_type=EventType.SEARCH_FAILED, source="search_service",
        payload={"error": type(error).__name__, "message": str(error)},
    )
