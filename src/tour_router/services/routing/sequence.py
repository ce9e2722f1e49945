"""Reconcile an optimized route with a tour's persisted stops.

The output is a write plan for the persistence layer, applied in order:
reset the sequence of every mutable stop to 0, apply updates, apply inserts,
then write the tour metrics. Confirmed stops are reported as unchanged and
never appear in any other list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from ...config import settings
from ...models.domain import ExistingStop, StopStatus, normalize_status
from .models import RouteResult, RouteStop

logger = logging.getLogger(__name__)

RESET_SEQUENCE = 0
GAP_FILL_NOTE = "Added via tour optimization"


@dataclass(slots=True)
class StopUpdate:
    stop_id: int
    venue_id: int
    sequence: int
    date: Optional[date]
    status: StopStatus


@dataclass(slots=True)
class StopInsert:
    venue_id: int
    sequence: int
    date: Optional[date]
    status: StopStatus = StopStatus.POTENTIAL
    notes: str = GAP_FILL_NOTE


@dataclass(slots=True)
class TourMetrics:
    total_distance_km: float
    total_travel_time_minutes: int
    optimization_score: int


@dataclass(slots=True)
class WritePlan:
    update: List[StopUpdate]
    insert: List[StopInsert]
    unchanged: List[ExistingStop]
    reset_stop_ids: List[int]
    tour_metrics: TourMetrics
    unmatched_venue_ids: List[int] = field(default_factory=list)

    def sequence_by_venue(self) -> dict[int, int]:
        assigned = {item.venue_id: item.sequence for item in self.update}
        assigned.update({item.venue_id: item.sequence for item in self.insert})
        return assigned


def _route_order(stops: Sequence[RouteStop]) -> list[RouteStop]:
    indexed = sorted(
        enumerate(stops),
        key=lambda item: (item[1].date is None, item[1].date or date.max, item[0]),
    )
    return [stop for _, stop in indexed]


def _existing_order(stop: ExistingStop) -> tuple:
    return (stop.sequence is None, stop.sequence or 0, stop.stop_id)


class SequenceNormalizer:
    def __init__(self, out_of_route_base: int | None = None) -> None:
        self.out_of_route_base = out_of_route_base or settings.out_of_route_sequence_base

    def normalize(self, route: RouteResult, existing_stops: Sequence[ExistingStop]) -> WritePlan:
        confirmed = [stop for stop in existing_stops if stop.status is StopStatus.CONFIRMED]
        mutable = sorted(
            (stop for stop in existing_stops if stop.status is not StopStatus.CONFIRMED),
            key=_existing_order,
        )
        confirmed_venues = {stop.venue_id for stop in confirmed}
        by_venue: dict[int, ExistingStop] = {}
        for stop in mutable:
            by_venue.setdefault(stop.venue_id, stop)

        updates: list[StopUpdate] = []
        inserts: list[StopInsert] = []
        unmatched: list[int] = []
        placed_venues: set[int] = set()
        matched_stops: set[int] = set()
        sequence = 0

        for route_stop in _route_order(route.stops):
            venue_id = route_stop.venue_id
            if venue_id in placed_venues:
                continue
            if venue_id in confirmed_venues:
                # Keeps its own persisted sequence but still occupies a slot.
                sequence += 1
                placed_venues.add(venue_id)
                continue

            existing = by_venue.get(venue_id)
            if existing is not None:
                sequence += 1
                placed_venues.add(venue_id)
                matched_stops.add(existing.stop_id)
                suggested = route_stop.candidate.suggested_date if route_stop.candidate else None
                updates.append(
                    StopUpdate(
                        stop_id=existing.stop_id,
                        venue_id=venue_id,
                        sequence=sequence,
                        date=suggested or route_stop.date or existing.date,
                        status=normalize_status(route_stop.status) if route_stop.status else existing.status,
                    )
                )
            elif route_stop.gap_filling and route_stop.date is not None:
                sequence += 1
                placed_venues.add(venue_id)
                inserts.append(StopInsert(venue_id=venue_id, sequence=sequence, date=route_stop.date))
            else:
                logger.warning("Route stop for venue %s has no matching tour stop, skipping", venue_id)
                unmatched.append(venue_id)

        high_sequence = self.out_of_route_base
        for stop in mutable:
            if stop.stop_id in matched_stops:
                continue
            updates.append(
                StopUpdate(
                    stop_id=stop.stop_id,
                    venue_id=stop.venue_id,
                    sequence=high_sequence,
                    date=stop.date,
                    status=stop.status,
                )
            )
            high_sequence += 1

        logger.info(
            "Write plan: %d updates, %d inserts, %d confirmed untouched",
            len(updates),
            len(inserts),
            len(confirmed),
        )
        return WritePlan(
            update=updates,
            insert=inserts,
            unchanged=list(confirmed),
            reset_stop_ids=[stop.stop_id for stop in mutable],
            tour_metrics=TourMetrics(
                total_distance_km=route.total_distance_km,
                total_travel_time_minutes=route.total_travel_time_minutes,
                optimization_score=route.optimization_score,
            ),
            unmatched_venue_ids=unmatched,
        )


def normalize_sequence(route: RouteResult, existing_stops: Sequence[ExistingStop]) -> WritePlan:
    return SequenceNormalizer().normalize(route, existing_stops)
