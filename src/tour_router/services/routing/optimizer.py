"""Greedy tour route optimization.

Anchors (confirmed and held stops) are walked in date order; each consecutive
pair with coordinates on both ends contributes its direct distance and travel
time to the totals and, when both ends are dated, its date gap is handed to
:class:`GapFiller`. A pair with an ungeocoded end is skipped entirely, never
bridged. Candidates are consumed as they are placed so no venue is booked
twice in one route.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Iterator, Sequence

from ...exceptions import ValidationError
from ...models.domain import CandidateVenue, FixedPoint, StopStatus, TourPreferences, has_coordinates
from ..geospatial import distance_km, estimate_travel_time, round_half_up
from .gap_filler import GapFiller, day_span, min_days_between
from .models import Gap, OptimizationConstraints, RouteResult, RouteStop, SkippedEntity

logger = logging.getLogger(__name__)


def optimization_score(total_distance_km: float, total_travel_time_minutes: float) -> int:
    distance_penalty = min(20.0, total_distance_km / 100)
    time_penalty = min(20.0, total_travel_time_minutes / 500)
    return max(0, min(100, round_half_up(100 - distance_penalty - time_penalty)))


def _date_sort_key(item: tuple[int, FixedPoint]) -> tuple[int, date, int]:
    index, point = item
    if point.date is None:
        return (1, date.max, index)
    return (0, point.date, index)


def _order_anchors(points: Sequence[FixedPoint]) -> tuple[list[FixedPoint], list[SkippedEntity]]:
    """Date-ordered active anchors plus the entities left out of (part of) the computation."""

    ordered: list[FixedPoint] = []
    skipped: list[SkippedEntity] = []
    for _, point in sorted(enumerate(points), key=_date_sort_key):
        if point.status is StopStatus.CANCELLED:
            logger.warning("Venue %s is cancelled; not used as a route anchor", point.venue_id)
            skipped.append(SkippedEntity(point.venue_id, "cancelled"))
            continue
        if not has_coordinates(point.coordinates):
            logger.warning("Venue %s has no usable coordinates; excluded from distance computation", point.venue_id)
            skipped.append(SkippedEntity(point.venue_id, "missing coordinates"))
        elif point.date is None:
            logger.warning("Venue %s has no date; excluded from gap detection", point.venue_id)
            skipped.append(SkippedEntity(point.venue_id, "missing date"))
        ordered.append(point)
    return ordered, skipped


def _legs(ordered: Sequence[FixedPoint]) -> Iterator[tuple[FixedPoint, FixedPoint, float]]:
    """Consecutive anchor pairs with coordinates on both ends, with their distance."""

    for current, following in zip(ordered, ordered[1:]):
        if not has_coordinates(current.coordinates) or not has_coordinates(following.coordinates):
            continue
        yield current, following, distance_km(current.coordinates, following.coordinates)


def _anchor_stops(ordered: Sequence[FixedPoint]) -> list[RouteStop]:
    return [
        RouteStop(venue_id=point.venue_id, date=point.date, status=point.status, is_fixed=bool(point.is_fixed))
        for point in ordered
    ]


class RouteOptimizer:
    def __init__(self, gap_filler: GapFiller | None = None) -> None:
        self.gap_filler = gap_filler or GapFiller()

    def optimize(
        self,
        fixed_points: Sequence[FixedPoint],
        candidate_pool: Iterable[CandidateVenue],
        constraints: OptimizationConstraints | None = None,
        preferences: TourPreferences | None = None,
    ) -> RouteResult:
        ordered, skipped = _order_anchors(fixed_points)
        if len(ordered) < 2:
            raise ValidationError("insufficient fixed points")
        constraints = constraints or OptimizationConstraints()

        anchor_ids = {point.venue_id for point in fixed_points}
        pool: list[CandidateVenue] = []
        for venue in candidate_pool:
            if venue.venue_id in anchor_ids:
                logger.warning("Candidate venue %s is already on the tour, ignoring", venue.venue_id)
                continue
            if not has_coordinates(venue.coordinates):
                skipped.append(SkippedEntity(venue.venue_id, "candidate missing coordinates"))
                continue
            pool.append(venue)

        stops = _anchor_stops(ordered)
        gaps: list[Gap] = []
        used: set[int] = set()
        total_distance = 0.0
        total_minutes = 0

        for current, following, leg in _legs(ordered):
            total_distance += leg
            total_minutes += estimate_travel_time(leg)

            span = day_span(current, following)
            if span is None or span <= min_days_between(constraints):
                continue

            fillers = self.gap_filler.fill(current, following, pool, constraints, preferences, exclude=used)
            gap = Gap(
                start_point=current,
                end_point=following,
                day_span=span,
                exceeds_max_spacing=self._exceeds_max_spacing(span, len(fillers), constraints),
            )
            for candidate in fillers:
                used.add(candidate.venue.venue_id)
                gap.filled_venue_ids.append(candidate.venue.venue_id)
                stops.append(
                    RouteStop(
                        venue_id=candidate.venue.venue_id,
                        date=candidate.suggested_date,
                        status=candidate.status,
                        is_fixed=False,
                        gap_filling=True,
                        candidate=candidate,
                    )
                )
            gaps.append(gap)

        stops = [
            stop
            for _, stop in sorted(
                enumerate(stops),
                key=lambda item: (item[1].date is None, item[1].date or date.max, item[0]),
            )
        ]
        score = optimization_score(total_distance, total_minutes)
        logger.info(
            "Optimized route: %d anchors, %d gap fillers, %.1f km, %d min, score %d",
            len(ordered),
            len(used),
            total_distance,
            total_minutes,
            score,
        )
        return RouteResult(
            stops=stops,
            gaps=gaps,
            total_distance_km=total_distance,
            total_travel_time_minutes=total_minutes,
            optimization_score=score,
            skipped=skipped,
        )

    @staticmethod
    def _exceeds_max_spacing(span: int, fillers: int, constraints: OptimizationConstraints) -> bool:
        if constraints.max_days_between_shows is None:
            return False
        longest_stretch = span / (fillers + 1)
        return longest_stretch > constraints.max_days_between_shows


def optimize_route(
    fixed_points: Sequence[FixedPoint],
    candidate_pool: Iterable[CandidateVenue],
    constraints: OptimizationConstraints | None = None,
    preferences: TourPreferences | None = None,
) -> RouteResult:
    return RouteOptimizer().optimize(fixed_points, candidate_pool, constraints, preferences)


def score_existing_route(points: Sequence[FixedPoint]) -> RouteResult:
    """Metrics for a tour in its current order, before any optimization."""

    ordered, skipped = _order_anchors(points)
    total_distance = 0.0
    total_minutes = 0
    for _, _, leg in _legs(ordered):
        total_distance += leg
        total_minutes += estimate_travel_time(leg)
    return RouteResult(
        stops=_anchor_stops(ordered),
        gaps=[],
        total_distance_km=total_distance,
        total_travel_time_minutes=total_minutes,
        optimization_score=optimization_score(total_distance, total_minutes),
        skipped=skipped,
    )
