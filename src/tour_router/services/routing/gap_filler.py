"""Fill date gaps between consecutive anchors with candidate venues."""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Collection, Iterable, Optional, Sequence

from ...config import settings
from ...models.domain import CandidateVenue, FixedPoint, StopStatus, TourPreferences, has_coordinates
from ..geospatial import corridor_candidates, distance_km, round_half_up
from .models import OptimizationConstraints, ScoredCandidate
from .scoring import CandidateScorer, GapScorer

logger = logging.getLogger(__name__)

KM_PER_DEGREE = 111.0


def day_span(start: FixedPoint, end: FixedPoint) -> Optional[int]:
    if start.date is None or end.date is None:
        return None
    return (end.date - start.date).days


def min_days_between(constraints: OptimizationConstraints) -> int:
    # Zero is treated like "unset", matching how stored preferences default to 0.
    return constraints.min_days_between_shows or settings.default_min_days_between_shows


def max_insertions(span: int, constraints: OptimizationConstraints) -> int:
    """Upper bound on shows that fit in a gap of ``span`` days."""

    cap = settings.max_gap_insertions_large if span > settings.large_gap_days else settings.max_gap_insertions
    by_spacing = span // max(1, min_days_between(constraints)) - 1
    return max(0, min(max(1, span // 2), cap, by_spacing))


class GapFiller:
    """Greedy per-gap selection of the best scoring candidates."""

    def __init__(self, scorer: GapScorer | None = None) -> None:
        self.scorer = scorer or CandidateScorer()

    def fill(
        self,
        start: FixedPoint,
        end: FixedPoint,
        pool: Iterable[CandidateVenue],
        constraints: OptimizationConstraints,
        preferences: TourPreferences | None = None,
        exclude: Collection[int] = (),
    ) -> list[ScoredCandidate]:
        if not has_coordinates(start.coordinates) or not has_coordinates(end.coordinates):
            return []
        span = day_span(start, end)
        if span is None or span <= min_days_between(constraints):
            return []

        limit = max_insertions(span, constraints)
        if limit < 1:
            return []

        eligible = [
            venue
            for venue in pool
            if venue.venue_id not in exclude and has_coordinates(venue.coordinates)
        ]
        eligible = corridor_candidates(
            start.coordinates,
            end.coordinates,
            eligible,
            margin_degrees=self._corridor_margin(start, end),
        )
        ranked = self.scorer.rank(start, end, eligible, constraints, preferences, span)
        if not ranked:
            logger.info(
                "No viable candidates for %d-day gap between venues %s and %s",
                span,
                start.venue_id,
                end.venue_id,
            )
            return []

        selected = ranked[:limit]
        # Walk the selections in travel order so dates follow the road.
        selected.sort(key=lambda item: item.distance_from_start)
        return self._assign_dates(start.date, span, selected, constraints)

    def _corridor_margin(self, start: FixedPoint, end: FixedPoint) -> float:
        """Padding wide enough to contain every candidate inside the detour budget."""

        direct = distance_km(start.coordinates, end.coordinates) or 0.0
        factor = settings.detour_budget_factor
        half_width_km = direct * math.sqrt(max(0.0, factor**2 - 1.0)) / 2
        max_lat = max(abs(start.coordinates.latitude), abs(end.coordinates.latitude))
        lon_scale = max(math.cos(math.radians(max_lat)), 0.1)
        needed = half_width_km / (KM_PER_DEGREE * lon_scale)
        return max(settings.corridor_margin_degrees, needed)

    def _assign_dates(
        self,
        start_date: date,
        span: int,
        selected: Sequence[ScoredCandidate],
        constraints: OptimizationConstraints,
    ) -> list[ScoredCandidate]:
        avoid = constraints.avoid_date_set()
        days_off = constraints.blocked_weekdays()

        def blocked(offset: int) -> bool:
            day = start_date + timedelta(days=offset)
            return day in avoid or day.weekday() in days_off

        # Every placed date keeps the minimum spacing to its neighbours, end anchor included.
        spacing = min_days_between(constraints)
        last_allowed = span - spacing
        placed: list[ScoredCandidate] = []
        previous = 0
        total = len(selected)
        for index, candidate in enumerate(selected, start=1):
            offset = max(round_half_up(span * index / (total + 1)), previous + spacing)
            while offset <= last_allowed and blocked(offset):
                offset += 1
            if offset > last_allowed:
                logger.info(
                    "Dropping venue %s: no free date left in gap after day %d",
                    candidate.venue.venue_id,
                    previous,
                )
                continue
            candidate.suggested_date = start_date + timedelta(days=offset)
            candidate.gap_filling = True
            candidate.status = StopStatus.POTENTIAL
            placed.append(candidate)
            previous = offset
        return placed
