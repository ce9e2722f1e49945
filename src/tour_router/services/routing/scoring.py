"""Candidate scoring for gap filling.

A candidate sitting between two anchors is judged on three things: how far it
drags the route off the direct path (detour ratio), where along the path it
falls (proximity to the journey midpoint) and how well it matches the
artist's preferences. Each yields a 0-100 style score and the weighted blend
ranks candidates for :mod:`.gap_filler`.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import CandidateVenue, FixedPoint, TourPreferences
from ..geospatial import distance_km, midpoint
from .models import OptimizationConstraints, ScoredCandidate

logger = logging.getLogger(__name__)


class GapScorer(Protocol):
    def rank(
        self,
        start: FixedPoint,
        end: FixedPoint,
        candidates: Iterable[CandidateVenue],
        constraints: OptimizationConstraints,
        preferences: TourPreferences | None = None,
        day_span: int | None = None,
    ) -> list[ScoredCandidate]:
        ...


def priority_tier(detour_ratio: float) -> str:
    """Hold priority suggested by how much a candidate adds to the direct path."""

    deviation = max(0.0, detour_ratio - 1.0) * 100
    if deviation < 10:
        return "hold1"
    if deviation < 20:
        return "hold2"
    if deviation < 40:
        return "hold3"
    if deviation < 100:
        return "hold4"
    return "potential"


def _casefold_set(values: Sequence[str] | None) -> set[str]:
    return {str(value).strip().casefold() for value in values or () if value}


def preference_score(
    candidate: CandidateVenue,
    constraints: OptimizationConstraints,
    preferences: TourPreferences | None,
) -> float:
    """Additive preference bonus starting from 0; each matching criterion adds independently."""

    score = 0.0
    regions = _casefold_set(constraints.preferred_regions)
    if preferences is not None:
        regions |= _casefold_set(preferences.preferred_regions)
    if candidate.region and candidate.region.strip().casefold() in regions:
        score += settings.region_bonus

    if preferences is None:
        return score

    venue_types = _casefold_set(preferences.preferred_venue_types)
    if candidate.venue_type and candidate.venue_type.strip().casefold() in venue_types:
        score += settings.venue_type_bonus

    low, high = preferences.preferred_capacity_min, preferences.preferred_capacity_max
    if candidate.capacity is not None and (low is not None or high is not None):
        if (low is None or candidate.capacity >= low) and (high is None or candidate.capacity <= high):
            score += settings.capacity_bonus

    genres = _casefold_set(preferences.preferred_genres)
    if genres and genres & _casefold_set(candidate.genres):
        score += settings.genre_bonus

    return score


class CandidateScorer:
    """Scores and ranks candidate venues for the gap between two anchors."""

    def __init__(
        self,
        *,
        max_detour_ratio: float | None = None,
        detour_budget_factor: float | None = None,
    ) -> None:
        self.max_detour_ratio = max_detour_ratio or settings.max_detour_ratio
        self.detour_budget_factor = detour_budget_factor or settings.detour_budget_factor

    def score(
        self,
        start: FixedPoint,
        end: FixedPoint,
        candidate: CandidateVenue,
        constraints: OptimizationConstraints,
        preferences: TourPreferences | None = None,
        day_span: int | None = None,
    ) -> Optional[ScoredCandidate]:
        """Score one candidate, returning ``None`` when it must be rejected."""

        from_start = distance_km(start.coordinates, candidate.coordinates)
        to_end = distance_km(candidate.coordinates, end.coordinates)
        direct = distance_km(start.coordinates, end.coordinates)
        if from_start is None or to_end is None or direct is None:
            return None
        if direct <= 0:
            # Coincident anchors: any detour ratio would be infinite.
            return None

        via_candidate = from_start + to_end
        detour_ratio = via_candidate / direct
        if detour_ratio > self.max_detour_ratio:
            return None

        max_total = direct * self.detour_budget_factor
        if via_candidate > max_total:
            return None
        if from_start > max_total / 2 or to_end > max_total / 2:
            return None

        per_day = constraints.max_travel_distance_per_day
        if per_day is not None and day_span:
            if max(from_start, to_end) > per_day * day_span:
                return None

        half_direct = direct / 2
        from_mid = distance_km(midpoint(start.coordinates, end.coordinates), candidate.coordinates) or 0.0
        position = max(0.0, 100.0 * (1.0 - from_mid / half_direct))
        distance_fit = max(0.0, 100.0 * (1.0 - (via_candidate - direct) / (max_total - direct)))
        preference = preference_score(candidate, constraints, preferences)
        combined = (
            position * settings.position_weight
            + distance_fit * settings.distance_weight
            + preference * settings.preference_weight
        )

        return ScoredCandidate(
            venue=candidate,
            distance_from_start=from_start,
            distance_to_end=to_end,
            detour_ratio=detour_ratio,
            geographic_score=(detour_ratio - 1.0) * 100.0,
            preference_score=preference,
            combined_score=combined,
            priority_tier=priority_tier(detour_ratio),
        )

    def rank(
        self,
        start: FixedPoint,
        end: FixedPoint,
        candidates: Iterable[CandidateVenue],
        constraints: OptimizationConstraints,
        preferences: TourPreferences | None = None,
        day_span: int | None = None,
    ) -> list[ScoredCandidate]:
        scored: list[ScoredCandidate] = []
        rejected = 0
        for candidate in candidates:
            result = self.score(start, end, candidate, constraints, preferences, day_span)
            if result is None:
                rejected += 1
                continue
            scored.append(result)
        scored.sort(key=lambda item: (-item.combined_score, item.detour_ratio, item.venue.venue_id))
        logger.debug(
            "Scored gap %s -> %s: %d viable, %d rejected",
            start.venue_id,
            end.venue_id,
            len(scored),
            rejected,
        )
        return scored
