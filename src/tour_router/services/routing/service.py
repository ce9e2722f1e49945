"""Route optimization orchestration service.

Bridges plain records (API payloads or rows fetched by the persistence layer)
and the pure engine: builds anchors and the candidate pool, merges constraint
overrides with artist defaults, and fronts the optimizer with the result cache.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from ...exceptions import ValidationError
from ...models.domain import CandidateVenue, ExistingStop, FixedPoint, GeoPoint, TourPreferences, normalize_status
from ...schemas.routing import (
    ConstraintsModel,
    NormalizeSequenceRequest,
    OptimizeRouteRequest,
    OptimizeRouteResponse,
    PreferencesModel,
    RouteResultModel,
    WritePlanResponse,
)
from ..outputs.routing_formatter import route_result_to_json, write_plan_to_json
from .cache import RouteCache, optimization_cache
from .models import OptimizationConstraints, RouteResult, RouteStop, SkippedEntity
from .optimizer import RouteOptimizer
from .sequence import normalize_sequence

logger = logging.getLogger(__name__)


def _coerce_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def build_fixed_points(stops: Iterable[Mapping[str, Any]]) -> list[FixedPoint]:
    """Anchors from joined stop/venue rows; cancelled rows are kept so the optimizer reports them."""

    points: list[FixedPoint] = []
    for row in stops:
        try:
            points.append(
                FixedPoint(
                    venue_id=int(row["venue_id"]),
                    coordinates=GeoPoint(_coerce_float(row.get("latitude")), _coerce_float(row.get("longitude"))),
                    date=_coerce_date(row.get("date")),
                    status=normalize_status(row.get("status")),
                    is_fixed=row.get("is_fixed"),
                )
            )
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning(f"Skipping invalid stop row {row!r}: {exc}")
            continue
    return points


def build_candidate_pool(
    venues: Iterable[Mapping[str, Any]], attached_venue_ids: Iterable[int] = ()
) -> list[CandidateVenue]:
    """Geocoded venues not already attached to the tour."""

    attached = set(attached_venue_ids)
    pool: list[CandidateVenue] = []
    for row in venues:
        try:
            venue_id = int(row["venue_id"])
            coordinates = GeoPoint(_coerce_float(row.get("latitude")), _coerce_float(row.get("longitude")))
            capacity = row.get("capacity")
            candidate = CandidateVenue(
                venue_id=venue_id,
                coordinates=coordinates,
                capacity=int(capacity) if capacity is not None else None,
                region=row.get("region"),
                venue_type=row.get("venue_type"),
                genres=tuple(row.get("genres") or ()),
                name=row.get("name"),
            )
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning(f"Skipping invalid venue row {row!r}: {exc}")
            continue
        if venue_id in attached or not coordinates.is_valid:
            continue
        pool.append(candidate)
    return pool


def _constraints_from_model(model: ConstraintsModel | None) -> OptimizationConstraints | None:
    if model is None:
        return None
    return OptimizationConstraints(
        max_travel_distance_per_day=model.max_travel_distance_per_day,
        min_days_between_shows=model.min_days_between_shows,
        max_days_between_shows=model.max_days_between_shows,
        avoid_dates=tuple(model.avoid_dates),
        required_days_off=tuple(model.required_days_off),
        preferred_regions=tuple(model.preferred_regions),
    )


def resolve_constraints(
    overrides: ConstraintsModel | None, artist_defaults: ConstraintsModel | None
) -> OptimizationConstraints:
    """Caller overrides win field by field over persisted artist preferences."""

    base = _constraints_from_model(artist_defaults) or OptimizationConstraints()
    own = _constraints_from_model(overrides)
    return own.merged_with(base) if own is not None else base


def _preferences_from_model(model: PreferencesModel | None) -> TourPreferences | None:
    if model is None:
        return None
    if (
        model.preferred_capacity_min is not None
        and model.preferred_capacity_max is not None
        and model.preferred_capacity_min > model.preferred_capacity_max
    ):
        raise ValidationError("preferred_capacity_min exceeds preferred_capacity_max")
    return TourPreferences(
        preferred_regions=tuple(model.preferred_regions),
        preferred_venue_types=tuple(model.preferred_venue_types),
        preferred_capacity_min=model.preferred_capacity_min,
        preferred_capacity_max=model.preferred_capacity_max,
        preferred_genres=tuple(model.preferred_genres),
    )


def route_result_from_model(model: RouteResultModel) -> RouteResult:
    """Rebuild a route result received from a client; stops carry no scoring detail."""

    return RouteResult(
        stops=[
            RouteStop(
                venue_id=stop.venue_id,
                date=stop.suggested_date or stop.date,
                status=normalize_status(stop.status),
                is_fixed=stop.is_fixed,
                gap_filling=stop.gap_filling,
            )
            for stop in model.stops
        ],
        gaps=[],
        total_distance_km=model.total_distance_km,
        total_travel_time_minutes=model.total_travel_time_minutes,
        optimization_score=model.optimization_score,
        skipped=[SkippedEntity(item.venue_id, item.reason) for item in model.skipped],
    )


def optimize_tour(
    payload: OptimizeRouteRequest,
    cache: RouteCache = optimization_cache,
    optimizer: RouteOptimizer | None = None,
) -> OptimizeRouteResponse:
    constraints = resolve_constraints(payload.constraints, payload.artist_defaults)
    preferences = _preferences_from_model(payload.preferences)
    cache_params = {"constraints": constraints.fingerprint(), "preferences": preferences}

    if payload.use_cache:
        cached = cache.get(payload.tour_id, cache_params)
        if cached is not None:
            logger.info(f"Serving cached route for tour {payload.tour_id}")
            return OptimizeRouteResponse(
                tour_id=payload.tour_id,
                cached=True,
                result=RouteResultModel.model_validate(route_result_to_json(cached)),
            )

    generation = cache.generation(payload.tour_id)
    fixed_points = build_fixed_points(point.model_dump() for point in payload.fixed_points)
    anchor_ids = {point.venue_id for point in fixed_points}
    pool = build_candidate_pool((venue.model_dump() for venue in payload.candidates), anchor_ids)

    result = (optimizer or RouteOptimizer()).optimize(fixed_points, pool, constraints, preferences)
    cache.set(payload.tour_id, cache_params, result, generation=generation)

    return OptimizeRouteResponse(
        tour_id=payload.tour_id,
        cached=False,
        result=RouteResultModel.model_validate(route_result_to_json(result)),
    )


def normalize_tour(payload: NormalizeSequenceRequest, cache: RouteCache = optimization_cache) -> WritePlanResponse:
    """Build the write plan for applying a route; the tour's cached routes are dropped."""

    route = route_result_from_model(payload.route)
    existing = [
        ExistingStop(
            stop_id=stop.stop_id,
            venue_id=stop.venue_id,
            status=normalize_status(stop.status),
            sequence=stop.sequence,
            date=stop.date,
        )
        for stop in payload.existing_stops
    ]
    plan = normalize_sequence(route, existing)
    cache.invalidate(payload.tour_id)
    return WritePlanResponse.model_validate({"tour_id": payload.tour_id, **write_plan_to_json(plan)})
