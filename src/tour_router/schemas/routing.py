"""Route optimization request/response schemas."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class ConstraintsModel(BaseModel):
    max_travel_distance_per_day: Optional[float] = Field(None, gt=0)
    min_days_between_shows: Optional[int] = Field(None, ge=0)
    max_days_between_shows: Optional[int] = Field(None, ge=1)
    avoid_dates: List[str] = Field(default_factory=list, description="ISO dates (YYYY-MM-DD) with no show.")
    required_days_off: List[str] = Field(default_factory=list, description="Weekday names, e.g. 'Sunday'.")
    preferred_regions: List[str] = Field(default_factory=list)


class PreferencesModel(BaseModel):
    preferred_regions: List[str] = Field(default_factory=list)
    preferred_venue_types: List[str] = Field(default_factory=list)
    preferred_capacity_min: Optional[int] = Field(None, ge=0)
    preferred_capacity_max: Optional[int] = Field(None, ge=0)
    preferred_genres: List[str] = Field(default_factory=list)


class FixedPointModel(BaseModel):
    venue_id: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    date: Optional[dt.date] = None
    status: str = "confirmed"
    is_fixed: Optional[bool] = None


class CandidateVenueModel(BaseModel):
    venue_id: int
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    capacity: Optional[int] = None
    region: Optional[str] = None
    venue_type: Optional[str] = None
    genres: List[str] = Field(default_factory=list)


class OptimizeRouteRequest(BaseModel):
    tour_id: int
    fixed_points: List[FixedPointModel]
    candidates: List[CandidateVenueModel] = Field(default_factory=list)
    constraints: Optional[ConstraintsModel] = Field(
        default=None, description="Caller overrides; unset fields fall back to artist_defaults."
    )
    artist_defaults: Optional[ConstraintsModel] = Field(
        default=None, description="Persisted artist preferences used where the caller sets nothing."
    )
    preferences: Optional[PreferencesModel] = None
    use_cache: bool = True


class RouteStopModel(BaseModel):
    venue_id: int
    date: Optional[dt.date] = None
    status: str
    is_fixed: bool = False
    gap_filling: bool = False
    suggested_date: Optional[dt.date] = None
    detour_ratio: Optional[float] = None
    combined_score: Optional[float] = None
    priority_tier: Optional[str] = None
    distance_from_start_km: Optional[float] = None
    distance_to_end_km: Optional[float] = None


class GapModel(BaseModel):
    start_venue_id: int
    end_venue_id: int
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    day_span: int
    filled_venue_ids: List[int] = Field(default_factory=list)
    exceeds_max_spacing: bool = False


class SkippedEntityModel(BaseModel):
    venue_id: int
    reason: str


class RouteResultModel(BaseModel):
    stops: List[RouteStopModel]
    gaps: List[GapModel] = Field(default_factory=list)
    total_distance_km: float
    total_travel_time_minutes: int
    optimization_score: int = Field(..., ge=0, le=100)
    skipped: List[SkippedEntityModel] = Field(default_factory=list)


class OptimizeRouteResponse(BaseModel):
    tour_id: int
    cached: bool
    result: RouteResultModel


class ExistingStopModel(BaseModel):
    stop_id: int
    venue_id: int
    status: str = "potential"
    sequence: Optional[int] = None
    date: Optional[dt.date] = None


class NormalizeSequenceRequest(BaseModel):
    tour_id: int
    route: RouteResultModel
    existing_stops: List[ExistingStopModel] = Field(default_factory=list)


class StopUpdateModel(BaseModel):
    stop_id: int
    venue_id: int
    sequence: int
    date: Optional[dt.date] = None
    status: str


class StopInsertModel(BaseModel):
    venue_id: int
    sequence: int
    date: Optional[dt.date] = None
    status: str
    notes: str


class TourMetricsModel(BaseModel):
    total_distance_km: float
    total_travel_time_minutes: int
    optimization_score: int


class WritePlanResponse(BaseModel):
    tour_id: int
    reset_stop_ids: List[int]
    update: List[StopUpdateModel]
    insert: List[StopInsertModel]
    unchanged: List[ExistingStopModel]
    tour_metrics: TourMetricsModel
    unmatched_venue_ids: List[int] = Field(default_factory=list)
