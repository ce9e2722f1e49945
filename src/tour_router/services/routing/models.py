"""Routing domain models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from typing import Any, List, Optional

from ...exceptions import ValidationError
from ...models.domain import CandidateVenue, FixedPoint, StopStatus

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True, slots=True)
class OptimizationConstraints:
    max_travel_distance_per_day: Optional[float] = None
    min_days_between_shows: Optional[int] = None
    max_days_between_shows: Optional[int] = None
    avoid_dates: tuple[str, ...] = ()
    required_days_off: tuple[str, ...] = ()
    preferred_regions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.max_travel_distance_per_day is not None and self.max_travel_distance_per_day <= 0:
            raise ValidationError("max_travel_distance_per_day must be positive")
        if self.min_days_between_shows is not None and self.min_days_between_shows < 0:
            raise ValidationError("min_days_between_shows must not be negative")
        if self.max_days_between_shows is not None and self.max_days_between_shows < 1:
            raise ValidationError("max_days_between_shows must be at least 1")
        if (
            self.min_days_between_shows is not None
            and self.max_days_between_shows is not None
            and self.min_days_between_shows > self.max_days_between_shows
        ):
            raise ValidationError("min_days_between_shows exceeds max_days_between_shows")
        # Parse eagerly so malformed input fails at construction time.
        self.avoid_date_set()
        self.blocked_weekdays()

    def avoid_date_set(self) -> frozenset[date]:
        parsed = set()
        for raw in self.avoid_dates:
            try:
                parsed.add(date.fromisoformat(str(raw)[:10]))
            except ValueError as exc:
                raise ValidationError(f"Invalid avoid date '{raw}'") from exc
        return frozenset(parsed)

    def blocked_weekdays(self) -> frozenset[int]:
        blocked = set()
        for raw in self.required_days_off:
            name = str(raw).strip().lower()
            matches = [index for index, day in enumerate(WEEKDAYS) if day.startswith(name[:3])] if len(name) >= 3 else []
            if not matches:
                raise ValidationError(f"Unknown weekday '{raw}' in required_days_off")
            blocked.add(matches[0])
        return frozenset(blocked)

    def merged_with(self, defaults: "OptimizationConstraints | None") -> "OptimizationConstraints":
        """Field-by-field merge where values set on ``self`` win over ``defaults``."""
        if defaults is None:
            return self
        values = {}
        for item in fields(self):
            own = getattr(self, item.name)
            fallback = getattr(defaults, item.name)
            if isinstance(own, tuple):
                values[item.name] = own if own else fallback
            else:
                values[item.name] = own if own is not None else fallback
        return OptimizationConstraints(**values)

    def fingerprint(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("avoid_dates", "required_days_off", "preferred_regions"):
            data[key] = sorted(data[key])
        return data


@dataclass(slots=True)
class ScoredCandidate:
    venue: CandidateVenue
    distance_from_start: float
    distance_to_end: float
    detour_ratio: float
    geographic_score: float
    preference_score: float
    combined_score: float
    priority_tier: str
    suggested_date: Optional[date] = None
    gap_filling: bool = False
    status: StopStatus = StopStatus.POTENTIAL


@dataclass(slots=True)
class Gap:
    start_point: FixedPoint
    end_point: FixedPoint
    day_span: int
    filled_venue_ids: List[int] = field(default_factory=list)
    exceeds_max_spacing: bool = False


@dataclass(slots=True)
class RouteStop:
    """One entry of an optimized route, either an anchor or a gap filler."""

    venue_id: int
    date: Optional[date]
    status: StopStatus
    is_fixed: bool
    gap_filling: bool = False
    candidate: Optional[ScoredCandidate] = None


@dataclass(slots=True)
class SkippedEntity:
    venue_id: int
    reason: str


@dataclass(slots=True)
class RouteResult:
    stops: List[RouteStop]
    gaps: List[Gap]
    total_distance_km: float
    total_travel_time_minutes: int
    optimization_score: int
    skipped: List[SkippedEntity] = field(default_factory=list)

    @property
    def gap_fillers(self) -> List[ScoredCandidate]:
        return [stop.candidate for stop in self.stops if stop.candidate is not None]
