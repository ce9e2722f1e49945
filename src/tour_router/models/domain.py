"""Domain models for venues, tour stops and booking status."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class StopStatus(str, Enum):
    """Canonical booking status of a tour stop."""

    CONFIRMED = "confirmed"
    HOLD = "hold"
    POTENTIAL = "potential"
    CANCELLED = "cancelled"


_STATUS_ALIASES = {
    "confirmed": StopStatus.CONFIRMED,
    "booked": StopStatus.CONFIRMED,
    "hold": StopStatus.HOLD,
    "hold1": StopStatus.HOLD,
    "hold2": StopStatus.HOLD,
    "hold3": StopStatus.HOLD,
    "hold4": StopStatus.HOLD,
    "contacted": StopStatus.HOLD,
    "negotiating": StopStatus.HOLD,
    "potential": StopStatus.POTENTIAL,
    "suggested": StopStatus.POTENTIAL,
    "cancelled": StopStatus.CANCELLED,
    "canceled": StopStatus.CANCELLED,
}


def normalize_status(raw: StopStatus | str | None) -> StopStatus:
    """Map a free-form status string onto the canonical set.

    Unrecognized values fall back to ``potential`` and are logged so bad data
    can be traced back to its source.
    """
    if isinstance(raw, StopStatus):
        return raw
    if raw is None:
        return StopStatus.POTENTIAL
    key = str(raw).strip().lower()
    status = _STATUS_ALIASES.get(key)
    if status is None:
        logger.warning("Unrecognized stop status %r, treating as 'potential'", raw)
        return StopStatus.POTENTIAL
    return status


@dataclass(slots=True)
class GeoPoint:
    latitude: Optional[float]
    longitude: Optional[float]

    @property
    def is_valid(self) -> bool:
        if self.latitude is None or self.longitude is None:
            return False
        try:
            lat = float(self.latitude)
            lon = float(self.longitude)
        except (TypeError, ValueError):
            return False
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
        return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def has_coordinates(point: GeoPoint | None) -> bool:
    return point is not None and point.is_valid


@dataclass(slots=True)
class FixedPoint:
    """A scheduling anchor built from a persisted stop joined with its venue."""

    venue_id: int
    coordinates: Optional[GeoPoint]
    date: Optional[date] = None
    status: StopStatus = StopStatus.CONFIRMED
    is_fixed: Optional[bool] = None

    def __post_init__(self) -> None:
        self.status = normalize_status(self.status)
        if self.is_fixed is None:
            self.is_fixed = self.status is StopStatus.CONFIRMED


@dataclass(slots=True)
class CandidateVenue:
    """A venue eligible for gap filling."""

    venue_id: int
    coordinates: Optional[GeoPoint]
    capacity: Optional[int] = None
    region: Optional[str] = None
    venue_type: Optional[str] = None
    genres: tuple[str, ...] = ()
    name: Optional[str] = None


@dataclass(slots=True)
class TourPreferences:
    """Artist-side fit preferences used when scoring candidates."""

    preferred_regions: tuple[str, ...] = ()
    preferred_venue_types: tuple[str, ...] = ()
    preferred_capacity_min: Optional[int] = None
    preferred_capacity_max: Optional[int] = None
    preferred_genres: tuple[str, ...] = ()


@dataclass(slots=True)
class ExistingStop:
    """A persisted tour stop as seen by sequence reconciliation."""

    stop_id: int
    venue_id: int
    status: StopStatus = StopStatus.POTENTIAL
    sequence: Optional[int] = None
    date: Optional[date] = None

    def __post_init__(self) -> None:
        self.status = normalize_status(self.status)
