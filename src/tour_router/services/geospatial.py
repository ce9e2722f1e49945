"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from shapely.geometry import Point, box

from ..config import settings
from ..models.domain import CandidateVenue, GeoPoint, has_coordinates

EARTH_RADIUS_KM = 6371.0
KM_PER_MILE = 1.0 / 0.621371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(p1: GeoPoint | None, p2: GeoPoint | None) -> Optional[float]:
    """Great-circle distance between two points, or ``None`` when either is unusable.

    ``None`` means "unknown" and must never be read as a zero distance; only
    identical coordinates produce ``0.0``.
    """

    if not has_coordinates(p1) or not has_coordinates(p2):
        return None
    return haversine_km(float(p1.latitude), float(p1.longitude), float(p2.latitude), float(p2.longitude))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_travel_time(
    distance: float,
    average_speed_kmh: float | None = None,
    buffer_factor: float | None = None,
) -> int:
    """Estimated driving time in minutes, padded for rest stops and traffic."""

    speed = average_speed_kmh or settings.average_speed_kmh
    buffer = buffer_factor or settings.travel_buffer_factor
    minutes = (max(0.0, distance) / speed) * 60.0
    return round_half_up(minutes * buffer)


def midpoint(p1: GeoPoint, p2: GeoPoint) -> GeoPoint:
    return GeoPoint((float(p1.latitude) + float(p2.latitude)) / 2, (float(p1.longitude) + float(p2.longitude)) / 2)


def find_nearest_venue(
    point: GeoPoint | None, venues: Iterable[CandidateVenue]
) -> tuple[CandidateVenue, float] | None:
    """Return the closest geocoded venue to ``point`` with its distance in km."""

    if not has_coordinates(point):
        return None
    best: tuple[CandidateVenue, float] | None = None
    for venue in venues:
        dist = distance_km(point, venue.coordinates)
        if dist is None:
            continue
        if best is None or (dist, venue.venue_id) < (best[1], best[0].venue_id):
            best = (venue, dist)
    return best


def total_distance_km(points: Sequence[GeoPoint | None]) -> float:
    """Sum of leg distances over consecutive points, skipping legs with unknown distance."""

    total = 0.0
    for current, following in zip(points, points[1:]):
        leg = distance_km(current, following)
        if leg is not None:
            total += leg
    return total


def corridor_candidates(
    start: GeoPoint,
    end: GeoPoint,
    venues: Iterable[CandidateVenue],
    margin_degrees: float | None = None,
) -> list[CandidateVenue]:
    """Keep venues inside the padded bounding box of the start/end segment."""

    margin = settings.corridor_margin_degrees if margin_degrees is None else margin_degrees
    corridor = box(
        min(start.longitude, end.longitude) - margin,
        min(start.latitude, end.latitude) - margin,
        max(start.longitude, end.longitude) + margin,
        max(start.latitude, end.latitude) + margin,
    )
    return [
        venue
        for venue in venues
        if has_coordinates(venue.coordinates)
        and corridor.covers(Point(venue.coordinates.longitude, venue.coordinates.latitude))
    ]


def km_to_miles(km: float) -> float:
    return km * 0.621371


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE


def format_distance(km: float) -> str:
    if km < 1:
        return f"{round_half_up(km * 1000)} m"
    return f"{km:.1f} km"
