import math

import pytest

from tour_router.models.domain import CandidateVenue, GeoPoint
from tour_router.services.geospatial import (
    corridor_candidates,
    distance_km,
    estimate_travel_time,
    find_nearest_venue,
    format_distance,
    haversine_km,
    km_to_miles,
    miles_to_km,
    total_distance_km,
)

KM_PER_DEGREE_EQUATOR = 6371.0 * math.pi / 180


def _venue(vid: int, lat: float | None, lon: float | None) -> CandidateVenue:
    return CandidateVenue(venue_id=vid, coordinates=GeoPoint(lat, lon))


def test_haversine_known_distance_on_equator():
    lon = 500 / KM_PER_DEGREE_EQUATOR
    assert haversine_km(0.0, 0.0, 0.0, lon) == pytest.approx(500.0, rel=1e-9)


def test_distance_is_symmetric_and_non_negative():
    pairs = [
        (GeoPoint(51.5074, -0.1278), GeoPoint(48.8566, 2.3522)),
        (GeoPoint(-33.8688, 151.2093), GeoPoint(40.7128, -74.0060)),
        (GeoPoint(0.0, 179.9), GeoPoint(0.0, -179.9)),
    ]
    for a, b in pairs:
        assert distance_km(a, b) == pytest.approx(distance_km(b, a))
        assert distance_km(a, b) >= 0


def test_distance_identity_is_zero():
    point = GeoPoint(40.7128, -74.0060)
    assert distance_km(point, point) == 0.0


def test_distance_unknown_for_missing_or_invalid_coordinates():
    valid = GeoPoint(40.0, -74.0)
    assert distance_km(valid, GeoPoint(None, -74.0)) is None
    assert distance_km(None, valid) is None
    assert distance_km(valid, GeoPoint(95.0, 10.0)) is None
    assert distance_km(valid, GeoPoint(10.0, float("nan"))) is None


def test_zero_coordinates_are_real_coordinates():
    # 0,0 is a location in the Gulf of Guinea, not a missing value.
    assert distance_km(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)) == pytest.approx(KM_PER_DEGREE_EQUATOR)


def test_estimate_travel_time_uses_speed_and_buffer():
    assert estimate_travel_time(70.0) == 72
    assert estimate_travel_time(0.0) == 0
    assert estimate_travel_time(100.0, average_speed_kmh=100.0, buffer_factor=1.0) == 60


def test_estimate_travel_time_is_monotonic():
    distances = [0, 1, 5, 33.3, 70, 120.5, 500, 1234.5]
    times = [estimate_travel_time(d) for d in distances]
    assert times == sorted(times)


def test_find_nearest_venue_skips_ungeocoded_and_breaks_ties_by_id():
    venues = [
        _venue(9, 1.0, 1.0),
        _venue(4, None, None),
        _venue(5, 1.0, 1.0),
        _venue(2, 5.0, 5.0),
    ]
    nearest = find_nearest_venue(GeoPoint(0.9, 0.9), venues)
    assert nearest is not None
    venue, dist = nearest
    assert venue.venue_id == 5
    assert dist > 0


def test_find_nearest_venue_without_reference_point():
    assert find_nearest_venue(GeoPoint(None, None), [_venue(1, 1.0, 1.0)]) is None
    assert find_nearest_venue(GeoPoint(1.0, 1.0), []) is None


def test_total_distance_skips_legs_with_unknown_distance():
    points = [GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0), GeoPoint(None, None), GeoPoint(0.0, 2.0)]
    assert total_distance_km(points) == pytest.approx(KM_PER_DEGREE_EQUATOR)


def test_corridor_candidates_keeps_venues_near_segment():
    venues = [_venue(1, 0.5, 2.0), _venue(2, 30.0, 2.0), _venue(3, None, 2.0)]
    kept = corridor_candidates(GeoPoint(0.0, 0.0), GeoPoint(0.0, 4.0), venues, margin_degrees=1.0)
    assert [venue.venue_id for venue in kept] == [1]


def test_unit_helpers():
    assert km_to_miles(100.0) == pytest.approx(62.1371)
    assert miles_to_km(km_to_miles(42.0)) == pytest.approx(42.0)
    assert format_distance(0.25) == "250 m"
    assert format_distance(12.345) == "12.3 km"
