import math
from datetime import date

import pytest

from tour_router.models.domain import CandidateVenue, FixedPoint, GeoPoint, TourPreferences
from tour_router.services.routing.models import OptimizationConstraints
from tour_router.services.routing.scoring import CandidateScorer, preference_score, priority_tier

KM_PER_DEGREE_EQUATOR = 6371.0 * math.pi / 180
LON_500_KM = 500 / KM_PER_DEGREE_EQUATOR


def _point(vid: int, lat: float, lon: float, day: int = 1) -> FixedPoint:
    return FixedPoint(venue_id=vid, coordinates=GeoPoint(lat, lon), date=date(2025, 6, day))


def _venue(vid: int, lat: float, lon: float, **extra) -> CandidateVenue:
    return CandidateVenue(venue_id=vid, coordinates=GeoPoint(lat, lon), **extra)


START = _point(1, 0.0, 0.0, 1)
END = _point(2, 0.0, LON_500_KM, 11)


def test_candidate_on_the_path_has_unit_detour_ratio():
    scored = CandidateScorer().score(START, END, _venue(10, 0.0, LON_500_KM / 2), OptimizationConstraints())

    assert scored is not None
    assert scored.detour_ratio == pytest.approx(1.0, abs=1e-9)
    assert scored.geographic_score == pytest.approx(0.0, abs=1e-6)
    assert scored.distance_from_start == pytest.approx(250.0)
    assert scored.distance_to_end == pytest.approx(250.0)
    assert scored.preference_score == 0
    # position 100 * 0.4 + distance fit 100 * 0.3 + preference 0
    assert scored.combined_score == pytest.approx(70.0, abs=1e-6)
    assert scored.priority_tier == "hold1"


def test_detour_ratio_never_below_one_for_off_path_candidates():
    scorer = CandidateScorer()
    for lat in (0.2, 0.5, -0.8):
        scored = scorer.score(START, END, _venue(10, lat, LON_500_KM / 2), OptimizationConstraints())
        assert scored is not None
        assert scored.detour_ratio > 1.0
        assert scored.combined_score < 70.0


def test_preference_bonuses_are_additive():
    venue = _venue(10, 0.0, LON_500_KM / 2, capacity=800, region="Midwest", venue_type="Club", genres=("rock", "indie"))
    preferences = TourPreferences(
        preferred_venue_types=("club",),
        preferred_capacity_min=500,
        preferred_capacity_max=1000,
        preferred_genres=("Indie",),
    )
    constraints = OptimizationConstraints(preferred_regions=("midwest",))

    assert preference_score(venue, constraints, preferences) == 70.0

    scored = CandidateScorer().score(START, END, venue, constraints, preferences)
    assert scored.preference_score == 70.0
    assert scored.combined_score == pytest.approx(70.0 + 0.3 * 70.0, abs=1e-6)


def test_preference_capacity_outside_band_earns_nothing():
    venue = _venue(10, 0.0, 1.0, capacity=5000)
    preferences = TourPreferences(preferred_capacity_min=500, preferred_capacity_max=1000)
    assert preference_score(venue, OptimizationConstraints(), preferences) == 0.0


def test_coincident_endpoints_reject_every_candidate():
    same = _point(3, 0.0, 0.0, 11)
    assert CandidateScorer().score(START, same, _venue(10, 0.0, 0.1), OptimizationConstraints()) is None


def test_far_off_path_candidate_is_rejected():
    near_end = _point(2, 0.0, 100 / KM_PER_DEGREE_EQUATOR, 11)
    far_away = _venue(10, 1000 / KM_PER_DEGREE_EQUATOR, 50 / KM_PER_DEGREE_EQUATOR)
    assert CandidateScorer().score(START, near_end, far_away, OptimizationConstraints()) is None


def test_candidate_beyond_detour_budget_is_rejected():
    # 1.5x the direct path: under the 2.5 ceiling but over the 1.4 budget.
    offset = 0.5 * LON_500_KM * math.sqrt(1.5**2 - 1)
    venue = _venue(10, offset, LON_500_KM / 2)
    assert CandidateScorer().score(START, END, venue, OptimizationConstraints()) is None


def test_candidate_with_lopsided_leg_is_rejected():
    # On the path but 90% of the way along: second leg is short, first leg too long.
    venue = _venue(10, 0.0, LON_500_KM * 0.9)
    assert CandidateScorer().score(START, END, venue, OptimizationConstraints()) is None


def test_daily_travel_limit_rejects_long_legs():
    constraints = OptimizationConstraints(max_travel_distance_per_day=100)
    venue = _venue(10, 0.0, LON_500_KM / 2)
    assert CandidateScorer().score(START, END, venue, constraints, day_span=2) is None
    assert CandidateScorer().score(START, END, venue, constraints, day_span=10) is not None


def test_missing_candidate_coordinates_are_rejected():
    venue = CandidateVenue(venue_id=10, coordinates=GeoPoint(None, None))
    assert CandidateScorer().score(START, END, venue, OptimizationConstraints()) is None


def test_rank_orders_by_score_then_detour_then_id():
    mid = LON_500_KM / 2
    candidates = [
        _venue(7, 0.0, mid),
        _venue(3, 0.0, mid),
        _venue(5, 0.6, mid),
        _venue(8, 0.0, LON_500_KM * 0.4),
    ]
    ranked = CandidateScorer().rank(START, END, candidates, OptimizationConstraints())
    assert [item.venue.venue_id for item in ranked] == [3, 7, 8, 5]


@pytest.mark.parametrize(
    "ratio, tier",
    [(1.0, "hold1"), (1.15, "hold2"), (1.3, "hold3"), (1.9, "hold4"), (2.2, "potential")],
)
def test_priority_tier(ratio, tier):
    assert priority_tier(ratio) == tier
