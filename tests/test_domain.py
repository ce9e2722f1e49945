import pytest

from tour_router.models.domain import ExistingStop, FixedPoint, GeoPoint, StopStatus, normalize_status


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("confirmed", StopStatus.CONFIRMED),
        ("Booked", StopStatus.CONFIRMED),
        (" hold3 ", StopStatus.HOLD),
        ("negotiating", StopStatus.HOLD),
        ("suggested", StopStatus.POTENTIAL),
        ("canceled", StopStatus.CANCELLED),
        (None, StopStatus.POTENTIAL),
        (StopStatus.HOLD, StopStatus.HOLD),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) is expected


def test_unknown_status_falls_back_to_potential(caplog):
    with caplog.at_level("WARNING"):
        assert normalize_status("maybe-later") is StopStatus.POTENTIAL
    assert "maybe-later" in caplog.text


def test_fixed_flag_derives_from_status():
    confirmed = FixedPoint(venue_id=1, coordinates=GeoPoint(0.0, 0.0), status="booked")
    held = FixedPoint(venue_id=2, coordinates=GeoPoint(0.0, 0.0), status="hold")
    pinned = FixedPoint(venue_id=3, coordinates=GeoPoint(0.0, 0.0), status="hold", is_fixed=True)

    assert confirmed.is_fixed is True
    assert held.is_fixed is False
    assert pinned.is_fixed is True


def test_existing_stop_status_is_normalized():
    assert ExistingStop(stop_id=1, venue_id=1, status="Contacted").status is StopStatus.HOLD


@pytest.mark.parametrize(
    "lat, lon, valid",
    [(0.0, 0.0, True), (90.0, -180.0, True), (None, 1.0, False), (91.0, 0.0, False), (float("inf"), 0.0, False)],
)
def test_geopoint_validity(lat, lon, valid):
    assert GeoPoint(lat, lon).is_valid is valid
