import pytest

from staffmatch.geo import (
    PostalCodeEntry,
    PostalCodeGeocoder,
    bounding_box,
    distance_between,
    extract_postal_code,
    haversine_km,
    is_within_radius,
    normalize_city_key,
)
from staffmatch.models import CandidateProfile, MatchTarget

ZURICH = (47.3769, 8.5417)
GENEVA = (46.2044, 6.1432)
WINTERTHUR = (47.4988, 8.7237)


def test_haversine_is_symmetric():
    assert haversine_km(*ZURICH, *GENEVA) == pytest.approx(haversine_km(*GENEVA, *ZURICH))


def test_haversine_zero_for_same_point():
    assert haversine_km(*ZURICH, *ZURICH) == 0.0


def test_haversine_zurich_geneva():
    # R = 6371 km great-circle distance for these coordinates
    assert haversine_km(*ZURICH, *GENEVA) == pytest.approx(224.3, abs=1.0)


def test_haversine_zurich_winterthur_is_short_hop():
    d = haversine_km(*ZURICH, *WINTERTHUR)
    assert 15.0 < d < 25.0


def test_haversine_is_not_rounded():
    d = haversine_km(*ZURICH, *WINTERTHUR)
    assert d != round(d, 1)


def test_distance_between_none_when_coordinates_missing():
    target = MatchTarget(id="t", latitude=ZURICH[0], longitude=ZURICH[1])
    no_coords = CandidateProfile(id="c", first_name="A", last_name="B")
    half = CandidateProfile(id="c", first_name="A", last_name="B", latitude=47.0)

    assert distance_between(target, no_coords) is None
    assert distance_between(target, half) is None
    assert distance_between(MatchTarget(id="t"), target) is None


def test_distance_between_uses_haversine():
    target = MatchTarget(id="t", latitude=ZURICH[0], longitude=ZURICH[1])
    cand = CandidateProfile(id="c", first_name="A", last_name="B", latitude=WINTERTHUR[0], longitude=WINTERTHUR[1])
    assert distance_between(target, cand) == pytest.approx(haversine_km(*ZURICH, *WINTERTHUR))


def test_bounding_box_contains_radius_circle():
    box = bounding_box(*ZURICH, 25)
    assert box.contains(*ZURICH)
    assert box.contains(*WINTERTHUR)
    assert not box.contains(*GENEVA)


def test_is_within_radius():
    assert is_within_radius(*ZURICH, *WINTERTHUR, 25)
    assert not is_within_radius(*ZURICH, *GENEVA, 100)


def test_normalize_city_key_strips_accents_and_punctuation():
    assert normalize_city_key("Zürich (ZH),  Kreis 1") == "zurich zh kreis 1"
    assert normalize_city_key("GENÈVE") == "geneve"


def test_extract_postal_code():
    assert extract_postal_code("8001 Zürich") == "8001"
    assert extract_postal_code("Bahnhofstrasse 1, 8400 Winterthur") == "8400"
    assert extract_postal_code("Zürich") is None
    assert extract_postal_code(None) is None


def _make_geocoder():
    return PostalCodeGeocoder([
        PostalCodeEntry("8001", "Zürich", 47.3769, 8.5417, "ZH"),
        PostalCodeEntry("8400", "Winterthur", 47.4988, 8.7237, "ZH"),
    ])


def test_geocoder_prefers_postal_code():
    geo = _make_geocoder()
    # Postal code wins even when the city name points elsewhere
    assert geo.resolve("8400 Zürich") == WINTERTHUR


def test_geocoder_falls_back_to_city_name():
    geo = _make_geocoder()
    assert geo.resolve("zurich") == ZURICH
    assert geo.resolve("9999 Winterthur") == WINTERTHUR


def test_geocoder_unknown_location():
    assert _make_geocoder().resolve("Lugano") is None
