import pytest

from farmtofork.utils import filters
from farmtofork.utils.geo import LatLng, MapBounds

LISTINGS = [
    {"id": 1, "product_type": ["Fruits", "Légumes"], "certifications": ["Label AB"], "lat": 45.7, "lng": 4.8},
    {"id": 2, "product_type": ["Viande"], "certifications": [], "lat": 45.8, "lng": 4.9},
    {"id": 3, "product_type": ["Légumes"], "certifications": ["Label Rouge"], "lat": 48.8, "lng": 2.3},
    {"id": 4, "lat": 45.7, "lng": 4.8},
]


def ids(items):
    return [item["id"] for item in items]


def test_empty_filters_cover_every_key():
    state = filters.empty_filters()
    assert set(state) == set(filters.FILTER_KEYS)
    assert all(v == [] for v in state.values())
    assert filters.reset_filters() == state


def test_no_active_filter_keeps_everything():
    assert ids(filters.apply_filters(LISTINGS, filters.empty_filters())) == [1, 2, 3, 4]


def test_values_are_ored_within_a_key():
    state = filters.merge_filters({"product_type": ["Fruits", "Viande"]})
    assert ids(filters.apply_filters(LISTINGS, state)) == [1, 2]


def test_keys_are_anded():
    state = filters.merge_filters({"product_type": ["Légumes"], "certifications": ["Label AB"]})
    assert ids(filters.apply_filters(LISTINGS, state)) == [1]


def test_missing_field_fails_an_active_filter():
    state = filters.merge_filters({"product_type": ["Légumes"]})
    assert 4 not in ids(filters.apply_filters(LISTINGS, state))


def test_map_type_never_filters():
    state = filters.merge_filters({"mapType": ["satellite"]})
    assert ids(filters.apply_filters(LISTINGS, state)) == [1, 2, 3, 4]


def test_bounds_are_applied_first():
    bounds = MapBounds(ne=LatLng(46.0, 5.0), sw=LatLng(45.5, 4.5))
    state = filters.merge_filters({"product_type": ["Légumes"]})
    assert ids(filters.apply_filters(LISTINGS, state, bounds)) == [1]


def test_toggle_filter_adds_then_removes():
    state = filters.toggle_filter(filters.empty_filters(), "certifications", "IGP")
    assert state["certifications"] == ["IGP"]
    state = filters.toggle_filter(state, "certifications", "IGP")
    assert state["certifications"] == []


def test_toggle_unknown_key():
    with pytest.raises(ValueError):
        filters.toggle_filter(filters.empty_filters(), "colour", "red")


def test_sanitize_filter_value():
    assert filters.sanitize_filter_value("  Label AB ") == "Label AB"
    assert filters.sanitize_filter_value("<script>") is None
    assert filters.sanitize_filter_value("") is None
    assert filters.sanitize_filter_value("x" * 101) is None
    assert filters.sanitize_filter_value(3) is None


def test_filters_from_query():
    state = filters.filters_from_query({"product_type": "Fruits, Légumes,", "availability": "a&b"})
    assert state["product_type"] == ["Fruits", "Légumes"]
    assert state["availability"] == []
    assert filters.calculate_active_filter_count(state) == 2
    assert filters.is_valid_filter_state(state)
    assert not filters.is_valid_filter_state({"product_type": []})


def test_filters_to_url_params_encodes_values():
    params = filters.filters_to_url_params({"product_type": ["Fruits", "Œufs"], "certifications": []})
    assert params == {"product_type": "Fruits,%C5%92ufs"}


def test_build_explore_url():
    assert filters.build_explore_url({}, {}) == "/explore"
    url = filters.build_explore_url({"lat": "45.7", "zoom": "9"}, {"zoom": None, "returnUrlOnly": True})
    assert url == "/explore?lat=45.7"
    assert filters.build_explore_url({}, filters.create_coordinate_update(45.7, 4.8, 10)) == (
        "/explore?lat=45.7&lng=4.8&zoom=10"
    )
