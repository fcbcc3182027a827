from __future__ import annotations

from urllib.parse import parse_qs

import pytest

from dinemap.filters.models import (
    CITY_ZOOM,
    COORDINATE_ZOOM,
    DEFAULT_FILTERS,
    DEFAULT_VIEWPORT,
    FilterState,
    ViewState,
    Viewport,
)
from dinemap.urlstate.codec import (
    CENTERED_BY_CITY,
    CENTERED_BY_COORDINATES,
    decode,
    encode,
    parse_center,
    parse_cuisines,
    parse_price_range,
    parse_stars,
)


# ── Default omission ─────────────────────────────────────────────────────


def test_default_state_encodes_to_nothing():
    encoded = encode(DEFAULT_FILTERS, None, DEFAULT_VIEWPORT)
    keys = parse_qs(encoded).keys()
    for key in ("s", "c", "p", "cities", "id", "q", "ll", "z"):
        assert key not in keys
    assert encoded == ""


def test_default_state_round_trips():
    decoded = decode(encode(DEFAULT_FILTERS))
    assert decoded.filters == DEFAULT_FILTERS
    assert decoded.view == ViewState()


# ── Encoding ─────────────────────────────────────────────────────────────


def test_encode_lists_and_price_range():
    filters = FilterState(stars=[2, 1], cuisines=["Sushi", "Ramen"], price_range=(2, 3))
    assert encode(filters) == "s=2,1&c=Sushi,Ramen&p=2-3"


def test_encode_text_is_percent_encoded():
    encoded = encode(FilterState(location="New York", search="Le Bistro"))
    assert encoded == "cities=New%20York&q=Le%20Bistro"


def test_encode_selection_and_viewport():
    encoded = encode(DEFAULT_FILTERS, "abc", Viewport(center=(48.85, 2.35), zoom=13))
    assert encoded == "id=abc&ll=48.85,2.35&z=13"


# ── Decoding ─────────────────────────────────────────────────────────────


def test_decode_example():
    decoded = decode("?s=1,2&p=2-3&cities=Paris")
    assert set(decoded.filters.stars) == {1, 2}
    assert decoded.filters.price_range == (2, 3)
    assert decoded.filters.location == "Paris"
    assert decoded.filters.cuisines == ()
    assert decoded.filters.search == ""
    assert decoded.view.selected_id is None
    assert decoded.view.viewport == DEFAULT_VIEWPORT


def test_unknown_star_values_are_dropped():
    decoded = decode("s=3,9,abc,-1")
    assert decoded.filters.stars == (3, -1)


def test_all_invalid_stars_keep_previous():
    previous = FilterState(stars=[2])
    decoded = decode("s=7,x", previous=previous)
    assert decoded.filters.stars == (2,)


@pytest.mark.parametrize("raw", ["2", "a-b", "1-2-3", "-", "2-"])
def test_malformed_price_keeps_previous(raw):
    previous = FilterState(price_range=(2, 3))
    decoded = decode(f"p={raw}", previous=previous)
    assert decoded.filters.price_range == (2, 3)


def test_out_of_range_price_is_clamped():
    assert decode("p=0-9").filters.price_range == (1, 4)


def test_l_only_applies_to_a_known_city(directory):
    decoded = decode("l=tokyo", directory=directory)
    assert decoded.filters.location == "Tokyo"
    assert decoded.centered_by == CENTERED_BY_CITY
    assert decode("cities=Paris&l=Tokyo", directory=directory).filters.location == "Paris"


@pytest.mark.parametrize("query", ["l=near%20me", "l=France", "l=Atlantis"])
def test_l_free_text_leaves_location_unfiltered(directory, query):
    decoded = decode(query, directory=directory)
    assert decoded.filters == DEFAULT_FILTERS
    assert decoded.view.viewport == DEFAULT_VIEWPORT
    assert decode(query).filters.location == ""


def test_absent_fields_keep_previous():
    previous = FilterState(search="sushi", location="Tokyo")
    decoded = decode("s=3", previous=previous)
    assert decoded.filters.search == "sushi"
    assert decoded.filters.location == "Tokyo"
    assert decoded.filters.stars == (3,)


def test_coordinates_beat_city_name(directory):
    decoded = decode("ll=48.85,2.35&cities=Paris", directory=directory)
    assert decoded.view.viewport.center == (48.85, 2.35)
    assert decoded.view.viewport.zoom == COORDINATE_ZOOM
    assert decoded.centered_by == CENTERED_BY_COORDINATES
    assert decoded.filters.location == "Paris"


def test_city_name_centres_on_exact_match(directory):
    decoded = decode("cities=Paris", directory=directory)
    assert decoded.city.name == "Paris"
    assert decoded.view.viewport.center == (48.85735, 2.3282)
    assert decoded.view.viewport.zoom == CITY_ZOOM
    assert decoded.centered_by == CENTERED_BY_CITY


def test_unknown_city_keeps_default_viewport(directory):
    decoded = decode("cities=Atlantis", directory=directory)
    assert decoded.city is None
    assert decoded.view.viewport == DEFAULT_VIEWPORT


@pytest.mark.parametrize("raw", ["48.85", "a,b", "nan,2.35", "48.85,inf", "1,2,3"])
def test_malformed_coordinates_fall_back_to_city(directory, raw):
    decoded = decode(f"ll={raw}&cities=Tokyo", directory=directory)
    assert decoded.centered_by == CENTERED_BY_CITY
    assert decoded.view.viewport.center == (35.69925, 139.727)


def test_zoom_is_read_with_coordinates():
    decoded = decode("ll=1.5,2.5&z=7")
    assert decoded.view.viewport == Viewport(center=(1.5, 2.5), zoom=7)


def test_invalid_zoom_uses_default_for_coordinates():
    assert decode("ll=1.5,2.5&z=99").view.viewport.zoom == COORDINATE_ZOOM


# ── Round trip ───────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "filters,selected_id,viewport",
    [
        (FilterState(stars=[3]), None, DEFAULT_VIEWPORT),
        (FilterState(stars=[0, -1], price_range=(1, 2)), "abc123", DEFAULT_VIEWPORT),
        (FilterState(cuisines=["Sushi"], location="Tokyo, Japan", search="saito"), None,
         Viewport(center=(35.6665, 139.74), zoom=13)),
        (FilterState(location="São Paulo", search="A&B +1"), "x y", Viewport(center=(-23.55, -46.633), zoom=11)),
    ],
)
def test_round_trip(filters, selected_id, viewport, directory):
    decoded = decode(encode(filters, selected_id, viewport), directory=directory)
    assert decoded.filters == filters
    assert decoded.view == ViewState(selected_id=selected_id, viewport=viewport)


# ── Parsers ──────────────────────────────────────────────────────────────


def test_parsers():
    assert parse_stars("1, 2") == (1, 2)
    assert parse_stars("x") is None
    assert parse_price_range("1-4") == (1, 4)
    assert parse_center(" 48.85 , 2.35 ") == (48.85, 2.35)


def test_city_location_without_coordinates_centres_on_city(directory):
    # Round trip is exact except for the viewport: a named city with no ll
    # re-centres the map on the city.
    decoded = decode(encode(FilterState(location="Paris"), None, DEFAULT_VIEWPORT), directory=directory)
    assert decoded.filters == FilterState(location="Paris")
    assert decoded.view.viewport == Viewport(center=(48.85735, 2.3282), zoom=CITY_ZOOM)
    assert decode(encode(FilterState(location="Paris"))).view.viewport == DEFAULT_VIEWPORT


# ── Cuisines with commas ─────────────────────────────────────────────────


def test_cuisine_names_keep_their_commas(directory):
    filters = FilterState(cuisines=["Creative, Modern Cuisine", "Sushi"])
    encoded = encode(filters)
    assert encoded == "c=Creative%2C%20Modern%20Cuisine,Sushi"
    assert decode(encoded, directory=directory).filters == filters
    assert parse_cuisines("Creative%2C%20Modern%20Cuisine,,Sushi") == ["Creative, Modern Cuisine", "Sushi"]
