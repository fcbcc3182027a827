from __future__ import annotations

import pytest

from dinemap.filters.evaluator import apply_filters, matches
from dinemap.filters.models import DEFAULT_FILTERS, FilterState, award_label


def test_default_filters_include_every_tier(make_restaurant):
    for tier in (3, 2, 1, 0, -1):
        assert matches(make_restaurant(stars=tier), DEFAULT_FILTERS)


def test_name_search_includes_matching_star(make_restaurant):
    filters = FilterState(stars=[1, 2, 3], price_range=(1, 4), search="bistro")
    assert matches(make_restaurant(name="Le Bistro", price_level=2, stars=1), filters)


def test_name_search_excludes_tier_outside_set(make_restaurant):
    filters = FilterState(stars=[1, 2, 3], price_range=(1, 4), search="bistro")
    assert not matches(make_restaurant(name="Le Bistro", price_level=2, stars=0), filters)


def test_search_is_case_insensitive(make_restaurant):
    assert matches(make_restaurant(name="LE BISTRO"), FilterState(search="BiStRo"))
    assert not matches(make_restaurant(name="Arpège"), FilterState(search="bistro"))


@pytest.mark.parametrize("price,included", [(1, False), (2, True), (3, True), (4, False)])
def test_price_range_is_inclusive(make_restaurant, price, included):
    filters = FilterState(price_range=(2, 3))
    assert matches(make_restaurant(price_level=price), filters) is included


def test_location_matches_city_or_country(make_restaurant):
    restaurant = make_restaurant(city="Tokyo", country="Japan")
    assert matches(restaurant, FilterState(location="tok"))
    assert matches(restaurant, FilterState(location="JAPAN"))
    assert matches(restaurant, FilterState(location="tokyo japan"))
    assert not matches(restaurant, FilterState(location="Paris"))


def test_empty_location_and_search_pass(make_restaurant):
    restaurant = make_restaurant(city="", country="", name="Anything")
    assert matches(restaurant, FilterState(location="", search=""))


def test_cuisines_only_constrain_when_selected(make_restaurant):
    restaurant = make_restaurant(cuisine="Sushi")
    assert matches(restaurant, FilterState())
    assert matches(restaurant, FilterState(cuisines=["Sushi", "Ramen"]))
    assert not matches(restaurant, FilterState(cuisines=["Italian"]))


def test_all_checks_are_combined(restaurants):
    filters = FilterState(stars=[3], price_range=(4, 4), location="france")
    assert [r.id for r in apply_filters(restaurants, filters)] == ["paris-1"]


def test_apply_filters_preserves_order(restaurants):
    assert apply_filters(restaurants, DEFAULT_FILTERS) == restaurants


# ── Filter state clamping ────────────────────────────────────────────────


class TestFilterState:
    def test_stars_are_normalised(self):
        assert FilterState(stars=[1, 3, 3, 7]).stars == (3, 1)

    def test_empty_award_set_is_rejected(self):
        with pytest.raises(ValueError):
            FilterState(stars=[])

    def test_price_range_is_clamped_and_ordered(self):
        assert FilterState(price_range=(0, 9)).price_range == (1, 4)
        assert FilterState(price_range=(3, 2)).price_range == (2, 3)

    def test_defaults(self):
        assert DEFAULT_FILTERS.has_all_stars
        assert DEFAULT_FILTERS.has_full_price_range
        assert DEFAULT_FILTERS.is_default
        assert not FilterState(search="x").is_default


@pytest.mark.parametrize(
    "stars,label",
    [(3, "3 Stars"), (2, "2 Stars"), (1, "1 Star"), (0, "Bib Gourmand"), (-1, "Selected")],
)
def test_award_labels(stars, label):
    assert award_label(stars) == label


def test_cuisine_match_ignores_case(make_restaurant):
    restaurant = make_restaurant(cuisine="Creative, Modern Cuisine")
    assert matches(restaurant, FilterState(cuisines=["creative, modern cuisine"]))
