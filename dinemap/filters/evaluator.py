from __future__ import annotations

from typing import Iterable

from ..restaurants.models import Restaurant
from .models import FilterState


def matches(restaurant: Restaurant, filters: FilterState) -> bool:
    """Return True when ``restaurant`` passes every active criterion."""
    if restaurant.stars not in filters.stars:
        return False

    low, high = filters.price_range
    if not low <= restaurant.price_level <= high:
        return False

    if filters.location:
        place = f"{restaurant.city} {restaurant.country}".lower()
        if filters.location.lower() not in place:
            return False

    if filters.search and filters.search.lower() not in restaurant.name.lower():
        return False

    # Cuisines only constrain when the user picked some
    if filters.cuisines:
        wanted = {c.lower() for c in filters.cuisines}
        if restaurant.cuisine.lower() not in wanted:
            return False

    return True


def apply_filters(restaurants: Iterable[Restaurant], filters: FilterState) -> list[Restaurant]:
    return [r for r in restaurants if matches(r, filters)]
