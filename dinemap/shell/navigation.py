"""Where the home-page search box sends the visitor."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable
from urllib.parse import quote

from ..cities.directory import City
from ..filters.models import CITY_ZOOM, COORDINATE_ZOOM, FilterState, Viewport
from ..urlstate.codec import PARAM_CENTER, PARAM_LOCATION, PARAM_ZOOM, encode

logger = logging.getLogger(__name__)

MAP_PATH = "/map"
NEAR_ME = "near me"
NEAR_ME_TARGET = f"{MAP_PATH}?{PARAM_LOCATION}={quote(NEAR_ME)}"
GEOLOCATION_TIMEOUT = 7.0

Geolocator = Callable[[], Awaitable[tuple[float, float]]]


class GeolocationDenied(Exception):
    """The visitor refused to share their position."""


def city_target(city: City) -> str:
    query = encode(
        FilterState(location=city.name),
        viewport=Viewport(center=(city.latitude, city.longitude), zoom=CITY_ZOOM),
    )
    return f"{MAP_PATH}?{query}"


def text_target(text: str) -> str:
    return f"{MAP_PATH}?{encode(FilterState(location=text))}"


async def locate(geolocate: Geolocator | None, timeout: float = GEOLOCATION_TIMEOUT) -> str:
    """
    Map URL centred on the visitor's position, or the "near me" text query
    when the position is unavailable, refused or too slow.
    """
    if geolocate is None:
        return NEAR_ME_TARGET
    try:
        lat, lng = await asyncio.wait_for(geolocate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.info("Geolocation timed out after %.1fs", timeout)
        return NEAR_ME_TARGET
    except GeolocationDenied:
        logger.info("Geolocation denied")
        return NEAR_ME_TARGET
    return f"{MAP_PATH}?{PARAM_CENTER}={lat:.5f},{lng:.5f}&{PARAM_ZOOM}={COORDINATE_ZOOM}"


async def home_search_target(
    query: str,
    selected_city: City | None = None,
    geolocate: Geolocator | None = None,
    timeout: float = GEOLOCATION_TIMEOUT,
) -> str | None:
    """Return the map URL for a home-page search, or None for a blank query."""
    text = query.strip()
    if not text:
        return None
    if NEAR_ME in text.lower():
        return await locate(geolocate, timeout=timeout)
    if selected_city is not None:
        return city_target(selected_city)
    return text_target(text)
