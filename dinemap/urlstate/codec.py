"""
Shareable URL state.

Maps filter state, the selected restaurant and the map viewport to and from
the query string of the ``/map`` page. Default-valued fields are left out of
the encoded string, and decoding never raises: a malformed parameter leaves
the corresponding field at its previous value.

Cuisine names may themselves contain commas ("Creative, Modern Cuisine"), so
each one is percent-encoded on its own before the list is joined with a
literal comma.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from urllib.parse import quote, unquote_plus

from ..cities.directory import City, CityDirectory
from ..filters.models import (
    AWARD_TIERS,
    CITY_ZOOM,
    COORDINATE_ZOOM,
    DEFAULT_FILTERS,
    FilterState,
    ViewState,
    Viewport,
)

PARAM_ID = "id"
PARAM_STARS = "s"
PARAM_CUISINES = "c"
PARAM_PRICE = "p"
PARAM_CITIES = "cities"
PARAM_LOCATION = "l"
PARAM_SEARCH = "q"
PARAM_CENTER = "ll"
PARAM_ZOOM = "z"

CENTERED_BY_COORDINATES = "coordinates"
CENTERED_BY_CITY = "city"


@dataclass(frozen=True)
class DecodedState:
    filters: FilterState
    view: ViewState
    city: City | None = None
    centered_by: str | None = None


def encode(
    filters: FilterState,
    selected_id: str | None = None,
    viewport: Viewport | None = None,
) -> str:
    """Serialise state into a query string (no leading ``?``)."""
    # values are stored already percent-encoded
    params: list[tuple[str, str]] = []
    if selected_id:
        params.append((PARAM_ID, _quote(selected_id)))
    if not filters.has_all_stars:
        params.append((PARAM_STARS, ",".join(str(s) for s in filters.stars)))
    if filters.cuisines:
        params.append((PARAM_CUISINES, ",".join(quote(c, safe="-") for c in filters.cuisines)))
    if not filters.has_full_price_range:
        low, high = filters.price_range
        params.append((PARAM_PRICE, f"{low}-{high}"))
    if filters.location:
        params.append((PARAM_CITIES, _quote(filters.location)))
    if filters.search:
        params.append((PARAM_SEARCH, _quote(filters.search)))
    if viewport is not None and not viewport.is_default:
        lat, lng = viewport.center
        params.append((PARAM_CENTER, f"{lat!r},{lng!r}"))
        params.append((PARAM_ZOOM, str(viewport.zoom)))
    return "&".join(f"{key}={value}" for key, value in params)


def _quote(text: str) -> str:
    return quote(text, safe=",-")


def _raw_values(query: str) -> dict[str, str]:
    """First value of each parameter, still percent-encoded."""
    values: dict[str, str] = {}
    for pair in query.lstrip("?").split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        values.setdefault(unquote_plus(key), value)
    return values


def parse_cuisines(raw: str) -> list[str]:
    """Split on literal commas, then decode each name."""
    names = (unquote_plus(part).strip() for part in raw.split(","))
    return [name for name in names if name]


def parse_stars(raw: str) -> tuple[int, ...] | None:
    tiers: list[int] = []
    for part in raw.split(","):
        try:
            value = int(part.strip())
        except ValueError:
            continue
        if value in AWARD_TIERS:
            tiers.append(value)
    return tuple(tiers) or None


def parse_price_range(raw: str) -> tuple[int, int] | None:
    parts = raw.split("-")
    if len(parts) != 2:
        return None
    try:
        return int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        return None


def parse_center(raw: str) -> tuple[float, float] | None:
    parts = raw.split(",")
    if len(parts) != 2:
        return None
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return lat, lng


def parse_zoom(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        zoom = int(raw.strip())
    except ValueError:
        return None
    return zoom if 0 <= zoom <= 22 else None


def decode(
    query: str,
    previous: FilterState = DEFAULT_FILTERS,
    previous_view: ViewState | None = None,
    directory: CityDirectory | None = None,
) -> DecodedState:
    """
    Parse a query string into state.

    Fields whose parameter is absent or malformed keep their ``previous``
    value. A valid ``ll`` pair always wins over centring on a named city.

    ``l`` is only honoured when it names a directory city exactly
    (case-insensitively); free text such as "near me" leaves the location
    filter alone. ``cities`` takes precedence over ``l``.
    """
    raw = _raw_values(query)
    params = {key: unquote_plus(value) for key, value in raw.items()}
    previous_view = previous_view or ViewState()

    changes: dict = {}
    raw_stars = params.get(PARAM_STARS)
    if raw_stars:
        stars = parse_stars(raw_stars)
        if stars:
            changes["stars"] = stars

    if raw.get(PARAM_CUISINES):
        cuisines = parse_cuisines(raw[PARAM_CUISINES])
        if cuisines:
            changes["cuisines"] = cuisines

    raw_price = params.get(PARAM_PRICE)
    if raw_price:
        price = parse_price_range(raw_price)
        if price:
            changes["price_range"] = price

    city: City | None = None
    cities = params.get(PARAM_CITIES)
    if cities:
        changes["location"] = cities
        if directory is not None:
            city = directory.resolve(cities)
    elif params.get(PARAM_LOCATION) and directory is not None:
        named = params[PARAM_LOCATION].strip()
        match = directory.resolve(named)
        if match is not None and match.name.lower() == named.lower():
            city = match
            changes["location"] = match.name

    search = params.get(PARAM_SEARCH)
    if search:
        changes["search"] = search

    filters = previous.with_changes(**changes) if changes else previous

    viewport = previous_view.viewport
    centered_by: str | None = None
    zoom = parse_zoom(params.get(PARAM_ZOOM))

    center = parse_center(params[PARAM_CENTER]) if params.get(PARAM_CENTER) else None
    if center is not None:
        viewport = Viewport(center=center, zoom=zoom if zoom is not None else COORDINATE_ZOOM)
        centered_by = CENTERED_BY_COORDINATES
    elif city is not None:
        viewport = Viewport(
            center=(city.latitude, city.longitude),
            zoom=zoom if zoom is not None else CITY_ZOOM,
        )
        centered_by = CENTERED_BY_CITY

    view = ViewState(selected_id=params.get(PARAM_ID) or None, viewport=viewport)
    return DecodedState(filters=filters, view=view, city=city, centered_by=centered_by)
