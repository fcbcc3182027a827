"""
Map page session.

Owns the filter and view state for one visitor of the ``/map`` page, keeps
it mirrored in the page URL and drives the restaurant source.

Lifecycle: ``uninitialized`` -> ``loading`` -> ``ready``. ``mount`` decodes
the incoming URL synchronously and then awaits the first fetch. In
``local`` mode the dataset is fetched once and filtered in memory; in
``server`` mode every filter edit schedules a refetch with the constraints
pushed to the source. Each fetch carries a sequence token so a slow, stale
response can never overwrite a newer one.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ..analytics.telemetry import Telemetry
from ..cities.directory import City, CityDirectory
from ..filters.evaluator import apply_filters
from ..filters.models import (
    AWARD_TIERS,
    CITY_ZOOM,
    DEFAULT_FILTERS,
    RESTAURANT_ZOOM,
    FilterState,
    ViewState,
    Viewport,
)
from ..restaurants.models import Restaurant, RestaurantQuery
from ..restaurants.source import DataFetchError, RestaurantSource
from ..urlstate.codec import decode, encode

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    uninitialized = "uninitialized"
    loading = "loading"
    ready = "ready"


class FetchMode(str, Enum):
    local = "local"
    server = "server"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "default"


FETCH_FAILED = Notification(
    title="Failed to load data",
    description="Please try again later.",
    variant="destructive",
)


class UrlHistory:
    """Navigable history of the page URL (push adds an entry, replace rewrites it)."""

    def __init__(self) -> None:
        self.entries: list[str] = []
        self.index = -1

    @property
    def current(self) -> str | None:
        return self.entries[self.index] if self.entries else None

    def push(self, url: str) -> None:
        del self.entries[self.index + 1:]
        self.entries.append(url)
        self.index = len(self.entries) - 1

    def replace(self, url: str) -> None:
        if not self.entries:
            self.push(url)
        else:
            self.entries[self.index] = url

    def back(self) -> str | None:
        if self.index <= 0:
            return None
        self.index -= 1
        return self.entries[self.index]


class MapSnapshot(BaseModel):
    status: SessionStatus
    url: str
    filters: FilterState
    view: ViewState
    count: int
    restaurants: list[Restaurant]
    selected: Restaurant | None
    notifications: list[dict[str, str]]


class MapSession:
    def __init__(
        self,
        source: RestaurantSource,
        directory: CityDirectory,
        telemetry: Telemetry | None = None,
        mode: FetchMode = FetchMode.local,
        history: UrlHistory | None = None,
        path: str = "/map",
    ) -> None:
        self.source = source
        self.directory = directory
        self.telemetry = telemetry
        self.mode = FetchMode(mode)
        self.history = history or UrlHistory()
        self.path = path

        self.status = SessionStatus.uninitialized
        self.filters: FilterState = DEFAULT_FILTERS
        self.view = ViewState()
        self.restaurants: list[Restaurant] = []
        self.notifications: list[Notification] = []

        self._request_seq = 0
        self._pending: set[asyncio.Task] = set()
        self._sealed = False

    # ── Derived state ────────────────────────────────────────────────────

    @property
    def filtered(self) -> list[Restaurant]:
        return apply_filters(self.restaurants, self.filters)

    @property
    def selected(self) -> Restaurant | None:
        """The selected restaurant, even if the filters currently hide it."""
        if self.view.selected_id is None:
            return None
        for restaurant in self.restaurants:
            if restaurant.id == self.view.selected_id:
                return restaurant
        return None

    @property
    def query_string(self) -> str:
        return encode(self.filters, self.view.selected_id, self.view.viewport)

    @property
    def url(self) -> str:
        query = self.query_string
        return f"{self.path}?{query}" if query else self.path

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def mount(self, query: str = "") -> None:
        if self.status is not SessionStatus.uninitialized:
            raise RuntimeError("session is already mounted")

        decoded = decode(query, directory=self.directory)
        self.filters = decoded.filters
        self.view = decoded.view
        self.history.push(self.url)

        await self._load()

    async def settle(self) -> None:
        """Wait for every fetch scheduled by filter edits."""
        while True:
            pending = [t for t in self._pending if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def commit(self) -> None:
        """Mark the current URL as settled; the next edit starts a new entry."""
        self._sealed = True

    async def go_back(self) -> bool:
        url = self.history.back()
        if url is None:
            return False
        _, _, query = url.partition("?")
        old = self.filters
        decoded = decode(query, directory=self.directory)
        self.filters = decoded.filters
        self.view = decoded.view
        if self.mode is FetchMode.server and self.filters != old:
            await self._load()
        return True

    # ── Fetching ─────────────────────────────────────────────────────────

    def build_query(self) -> RestaurantQuery:
        if self.mode is FetchMode.local:
            return RestaurantQuery()

        f = self.filters
        query: dict[str, Any] = {}
        if not f.has_all_stars:
            query["stars"] = list(f.stars)
        if not f.has_full_price_range:
            low, high = f.price_range
            query["price_levels"] = list(range(low, high + 1))
        if f.cuisines:
            query["cuisines"] = list(f.cuisines)
        if f.search:
            query["search"] = f.search
        if f.location:
            # Only an exact city name can be pushed down; anything looser
            # (a country, "near me") is left to the in-memory check.
            city = self.directory.resolve(f.location)
            if city is not None and city.name.lower() == f.location.lower():
                query["cities"] = [city.name]
        return RestaurantQuery(**query)

    async def _load(self) -> None:
        self._request_seq += 1
        token = self._request_seq
        self.status = SessionStatus.loading
        try:
            data = await self.source.fetch(self.build_query())
        except DataFetchError:
            logger.warning("Restaurant fetch %d failed", token, exc_info=True)
            if token == self._request_seq:
                self.notifications.append(FETCH_FAILED)
                self.status = SessionStatus.ready
            return

        if token != self._request_seq:
            logger.debug("Discarding stale response %d (latest is %d)", token, self._request_seq)
            return
        self.restaurants = data
        self.status = SessionStatus.ready

    def _schedule_fetch(self) -> None:
        task = asyncio.get_running_loop().create_task(self._load())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # ── Mutations ────────────────────────────────────────────────────────

    def _require_mounted(self) -> None:
        if self.status is SessionStatus.uninitialized:
            raise RuntimeError("session has not been mounted")

    def _sync_url(self) -> None:
        if self._sealed:
            self.history.push(self.url)
            self._sealed = False
        else:
            self.history.replace(self.url)

    def _set_filters(self, filters: FilterState) -> None:
        self._require_mounted()
        if filters == self.filters:
            return
        self.filters = filters
        self._sync_url()
        if self.mode is FetchMode.server:
            self._schedule_fetch()

    def _set_view(self, view: ViewState) -> None:
        self._require_mounted()
        if view == self.view:
            return
        self.view = view
        self._sync_url()

    def update_filters(self, **changes: Any) -> None:
        """Apply filter edits; an emptied award set keeps its previous tiers."""
        if "stars" in changes and not [s for s in changes["stars"] if s in AWARD_TIERS]:
            changes.pop("stars")
        self._set_filters(self.filters.with_changes(**changes))

    def toggle_star(self, tier: int) -> None:
        if tier not in AWARD_TIERS:
            raise ValueError(f"unknown award tier: {tier}")
        current = list(self.filters.stars)
        if tier in current:
            remaining = [s for s in current if s != tier]
            stars = remaining or [tier]
        else:
            stars = current + [tier]
        self.update_filters(stars=stars)

    def set_price_range(self, low: int, high: int) -> None:
        self.update_filters(price_range=(low, high))

    def set_location(self, text: str) -> None:
        self.update_filters(location=text)

    def set_search(self, text: str) -> None:
        self.update_filters(search=text)

    def set_cuisines(self, cuisines: list[str]) -> None:
        self.update_filters(cuisines=cuisines)

    def reset_filters(self) -> None:
        self._set_filters(DEFAULT_FILTERS)

    def select_restaurant(self, restaurant_id: str, lat: float | None = None, lng: float | None = None) -> None:
        viewport = self.view.viewport
        if lat is not None and lng is not None:
            viewport = Viewport(center=(lat, lng), zoom=RESTAURANT_ZOOM)
        self._set_view(ViewState(selected_id=restaurant_id, viewport=viewport))

    def clear_selection(self) -> None:
        self._set_view(ViewState(selected_id=None, viewport=self.view.viewport))

    def move_map(self, center: tuple[float, float], zoom: int) -> None:
        self._set_view(
            ViewState(selected_id=self.view.selected_id, viewport=Viewport(center=center, zoom=zoom))
        )

    def select_city(self, city: City, source: str = "header") -> None:
        self._require_mounted()
        self.view = ViewState(
            selected_id=self.view.selected_id,
            viewport=Viewport(center=(city.latitude, city.longitude), zoom=CITY_ZOOM),
        )
        if self.telemetry is not None:
            self.telemetry.track_city_selection(city.name, source)
        if self.filters.location == city.name:
            self._sync_url()
        else:
            self.update_filters(location=city.name)

    # ── Output ───────────────────────────────────────────────────────────

    def snapshot(self) -> MapSnapshot:
        filtered = self.filtered
        return MapSnapshot(
            status=self.status,
            url=self.url,
            filters=self.filters,
            view=self.view,
            count=len(filtered),
            restaurants=filtered,
            selected=self.selected,
            notifications=[
                {"title": n.title, "description": n.description, "variant": n.variant}
                for n in self.notifications
            ],
        )
