from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from .analytics.aggregator import compute_analytics
from .analytics.telemetry import CITY_SELECTION_SOURCES, Telemetry
from .cities.directory import City, CityDirectory
from .config import DEFAULT_APP_CONFIG, AppConfig
from .restaurants.cache import QueryCache
from .restaurants.data_store import RestaurantStore
from .restaurants.models import FilterOptions, Restaurant, RestaurantPage, RestaurantQuery
from .restaurants.source import HttpRestaurantSource, RestaurantSource, StoreRestaurantSource
from .shell.navigation import city_target, home_search_target
from .shell.session import FetchMode, MapSession, MapSnapshot

logger = logging.getLogger(__name__)


class MapSettings(BaseModel):
    available: bool
    tile_url: str | None = None
    message: str | None = None


class MapResponse(MapSnapshot):
    map: MapSettings


class CitySelection(BaseModel):
    name: str = Field(..., min_length=1)
    source: str = Field(default="header")


class CitySelectionResponse(BaseModel):
    city: City
    url: str


def map_settings(config: AppConfig) -> MapSettings:
    if config.map_tile_token_required and not config.map_tile_token:
        return MapSettings(
            available=False,
            message="Map unavailable: set MAP_TILE_TOKEN to enable the map.",
        )
    return MapSettings(
        available=True,
        tile_url=config.map_tile_url.replace("{token}", config.map_tile_token),
    )


def _split_list(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    values = [v.strip() for v in raw.split(",") if v.strip()]
    return values or None


def _split_int_list(raw: str | None, name: str) -> list[int] | None:
    values = _split_list(raw)
    if values is None:
        return None
    try:
        return [int(v) for v in values]
    except ValueError:
        raise HTTPException(status_code=422, detail=f"{name} must be a comma-separated list of integers")


# ── Dependencies ─────────────────────────────────────────────────────────


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_store(request: Request) -> RestaurantStore:
    return request.app.state.store


def get_directory(request: Request) -> CityDirectory:
    return request.app.state.directory


def get_telemetry(request: Request) -> Telemetry:
    return request.app.state.telemetry


def get_source(request: Request) -> RestaurantSource:
    return request.app.state.source


def create_app(
    config: AppConfig = DEFAULT_APP_CONFIG,
    store: RestaurantStore | None = None,
    directory: CityDirectory | None = None,
    telemetry: Telemetry | None = None,
    source: RestaurantSource | None = None,
) -> FastAPI:
    """Build the application with its collaborators wired in once."""
    app = FastAPI(title="Restaurant Map API", version="1.0.0")
    fetch_mode = FetchMode(config.fetch_mode)

    if store is None:
        store = RestaurantStore.from_csv(config.restaurants_path, cache=QueryCache(ttl=config.cache_ttl))
    if directory is None:
        directory = CityDirectory.from_json(config.cities_path)
    if source is None:
        if config.source_url:
            source = HttpRestaurantSource(config.source_url, timeout=config.source_timeout)
        else:
            source = StoreRestaurantSource(store)

    app.state.config = config
    app.state.store = store
    app.state.directory = directory
    app.state.telemetry = telemetry if telemetry is not None else Telemetry()
    app.state.source = source

    # ── Public endpoints ─────────────────────────────────────────────────

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/restaurants", response_model=RestaurantPage)
    def list_restaurants(
        stars: str | None = None,
        countries: str | None = None,
        cities: str | None = None,
        cuisines: str | None = None,
        price_level: str | None = Query(default=None, alias="priceLevel"),
        green_star: bool | None = Query(default=None, alias="greenStar"),
        search: str | None = None,
        limit: int | None = Query(default=None, ge=1, le=10000),
        offset: int = Query(default=0, ge=0),
        store: RestaurantStore = Depends(get_store),
    ) -> RestaurantPage:
        query = RestaurantQuery(
            stars=_split_int_list(stars, "stars"),
            countries=_split_list(countries),
            cities=_split_list(cities),
            cuisines=_split_list(cuisines),
            price_levels=_split_int_list(price_level, "priceLevel"),
            green_star=green_star,
            search=search,
            limit=limit,
            offset=offset,
        )
        return store.query(query)

    @app.get("/restaurants/filters", response_model=FilterOptions)
    def restaurant_filters(store: RestaurantStore = Depends(get_store)) -> FilterOptions:
        return store.filter_options()

    @app.get("/restaurants/near", response_model=list[Restaurant])
    def restaurants_near(
        lat: float = Query(..., ge=-90, le=90),
        lng: float = Query(..., ge=-180, le=180),
        radius_km: float = Query(default=50.0, gt=0, le=1000),
        store: RestaurantStore = Depends(get_store),
    ) -> list[Restaurant]:
        return store.near(lat, lng, radius_km)

    @app.get("/restaurants/{restaurant_id}", response_model=Restaurant)
    def restaurant_detail(restaurant_id: str, store: RestaurantStore = Depends(get_store)) -> Restaurant:
        restaurant = store.get(restaurant_id)
        if restaurant is None:
            raise HTTPException(status_code=404, detail="Restaurant not found")
        return restaurant

    @app.get("/cities", response_model=list[City])
    def city_suggestions(
        q: str = "",
        directory: CityDirectory = Depends(get_directory),
    ) -> list[City]:
        return directory.suggest(q)

    @app.post("/cities/select", response_model=CitySelectionResponse)
    def select_city(
        body: CitySelection,
        directory: CityDirectory = Depends(get_directory),
        telemetry: Telemetry = Depends(get_telemetry),
    ) -> CitySelectionResponse:
        if body.source not in CITY_SELECTION_SOURCES:
            raise HTTPException(status_code=422, detail=f"source must be one of {CITY_SELECTION_SOURCES}")
        city = directory.resolve(body.name)
        if city is None:
            raise HTTPException(status_code=404, detail="City not found")
        telemetry.track_city_selection(city.name, body.source)
        return CitySelectionResponse(city=city, url=city_target(city))

    # ── Map page ─────────────────────────────────────────────────────────

    @app.get("/map", response_model=MapResponse)
    async def map_page(
        request: Request,
        config: AppConfig = Depends(get_config),
        directory: CityDirectory = Depends(get_directory),
        telemetry: Telemetry = Depends(get_telemetry),
        source: RestaurantSource = Depends(get_source),
    ) -> MapResponse:
        session = MapSession(
            source=source,
            directory=directory,
            telemetry=telemetry,
            mode=fetch_mode,
        )
        await session.mount(request.url.query)
        telemetry.track_page_view("/map", str(request.url))
        snapshot = session.snapshot()
        return MapResponse(**snapshot.model_dump(), map=map_settings(config))

    @app.get("/search")
    async def search(
        q: str = "",
        city: str | None = None,
        config: AppConfig = Depends(get_config),
        directory: CityDirectory = Depends(get_directory),
    ) -> RedirectResponse:
        selected = directory.resolve(city) if city else None
        # Browser geolocation is not available here; "near me" falls back to text
        target = await home_search_target(q, selected_city=selected, timeout=config.geolocation_timeout)
        if target is None:
            raise HTTPException(status_code=400, detail="Search query is empty")
        return RedirectResponse(target, status_code=307)

    # ── Operational endpoints ────────────────────────────────────────────

    @app.get("/analytics")
    def analytics(telemetry: Telemetry = Depends(get_telemetry)) -> dict:
        return compute_analytics(telemetry.events)

    @app.get("/cache/stats")
    def cache_stats(store: RestaurantStore = Depends(get_store)) -> dict:
        if store.cache is None:
            return {"size": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}
        return store.cache.stats()

    return app


app = create_app()
