from __future__ import annotations

import asyncio

import pytest

from dinemap.cities.directory import City, CityDirectory
from dinemap.restaurants.models import Restaurant, RestaurantQuery
from dinemap.restaurants.source import DataFetchError, RestaurantSource


def _restaurant(**overrides) -> Restaurant:
    fields = {
        "id": "r1",
        "name": "Le Bistro",
        "address": "1 Rue de Rivoli, Paris",
        "location": "Paris, France",
        "city": "Paris",
        "country": "France",
        "stars": 1,
        "cuisine": "French",
        "price_level": 2,
        "lat": 48.8566,
        "lng": 2.3522,
    }
    fields.update(overrides)
    return Restaurant(**fields)


def make_city(name: str, country: str, lat: float, lng: float, count: int = 1) -> City:
    return City(
        name=name,
        country=country,
        full_name=f"{name}, {country}",
        latitude=lat,
        longitude=lng,
        restaurant_count=count,
    )


@pytest.fixture
def directory() -> CityDirectory:
    return CityDirectory([
        make_city("Cormeilles-en-Parisis", "France", 48.973, 2.201),
        make_city("London", "United Kingdom", 51.5166, -0.2001),
        make_city("New York", "USA", 40.74735, -73.9927, 2),
        make_city("Paris", "France", 48.85735, 2.3282, 2),
        make_city("Tokyo", "Japan", 35.69925, 139.727, 2),
    ])


@pytest.fixture
def restaurants() -> list[Restaurant]:
    return [
        _restaurant(id="paris-1", name="Arpège", stars=3, price_level=4, cuisine="Creative"),
        _restaurant(id="paris-2", name="Le Bistro du Marché", stars=0, price_level=2),
        _restaurant(
            id="tokyo-1", name="Sushi Saito", stars=3, price_level=4, cuisine="Sushi",
            city="Tokyo", country="Japan", location="Tokyo, Japan", lat=35.6665, lng=139.74,
        ),
        _restaurant(
            id="ny-1", name="Via Carota", stars=-1, price_level=2, cuisine="Italian",
            city="New York", country="USA", location="New York, USA", lat=40.7332, lng=-74.0036,
        ),
    ]


class FakeSource(RestaurantSource):
    """Source returning canned data; optionally slow or failing per call."""

    def __init__(self, data: list[Restaurant] | None = None) -> None:
        self.data = data or []
        self.calls: list[RestaurantQuery] = []
        self.delays: list[float] = []
        self.responses: list[list[Restaurant]] = []
        self.fail = False

    async def fetch(self, query: RestaurantQuery) -> list[Restaurant]:
        call = len(self.calls)
        self.calls.append(query)
        if call < len(self.delays):
            await asyncio.sleep(self.delays[call])
        if self.fail:
            raise DataFetchError("Failed to load")
        if call < len(self.responses):
            return self.responses[call]
        return self.data


@pytest.fixture
def source(restaurants) -> FakeSource:
    return FakeSource(restaurants)


@pytest.fixture
def make_restaurant():
    return _restaurant
