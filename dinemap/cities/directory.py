from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MAX_RESULTS = 10
MIN_QUERY_LENGTH = 2


class City(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    country: str
    full_name: str = Field(alias="fullName")
    latitude: float
    longitude: float
    restaurant_count: int = Field(alias="restaurantCount", ge=0)


class CityDirectory:
    """
    Immutable list of guide cities, kept in the order it was built in
    (alphabetical by city name).
    """

    def __init__(self, cities: Iterable[City]) -> None:
        self._cities: tuple[City, ...] = tuple(cities)

    @classmethod
    def from_json(cls, path: Path) -> "CityDirectory":
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
        directory = cls(City.model_validate(item) for item in raw)
        logger.info("Loaded %d cities from %s", len(directory), path)
        return directory

    def __len__(self) -> int:
        return len(self._cities)

    def __iter__(self):
        return iter(self._cities)

    def find_by_name(self, query: str, limit: int = MAX_RESULTS) -> list[City]:
        """Case-insensitive substring match on name or "City, Country"."""
        needle = query.lower()
        matches: list[City] = []
        for city in self._cities:
            if needle in city.name.lower() or needle in city.full_name.lower():
                matches.append(city)
                if len(matches) >= limit:
                    break
        return matches

    def suggest(self, query: str) -> list[City]:
        """Autocomplete suggestions; nothing for queries under two characters."""
        if len(query) < MIN_QUERY_LENGTH:
            return []
        return self.find_by_name(query)

    def resolve(self, name: str) -> City | None:
        """
        Pick one city for ``name``: an exact (case-sensitive) name match
        among the substring matches, otherwise the first match.
        """
        matches = self.find_by_name(name)
        if not matches:
            return None
        for city in matches:
            if city.name == name:
                return city
        return matches[0]
