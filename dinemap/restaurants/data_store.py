"""
Restaurant data source backed by the processed guide dataset.

Responsibilities:
- Load the processed restaurants CSV into an in-memory DataFrame.
- Answer filtered, paginated queries the way the public ``/restaurants``
  endpoint exposes them.
- Map stored rows into ``Restaurant`` records in exactly one place.
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import pandas as pd

from .cache import QueryCache
from .models import FilterOptions, Pagination, Restaurant, RestaurantPage, RestaurantQuery

logger = logging.getLogger(__name__)

STORED_COLUMNS: list[str] = [
    "id",
    "name",
    "address",
    "location",
    "city",
    "country",
    "stars",
    "cuisine",
    "price_level",
    "latitude",
    "longitude",
    "phone",
    "website",
    "michelin_url",
    "green_star",
    "facilities",
    "description",
]

_TEXT_COLUMNS = [
    "id", "name", "address", "location", "city", "country", "cuisine",
    "phone", "website", "michelin_url", "facilities", "description",
]

_DEFAULT_PAGE_SIZE = 50
_KM_PER_DEGREE = 111.0


def _optional_text(value: Any) -> str | None:
    if value is None or (not isinstance(value, (list, tuple)) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def _split_facilities(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(f).strip() for f in value if str(f).strip()]
    text = _optional_text(value)
    if not text:
        return []
    return [f.strip() for f in text.split(",") if f.strip()]


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes"}


def row_to_restaurant(row: pd.Series | dict) -> Restaurant:
    """Convert a stored row into a ``Restaurant`` record."""
    return Restaurant(
        id=str(row["id"]),
        name=str(row["name"]),
        address=_optional_text(row.get("address")) or "",
        location=_optional_text(row.get("location")) or "",
        city=_optional_text(row.get("city")) or "",
        country=_optional_text(row.get("country")) or "",
        stars=int(row["stars"]),
        cuisine=_optional_text(row.get("cuisine")) or "",
        price_level=int(row["price_level"]),
        lat=float(row["latitude"]),
        lng=float(row["longitude"]),
        phone=_optional_text(row.get("phone")),
        website=_optional_text(row.get("website")),
        michelin_url=_optional_text(row.get("michelin_url")),
        green_star=_to_bool(row.get("green_star", False)),
        facilities=_split_facilities(row.get("facilities")),
        description=_optional_text(row.get("description")) or "",
    )


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    missing = [c for c in STORED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"restaurant data is missing columns: {missing}")

    df = df[STORED_COLUMNS].copy()
    for col in _TEXT_COLUMNS:
        df[col] = df[col].fillna("").astype(str)
    df["stars"] = df["stars"].astype(int)
    df["price_level"] = df["price_level"].astype(int)
    df["latitude"] = df["latitude"].astype(float)
    df["longitude"] = df["longitude"].astype(float)
    df["green_star"] = df["green_star"].apply(_to_bool)

    # Lowercased columns for case-insensitive matching
    df["city_lower"] = df["city"].str.lower()
    df["country_lower"] = df["country"].str.lower()
    df["cuisine_lower"] = df["cuisine"].str.lower()
    df["search_blob"] = (
        df["name"] + " " + df["cuisine"] + " " + df["description"]
    ).str.lower()
    return df.reset_index(drop=True)


def _lowered(values: list[str]) -> set[str]:
    return {v.strip().lower() for v in values if v and v.strip()}


class RestaurantStore:
    """In-memory restaurant table with query helpers."""

    def __init__(self, df: pd.DataFrame, cache: QueryCache | None = None) -> None:
        self._df = _prepare(df)
        self.cache = cache

    @classmethod
    def from_csv(cls, path: Path, cache: QueryCache | None = None) -> "RestaurantStore":
        df = pd.read_csv(path, dtype={c: str for c in _TEXT_COLUMNS})
        logger.info("Loaded %d restaurants from %s", len(df), path)
        return cls(df, cache=cache)

    @classmethod
    def from_records(cls, rows: list[dict[str, Any]], cache: QueryCache | None = None) -> "RestaurantStore":
        return cls(pd.DataFrame(rows, columns=STORED_COLUMNS), cache=cache)

    def __len__(self) -> int:
        return len(self._df)

    def all(self) -> list[Restaurant]:
        return [row_to_restaurant(row) for _, row in self._df.iterrows()]

    def query(self, query: RestaurantQuery | None = None) -> RestaurantPage:
        query = query or RestaurantQuery()
        cache_key = query.model_dump()
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        df = self._df
        mask = pd.Series(True, index=df.index)

        if query.stars:
            mask = mask & df["stars"].isin(query.stars)
        if query.countries:
            mask = mask & df["country_lower"].isin(_lowered(query.countries))
        if query.cities:
            mask = mask & df["city_lower"].isin(_lowered(query.cities))
        if query.cuisines:
            mask = mask & df["cuisine_lower"].isin(_lowered(query.cuisines))
        if query.price_levels:
            mask = mask & df["price_level"].isin(query.price_levels)
        if query.green_star is not None:
            mask = mask & (df["green_star"] == query.green_star)
        if query.search and query.search.strip():
            term = query.search.strip().lower()
            mask = mask & df["search_blob"].str.contains(term, regex=False)

        matched = df.loc[mask].sort_values(
            ["stars", "name"], ascending=[False, True], kind="mergesort"
        )
        total = len(matched)

        if query.offset:
            page_size = query.limit or _DEFAULT_PAGE_SIZE
            matched = matched.iloc[query.offset: query.offset + page_size]
        elif query.limit:
            matched = matched.iloc[: query.limit]

        data = [row_to_restaurant(row) for _, row in matched.iterrows()]
        page = RestaurantPage(
            data=data,
            count=total,
            pagination=Pagination(
                limit=query.limit,
                offset=query.offset,
                total=total,
                has_more=query.offset + len(data) < total,
            ),
        )

        if self.cache is not None:
            self.cache.set(cache_key, page)
        return page

    def get(self, restaurant_id: str) -> Restaurant | None:
        rows = self._df.loc[self._df["id"] == restaurant_id]
        if rows.empty:
            return None
        return row_to_restaurant(rows.iloc[0])

    def filter_options(self) -> FilterOptions:
        def _distinct(col: str) -> list[str]:
            values = self._df[col]
            return sorted(values[values != ""].unique().tolist())

        return FilterOptions(
            countries=_distinct("country"),
            cities=_distinct("city"),
            cuisines=_distinct("cuisine"),
        )

    def near(self, latitude: float, longitude: float, radius_km: float = 50.0) -> list[Restaurant]:
        """Restaurants inside a rough bounding box around a point."""
        dlat = radius_km / _KM_PER_DEGREE
        cos_lat = math.cos(math.radians(latitude))
        dlng = radius_km / (_KM_PER_DEGREE * cos_lat) if cos_lat > 1e-6 else 180.0

        df = self._df
        mask = (
            df["latitude"].between(latitude - dlat, latitude + dlat)
            & df["longitude"].between(longitude - dlng, longitude + dlng)
        )
        return [row_to_restaurant(row) for _, row in df.loc[mask].iterrows()]
