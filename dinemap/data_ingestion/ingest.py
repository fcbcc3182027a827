from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import List

import pandas as pd

from ..cities.directory import City
from ..restaurants.data_store import STORED_COLUMNS
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

RAW_COLUMNS: List[str] = [
    "Name",
    "Address",
    "Location",
    "Price",
    "Cuisine",
    "Longitude",
    "Latitude",
    "PhoneNumber",
    "Url",
    "WebsiteUrl",
    "Award",
    "GreenStar",
    "FacilitiesAndServices",
    "Description",
]


def parse_award(award: str | None) -> int:
    text = (award or "").strip().lower()
    if text.startswith("3 star"):
        return 3
    if text.startswith("2 star"):
        return 2
    if text.startswith("1 star"):
        return 1
    if "bib gourmand" in text:
        return 0
    return -1


def parse_price_level(price: str | None) -> int:
    """Count currency symbols ("€€€" -> 3), clamped to 1..4."""
    symbols = [ch for ch in str(price or "") if not ch.isspace()]
    return min(max(len(symbols), 1), 4)


def parse_location(location: str | None) -> tuple[str, str]:
    parts = [p.strip() for p in str(location or "").split(", ")]
    if len(parts) >= 2:
        return parts[0], parts[-1]
    return parts[0], ""


def make_id(name: str, address: str) -> str:
    return hashlib.sha256(f"{name}|{address}".encode()).hexdigest()[:16]


def normalize_restaurants(raw: pd.DataFrame) -> pd.DataFrame:
    """Map the raw guide export onto the stored restaurant columns."""
    missing = [c for c in RAW_COLUMNS if c not in raw.columns]
    if missing:
        raise ValueError(f"raw dataset is missing columns: {missing}")

    raw = raw.fillna({c: "" for c in RAW_COLUMNS if c not in ("Latitude", "Longitude")})

    canonical = pd.DataFrame()
    canonical["id"] = [make_id(n, a) for n, a in zip(raw["Name"], raw["Address"])]
    canonical["name"] = raw["Name"].astype(str).str.strip()
    canonical["address"] = raw["Address"].astype(str)
    canonical["location"] = raw["Location"].astype(str)

    locations = raw["Location"].apply(parse_location)
    canonical["city"] = locations.str[0]
    canonical["country"] = locations.str[1]

    canonical["stars"] = raw["Award"].apply(parse_award)
    canonical["cuisine"] = raw["Cuisine"].astype(str)
    canonical["price_level"] = raw["Price"].apply(parse_price_level)
    canonical["latitude"] = pd.to_numeric(raw["Latitude"], errors="coerce")
    canonical["longitude"] = pd.to_numeric(raw["Longitude"], errors="coerce")
    canonical["phone"] = raw["PhoneNumber"].astype(str)
    canonical["website"] = raw["WebsiteUrl"].astype(str)
    canonical["michelin_url"] = raw["Url"].astype(str)
    canonical["green_star"] = raw["GreenStar"].astype(str).str.strip().isin(["1", "1.0", "True", "true"])
    canonical["facilities"] = raw["FacilitiesAndServices"].astype(str)
    canonical["description"] = raw["Description"].astype(str)

    # Rows without usable coordinates cannot be placed on the map
    dropped = canonical["latitude"].isna() | canonical["longitude"].isna()
    if dropped.any():
        logger.warning("Dropping %d restaurants without coordinates", int(dropped.sum()))
    canonical = canonical.loc[~dropped]

    canonical = canonical.drop_duplicates(subset="id", keep="first")
    return canonical[STORED_COLUMNS].reset_index(drop=True)


def build_city_directory(restaurants: pd.DataFrame) -> list[City]:
    """One entry per "City, Country": centroid of its restaurants, sorted by name."""
    located = restaurants.loc[restaurants["location"].str.strip() != ""]
    grouped = (
        located.groupby("location", sort=False)
        .agg(
            name=("city", "first"),
            country=("country", "first"),
            latitude=("latitude", "mean"),
            longitude=("longitude", "mean"),
            restaurant_count=("id", "size"),
        )
        .reset_index()
    )
    grouped = grouped.sort_values("name", key=lambda s: s.str.lower(), kind="mergesort")

    return [
        City(
            name=row["name"],
            country=row["country"],
            full_name=row["location"],
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            restaurant_count=int(row["restaurant_count"]),
        )
        for _, row in grouped.iterrows()
    ]


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> tuple[Path, Path]:
    """
    Execute the extraction pipeline.

    Steps:
    - Read the raw guide CSV.
    - Map raw fields into the stored restaurant schema.
    - Persist restaurants as CSV and the derived city directory as JSON.
    """
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    raw = pd.read_csv(config.raw_path, dtype=str)
    restaurants = normalize_restaurants(raw)
    restaurants.to_csv(config.restaurants_path, index=False)

    cities = build_city_directory(restaurants)
    with open(config.cities_path, "w", encoding="utf-8") as fh:
        json.dump([c.model_dump(by_alias=True) for c in cities], fh, indent=2, ensure_ascii=False)

    logger.info("Wrote %d restaurants and %d cities", len(restaurants), len(cities))
    return config.restaurants_path, config.cities_path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    restaurants_path, cities_path = run_ingestion()
    print(f"Ingestion complete. Restaurants: {restaurants_path}, cities: {cities_path}")
