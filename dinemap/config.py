from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_PACKAGE_DIR = Path(__file__).resolve().parent

FETCH_MODE_LOCAL = "local"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class AppConfig:
    """
    Runtime configuration for the map application.

    ``fetch_mode`` selects how the map shell talks to the restaurant source:
    ``local`` loads the dataset once and filters in memory, ``server`` asks
    the source to filter and refetches whenever a server-side field changes.
    """

    data_dir: Path = Path(os.getenv("DINEMAP_DATA_DIR", str(_PACKAGE_DIR / "data" / "processed")))
    fetch_mode: str = os.getenv("DINEMAP_FETCH_MODE", FETCH_MODE_LOCAL)
    source_url: str = os.getenv("DINEMAP_SOURCE_URL", "")
    source_timeout: float = float(os.getenv("DINEMAP_SOURCE_TIMEOUT", "10"))
    geolocation_timeout: float = float(os.getenv("DINEMAP_GEOLOCATION_TIMEOUT", "7"))
    cache_ttl: float = float(os.getenv("DINEMAP_CACHE_TTL", "300"))
    map_tile_url: str = os.getenv(
        "MAP_TILE_URL", "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    )
    map_tile_token: str = os.getenv("MAP_TILE_TOKEN", "")
    map_tile_token_required: bool = _env_bool("MAP_TILE_TOKEN_REQUIRED")

    @property
    def restaurants_path(self) -> Path:
        return self.data_dir / "restaurants.csv"

    @property
    def cities_path(self) -> Path:
        return self.data_dir / "cities.json"


DEFAULT_APP_CONFIG = AppConfig()
