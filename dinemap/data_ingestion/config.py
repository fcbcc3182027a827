from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the offline extraction pipeline.
    """

    raw_path: Path = Path("data/raw/michelin_my_maps.csv")
    processed_data_dir: Path = Path("dinemap/data/processed")
    restaurants_filename: str = "restaurants.csv"
    cities_filename: str = "cities.json"

    @property
    def restaurants_path(self) -> Path:
        return self.processed_data_dir / self.restaurants_filename

    @property
    def cities_path(self) -> Path:
        return self.processed_data_dir / self.cities_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
