from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 3/2/1 stars, 0 Bib Gourmand, -1 "Selected"
AWARD_TIERS: tuple[int, ...] = (3, 2, 1, 0, -1)
PRICE_MIN = 1
PRICE_MAX = 4
DEFAULT_PRICE_RANGE: tuple[int, int] = (PRICE_MIN, PRICE_MAX)

DEFAULT_CENTER: tuple[float, float] = (39.8, -98.6)
DEFAULT_ZOOM = 2
CITY_ZOOM = 11
COORDINATE_ZOOM = 12
RESTAURANT_ZOOM = 13

_AWARD_LABELS = {0: "Bib Gourmand", -1: "Selected"}


def award_label(stars: int) -> str:
    """Return the display label for an award tier."""
    if stars in _AWARD_LABELS:
        return _AWARD_LABELS[stars]
    return f"{stars} Star{'s' if stars > 1 else ''}"


def clamp_price(value: int) -> int:
    return max(PRICE_MIN, min(PRICE_MAX, value))


class FilterState(BaseModel):
    """User-controlled criteria applied to the restaurant working set."""

    model_config = ConfigDict(frozen=True)

    stars: tuple[int, ...] = AWARD_TIERS
    cuisines: tuple[str, ...] = ()
    price_range: tuple[int, int] = DEFAULT_PRICE_RANGE
    location: str = ""
    search: str = ""

    @field_validator("stars", mode="before")
    @classmethod
    def _normalise_stars(cls, value: Any) -> tuple[int, ...]:
        tiers = {int(v) for v in value if int(v) in AWARD_TIERS}
        if not tiers:
            raise ValueError("award tier set cannot be empty")
        return tuple(sorted(tiers, reverse=True))

    @field_validator("price_range", mode="before")
    @classmethod
    def _clamp_price_range(cls, value: Any) -> tuple[int, int]:
        low, high = (clamp_price(int(v)) for v in value)
        return (low, high) if low <= high else (high, low)

    @field_validator("cuisines", mode="before")
    @classmethod
    def _strip_cuisines(cls, value: Any) -> tuple[str, ...]:
        return tuple(c.strip() for c in value if c and c.strip())

    def with_changes(self, **changes: Any) -> "FilterState":
        """Return a validated copy with ``changes`` applied."""
        return FilterState(**{**self.model_dump(), **changes})

    @property
    def has_all_stars(self) -> bool:
        return set(self.stars) == set(AWARD_TIERS)

    @property
    def has_full_price_range(self) -> bool:
        return self.price_range == DEFAULT_PRICE_RANGE

    @property
    def is_default(self) -> bool:
        return self == DEFAULT_FILTERS


DEFAULT_FILTERS = FilterState()


class Viewport(BaseModel):
    model_config = ConfigDict(frozen=True)

    center: tuple[float, float] = DEFAULT_CENTER
    zoom: int = Field(default=DEFAULT_ZOOM, ge=0, le=22)

    @property
    def is_default(self) -> bool:
        return self.center == DEFAULT_CENTER and self.zoom == DEFAULT_ZOOM


DEFAULT_VIEWPORT = Viewport()


class ViewState(BaseModel):
    """Selection plus map viewport. ``selected_id`` is a weak reference."""

    model_config = ConfigDict(frozen=True)

    selected_id: str | None = None
    viewport: Viewport = DEFAULT_VIEWPORT
