from __future__ import annotations

from pydantic import BaseModel, Field


class Restaurant(BaseModel):
    id: str
    name: str
    address: str = ""
    location: str = ""
    city: str = ""
    country: str = ""
    stars: int = Field(..., ge=-1, le=3, description="3/2/1 stars, 0 Bib Gourmand, -1 Selected")
    cuisine: str = ""
    price_level: int = Field(..., ge=1, le=4)
    lat: float
    lng: float
    phone: str | None = None
    website: str | None = None
    michelin_url: str | None = None
    green_star: bool = False
    facilities: list[str] = Field(default_factory=list)
    description: str = ""


class RestaurantQuery(BaseModel):
    """Server-side constraints. ``None`` or empty means no constraint."""

    stars: list[int] | None = None
    countries: list[str] | None = None
    cities: list[str] | None = None
    cuisines: list[str] | None = None
    price_levels: list[int] | None = None
    green_star: bool | None = None
    search: str | None = None
    limit: int | None = Field(default=None, ge=1, le=10000)
    offset: int = Field(default=0, ge=0)


class Pagination(BaseModel):
    limit: int | None
    offset: int
    total: int
    has_more: bool


class RestaurantPage(BaseModel):
    data: list[Restaurant]
    count: int
    pagination: Pagination


class FilterOptions(BaseModel):
    countries: list[str]
    cities: list[str]
    cuisines: list[str]
