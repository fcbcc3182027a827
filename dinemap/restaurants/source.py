"""Restaurant data-source clients consumed by the map shell."""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from .data_store import RestaurantStore
from .models import Restaurant, RestaurantQuery

logger = logging.getLogger(__name__)


class DataFetchError(RuntimeError):
    """The restaurant source could not be reached or returned garbage."""


def query_to_params(query: RestaurantQuery) -> dict[str, str]:
    """Serialise a query into ``/restaurants`` query-string parameters."""
    params: dict[str, str] = {}
    if query.stars:
        params["stars"] = ",".join(str(s) for s in query.stars)
    if query.countries:
        params["countries"] = ",".join(query.countries)
    if query.cities:
        params["cities"] = ",".join(query.cities)
    if query.cuisines:
        params["cuisines"] = ",".join(query.cuisines)
    if query.price_levels:
        params["priceLevel"] = ",".join(str(p) for p in query.price_levels)
    if query.green_star is not None:
        params["greenStar"] = "true" if query.green_star else "false"
    if query.search and query.search.strip():
        params["search"] = query.search.strip()
    if query.limit:
        params["limit"] = str(query.limit)
    if query.offset:
        params["offset"] = str(query.offset)
    return params


class RestaurantSource(ABC):
    @abstractmethod
    async def fetch(self, query: RestaurantQuery) -> list[Restaurant]:
        """Return the restaurants matching ``query`` or raise ``DataFetchError``."""


class StoreRestaurantSource(RestaurantSource):
    """Reads straight from an in-process ``RestaurantStore``."""

    def __init__(self, store: RestaurantStore) -> None:
        self.store = store

    async def fetch(self, query: RestaurantQuery) -> list[Restaurant]:
        try:
            page = await asyncio.to_thread(self.store.query, query)
        except Exception as exc:
            raise DataFetchError("Failed to load") from exc
        return page.data


class HttpRestaurantSource(RestaurantSource):
    """Reads from a remote ``GET /restaurants`` endpoint."""

    def __init__(self, base_url: str, timeout: float = 10.0, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, params: dict[str, str]) -> Any:
        url = f"{self.base_url}/restaurants"
        try:
            resp = self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json", "Cache-Control": "no-store"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DataFetchError(f"request error: {exc}") from exc
        if not resp.ok:
            raise DataFetchError(f"Failed to load: HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise DataFetchError("response was not JSON") from exc

    async def fetch(self, query: RestaurantQuery) -> list[Restaurant]:
        payload = await asyncio.to_thread(self._get, query_to_params(query))
        # Accept both the paginated envelope and a bare list
        rows = payload.get("data", []) if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            raise DataFetchError("unexpected response shape")
        try:
            return [Restaurant.model_validate(row) for row in rows]
        except ValueError as exc:
            raise DataFetchError("malformed restaurant record") from exc
