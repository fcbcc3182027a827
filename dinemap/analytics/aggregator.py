from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    page_views = [e for e in events if e["type"] == "page_view"]
    selections = [e for e in events if e["type"] == "city_selected"]

    # Page views per page
    page_counter: Counter[str] = Counter(e.get("page", "unknown") for e in page_views)

    # Top selected cities
    city_counter: Counter[str] = Counter(e.get("city", "unknown") for e in selections)
    top_cities = [{"name": n, "count": c} for n, c in city_counter.most_common(10)]

    # Where selections come from
    source_counter: Counter[str] = Counter(e.get("source", "unknown") for e in selections)

    return {
        "total_page_views": len(page_views),
        "page_views": dict(page_counter),
        "total_city_selections": len(selections),
        "top_cities": top_cities,
        "selections_by_source": dict(source_counter),
    }
