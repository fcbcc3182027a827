from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

CITY_SELECTION_SOURCES = ("header", "sidebar", "mobile")


class Telemetry:
    """
    Usage event recorder. Build one per application and hand it to whatever
    needs to record events.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._events: list[dict[str, Any]] = []

    def record_event(self, event_type: str, data: dict[str, Any]) -> None:
        if not self.enabled:
            return
        self._events.append({
            "type": event_type,
            "timestamp": time.time(),
            **data,
        })

    def track_page_view(self, page: str, url: str) -> None:
        self.record_event("page_view", {"page": page, "url": url})

    def track_city_selection(self, city: str, source: str) -> None:
        if source not in CITY_SELECTION_SOURCES:
            logger.warning("Unknown city selection source %r", source)
        self.record_event("city_selected", {
            "city": city,
            "source": source,
            "selected_at": datetime.now(timezone.utc).isoformat(),
        })

    @property
    def events(self) -> list[dict[str, Any]]:
        return self._events

    def clear(self) -> None:
        self._events.clear()
