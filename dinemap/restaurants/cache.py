from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any

logger = logging.getLogger(__name__)

_DEFAULT_TTL = 300  # 5 minutes


class QueryCache:
    """TTL cache for restaurant queries, keyed on the normalised query dict."""

    def __init__(self, ttl: float = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        self._entries: dict[str, dict[str, Any]] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(query: dict) -> str:
        normalized = json.dumps(query, sort_keys=True, default=str)
        return hashlib.sha256(normalized.encode()).hexdigest()[:16]

    def get(self, query: dict) -> Any | None:
        key = self.make_key(query)
        entry = self._entries.get(key)
        if entry and time.time() - entry["created_at"] < self.ttl:
            self.hits += 1
            return entry["value"]
        if entry:
            logger.debug("Cache entry %s expired", key)
            del self._entries[key]
        self.misses += 1
        return None

    def set(self, query: dict, value: Any) -> None:
        now = time.time()
        self._prune(now)
        self._entries[self.make_key(query)] = {"value": value, "created_at": now}

    def _prune(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e["created_at"] >= self.ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Pruned %d expired cache entries", len(expired))

    def stats(self) -> dict:
        total = self.hits + self.misses
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / total * 100, 1) if total > 0 else 0.0,
        }

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
