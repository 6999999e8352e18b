"""Time-bounded cache of the full Workflowy outline.

Workflowy allows roughly one /nodes-export call per minute, so every read
view is served from a single cached snapshot. When a refresh is rate
limited and an older snapshot exists, the older snapshot is served (flagged
``stale``) instead of failing.
"""

import dataclasses
import threading
import time
from collections.abc import Callable
from typing import Any

from loguru import logger

from workflowy_bridge.config import DEFAULT_CACHE_TTL
from workflowy_bridge.core.importer.json_reader import parse_export_data
from workflowy_bridge.errors import RateLimitedError
from workflowy_bridge.models.node import Snapshot
from workflowy_bridge.protocols import ApiProtocol


class OutlineCache:
    """Owns the single outline snapshot and decides when to refetch it."""

    def __init__(
        self,
        api: ApiProtocol,
        *,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api = api
        self.ttl = ttl
        self._clock = clock
        self._entry: Snapshot | None = None
        # Guards the check-fetch-replace sequence and invalidate().
        self._lock = threading.Lock()

    def get_snapshot(self, *, force_refresh: bool = False) -> Snapshot:
        """Return the outline, fetching it only when the cached copy is too old.

        Raises:
            RateLimitedError: If the export is rate limited and nothing is cached.
        """
        with self._lock:
            entry = self._entry
            if entry is not None and not force_refresh:
                age = entry.age(self._clock())
                if age < self.ttl:
                    logger.debug("Serving cached snapshot ({:.1f}s old)", age)
                    return entry

            try:
                data = self.api.export_nodes()
            except RateLimitedError as e:
                if entry is None:
                    raise
                logger.warning(
                    "Export rate limited (retry after {}s); serving stale snapshot {:.1f}s old",
                    e.retry_after,
                    entry.age(self._clock()),
                )
                return dataclasses.replace(entry, stale=True)

            snapshot = Snapshot(nodes=parse_export_data(data), fetched_at=self._clock())
            self._entry = snapshot
            logger.debug("Fetched fresh snapshot with {} nodes", len(snapshot.nodes))
            return snapshot

    def invalidate(self) -> None:
        """Drop the cached snapshot so the next read refetches."""
        with self._lock:
            if self._entry is not None:
                logger.info("Outline cache invalidated")
            self._entry = None

    def age_of(self, snapshot: Snapshot) -> float:
        """Seconds since ``snapshot`` was captured, on this cache's clock."""
        return snapshot.age(self._clock())

    def status(self) -> dict[str, Any]:
        """Describe the cache without touching the network."""
        with self._lock:
            entry = self._entry
            if entry is None:
                return {"cached": False, "ttl_seconds": self.ttl}
            age = entry.age(self._clock())
            return {
                "cached": True,
                "node_count": len(entry.nodes),
                "age_seconds": round(age, 1),
                "ttl_seconds": self.ttl,
                "fresh": age < self.ttl,
            }
