"""Per-library index cache with de-duplicated concurrent builds.

At most one build per library is in flight at any time: callers that arrive
while a build is running await the same task instead of reading the store
again. Invalidation never cancels a running build. Each library carries a
generation number that :meth:`LibraryIndexCache.invalidate` bumps; a build
that finishes under an older generation still answers the callers that were
waiting on it, but its result is not stored.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
import time

from paper_search.domain.model import LibraryIndex
from paper_search.observability.metrics import INDEX_CACHE_EVENTS
from paper_search.search.normalization import normalize_positive_int


logger = logging.getLogger(__name__)

IndexBuilder = Callable[[int], Awaitable[LibraryIndex]]


@dataclass
class IndexCacheMetrics:
    """Lightweight counters for cache instrumentation."""

    hits: int = 0
    misses: int = 0
    joins: int = 0
    loads: int = 0
    discarded: int = 0
    last_load_seconds: float = 0.0
    last_loaded_at: float = 0.0

    def snapshot(self) -> dict[str, float | int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "joins": self.joins,
            "loads": self.loads,
            "discarded": self.discarded,
            "last_load_seconds": round(self.last_load_seconds, 4),
            "last_loaded_at": round(self.last_loaded_at, 6),
        }


class LibraryIndexCache:
    """Owns one :class:`LibraryIndex` per library id.

    All state transitions happen on the event loop thread, so the in-flight
    map is the only coordination needed.
    """

    def __init__(self, builder: IndexBuilder) -> None:
        self._builder = builder
        self._indexes: dict[int, LibraryIndex] = {}
        self._pending: dict[int, asyncio.Task[LibraryIndex]] = {}
        self._generations: dict[int, int] = {}
        self._epoch = 0
        self._metrics: dict[int, IndexCacheMetrics] = {}

    async def get(self, library_id: int) -> LibraryIndex:
        """Return the library's index, building it at most once concurrently."""
        metrics = self._get_or_create_metrics(library_id)

        cached = self._indexes.get(library_id)
        if cached is not None:
            metrics.hits += 1
            INDEX_CACHE_EVENTS.labels(event="hit").inc()
            return cached

        pending = self._pending.get(library_id)
        if pending is not None:
            metrics.joins += 1
            INDEX_CACHE_EVENTS.labels(event="join").inc()
            # Shielded so a cancelled caller does not cancel the shared build
            return await asyncio.shield(pending)

        metrics.misses += 1
        INDEX_CACHE_EVENTS.labels(event="miss").inc()
        task = asyncio.create_task(
            self._load(library_id, self._generation(library_id)),
            name=f"paper-search-index-{library_id}",
        )
        self._pending[library_id] = task
        return await asyncio.shield(task)

    def invalidate(self, library_id: object = None) -> None:
        """Drop one library's cached index, or everything when no valid id is given."""
        normalized = normalize_positive_int(library_id)
        INDEX_CACHE_EVENTS.labels(event="invalidate").inc()
        if normalized is None:
            self._indexes.clear()
            self._pending.clear()
            self._epoch += 1
            logger.debug("Invalidated all paper search indexes")
            return

        self._indexes.pop(normalized, None)
        self._pending.pop(normalized, None)
        self._generations[normalized] = self._generations.get(normalized, 0) + 1
        logger.debug("Invalidated paper search index for library %s", normalized)

    def peek(self, library_id: int) -> LibraryIndex | None:
        """Return the cached index without triggering a build."""
        return self._indexes.get(library_id)

    def is_loading(self, library_id: int) -> bool:
        return library_id in self._pending

    def get_cache_metrics(self, library_id: int | None = None) -> dict[int, dict[str, float | int]]:
        if library_id is not None:
            metrics = self._metrics.get(library_id)
            return {library_id: metrics.snapshot()} if metrics else {}
        return {key: metrics.snapshot() for key, metrics in self._metrics.items()}

    def _generation(self, library_id: int) -> tuple[int, int]:
        return (self._epoch, self._generations.get(library_id, 0))

    def _get_or_create_metrics(self, library_id: int) -> IndexCacheMetrics:
        metrics = self._metrics.get(library_id)
        if metrics is None:
            metrics = IndexCacheMetrics()
            self._metrics[library_id] = metrics
        return metrics

    async def _load(self, library_id: int, generation: tuple[int, int]) -> LibraryIndex:
        task = asyncio.current_task()
        started = time.perf_counter()
        try:
            index = await self._builder(library_id)
            metrics = self._get_or_create_metrics(library_id)
            if self._generation(library_id) != generation:
                metrics.discarded += 1
                INDEX_CACHE_EVENTS.labels(event="discard").inc()
                logger.info("Discarded paper search index for library %s built before an invalidation", library_id)
                return index

            self._indexes[library_id] = index
            metrics.loads += 1
            metrics.last_load_seconds = time.perf_counter() - started
            metrics.last_loaded_at = time.time()
            INDEX_CACHE_EVENTS.labels(event="load").inc()
            return index
        finally:
            # A newer build may already own the slot after an invalidation
            if self._pending.get(library_id) is task:
                del self._pending[library_id]
