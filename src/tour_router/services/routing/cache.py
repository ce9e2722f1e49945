"""Thread-safe in-memory cache of optimization results.

Entries are keyed by tour id plus a digest of the optimization parameters and
expire after a TTL. Every code path that changes a tour's stops must call
:meth:`OptimizationCache.invalidate` for that tour, otherwise stale routes are
served until the TTL runs out.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, is_dataclass
from typing import Any, Callable, Hashable, Optional, Protocol

from ...config import settings
from .models import RouteResult

logger = logging.getLogger(__name__)


class RouteCache(Protocol):
    def get(self, tour_id: Hashable, params: Any) -> Optional[RouteResult]:
        ...

    def set(self, tour_id: Hashable, params: Any, result: RouteResult, *, generation: int | None = None) -> None:
        ...

    def invalidate(self, tour_id: Hashable) -> None:
        ...

    def generation(self, tour_id: Hashable) -> int:
        ...

    def clear(self) -> None:
        ...


def _canonical(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return _canonical(asdict(value))
    if hasattr(value, "model_dump"):
        return _canonical(value.model_dump())
    if isinstance(value, dict):
        return {str(key): _canonical(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_canonical(item) for item in value)
    return value


def params_digest(params: Any) -> str:
    raw = json.dumps(_canonical(params or {}), sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


class OptimizationCache:
    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._max_entries = max_entries or settings.cache_max_entries
        self._clock = clock
        self._store: OrderedDict[tuple[Hashable, str], tuple[RouteResult, float]] = OrderedDict()
        self._generations: dict[Hashable, int] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, tour_id: Hashable, params: Any) -> Optional[RouteResult]:
        key = (tour_id, params_digest(params))
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            result, created_at = entry
            if self._clock() - created_at > self._ttl:
                del self._store[key]
                self._misses += 1
                logger.debug("Expired cached route for tour %s", tour_id)
                return None
            self._store.move_to_end(key)
            self._hits += 1
            return result

    def set(self, tour_id: Hashable, params: Any, result: RouteResult, *, generation: int | None = None) -> None:
        """Store ``result``; a ``generation`` older than the tour's current one is discarded."""
        key = (tour_id, params_digest(params))
        with self._lock:
            if generation is not None and generation != self._generations.get(tour_id, 0):
                logger.info("Discarding route for tour %s computed before the last invalidation", tour_id)
                return
            self._store[key] = (result, self._clock())
            self._store.move_to_end(key)
            while len(self._store) > self._max_entries:
                evicted, _ = self._store.popitem(last=False)
                logger.debug("Evicted cached route %s", evicted)

    def invalidate(self, tour_id: Hashable) -> None:
        with self._lock:
            self._generations[tour_id] = self._generations.get(tour_id, 0) + 1
            stale = [key for key in self._store if key[0] == tour_id]
            for key in stale:
                del self._store[key]
        if stale:
            logger.info("Invalidated %d cached route(s) for tour %s", len(stale), tour_id)

    def generation(self, tour_id: Hashable) -> int:
        with self._lock:
            return self._generations.get(tour_id, 0)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._generations.clear()
            self._hits = 0
            self._misses = 0

    @property
    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
            }


class NullRouteCache:
    """Cache that never stores anything."""

    def get(self, tour_id: Hashable, params: Any) -> Optional[RouteResult]:
        return None

    def set(self, tour_id: Hashable, params: Any, result: RouteResult, *, generation: int | None = None) -> None:
        return None

    def invalidate(self, tour_id: Hashable) -> None:
        return None

    def generation(self, tour_id: Hashable) -> int:
        return 0

    def clear(self) -> None:
        return None


optimization_cache = OptimizationCache()
