import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
QueryKey = Tuple[Hashable, ...]
Generation = Tuple[int, ...]

RESIDENTS = ("residents",)
PROPERTIES = ("properties",)
DASHBOARD_STATS = ("dashboard-stats",)
CITIES = ("cities",)
PROPERTY_NAMES = ("property-names",)

RESIDENT_QUERIES = (RESIDENTS, DASHBOARD_STATS)
PROPERTY_QUERIES = (PROPERTIES, CITIES, PROPERTY_NAMES, RESIDENTS)


class QueryCache:
    """Read results keyed by query identity, dropped explicitly after writes.

    Every ``invalidate`` bumps a generation counter for its prefix. A load that
    started before the bump is returned to its caller but never stored.
    """

    def __init__(self) -> None:
        self._entries: Dict[QueryKey, Any] = {}
        self._generations: Dict[QueryKey, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def _generation(self, key: QueryKey) -> Generation:
        prefixes = tuple(self._generations.get(key[:width], 0) for width in range(1, len(key) + 1))
        return (self._epoch,) + prefixes

    def generation(self, key: QueryKey) -> Generation:
        with self._lock:
            return self._generation(key)

    def get_or_load(self, key: QueryKey, loader: Callable[[], T]) -> T:
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            generation = self._generation(key)
        value = loader()
        self.set(key, value, generation=generation)
        return value

    def get(self, key: QueryKey, default: Any = None) -> Any:
        with self._lock:
            return self._entries.get(key, default)

    def set(self, key: QueryKey, value: Any, generation: Optional[Generation] = None) -> bool:
        """Store ``value`` unless ``key`` was invalidated after ``generation`` was taken."""
        with self._lock:
            if generation is not None and generation != self._generation(key):
                logger.debug("Discarding stale load for %s", key)
                return False
            self._entries[key] = value
            return True

    def invalidate(self, key: QueryKey) -> int:
        """Drop ``key`` and every key it prefixes; returns the number removed."""
        width = len(key)
        with self._lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            stale = [existing for existing in self._entries if existing[:width] == key]
            for existing in stale:
                del self._entries[existing]
        if stale:
            logger.debug("Invalidated %s cached queries under %s", len(stale), key)
        return len(stale)

    def invalidate_many(self, *keys: QueryKey) -> None:
        for key in keys:
            self.invalidate(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._epoch += 1

    def __contains__(self, key: QueryKey) -> bool:
        with self._lock:
            return key in self._entries


query_cache = QueryCache()
