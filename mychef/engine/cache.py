"""Result cache keyed by the canonical serialization of SearchParams.

Entries are immutable once written and expire after a fixed TTL. Expired
entries are treated as misses and removed lazily on read. The backing store
is any MutableMapping, so a session-storage adapter can replace the default dict.
"""

import time
from typing import Callable, List, MutableMapping, Optional

from mychef.models.models import CacheEntry, Recipe, SearchParams
from mychef.utils.config import config
from mychef.utils.logger import logger


class ResultCache:
    """TTL cache of resolved searches, scoped to one caller/session."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        store: Optional[MutableMapping[str, CacheEntry]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime. Defaults to CACHE_TTL_MINUTES.
            store: Backing key/value store. Defaults to an in-memory dict.
            clock: Monotonic time source (injectable for tests).
        """
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.CACHE_TTL_MINUTES * 60
        self._store: MutableMapping[str, CacheEntry] = store if store is not None else {}
        self._clock = clock

    def get(self, params: SearchParams) -> Optional[CacheEntry]:
        key = params.cache_key()
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            logger.debug("Cache entry expired, evicting")
            del self._store[key]
            return None
        return entry

    def put(self, params: SearchParams, results: List[Recipe], strategy_used: str) -> CacheEntry:
        key = params.cache_key()
        entry = CacheEntry(key=key, results=list(results), strategy_used=strategy_used, stored_at=self._clock())
        self._store[key] = entry
        return entry

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
