"""In-process TTL + LRU cache for generated insights."""
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Hashable, Optional

from schemas import AiInsights

logger = logging.getLogger("Cashflow.Cache")


class InsightCache:
    """Maps ``(dataset_id, horizon)`` to the insights generated for it.

    Entries expire ``ttl_seconds`` after they were written; when full, the
    least recently used entry is evicted. A single lock guards the map, so
    concurrent reads and writes never see a half-updated structure.
    """

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        max_entries: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[Hashable, tuple[AiInsights, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[AiInsights]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, written_at = entry
            if self._clock() - written_at >= self.ttl_seconds:
                del self._entries[key]
                logger.debug("Cache entry %s expired", key)
                return None
            self._entries.move_to_end(key)
            return value

    def put(self, key: Hashable, value: AiInsights) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache full, evicted %s", evicted)

    def invalidate_dataset(self, dataset_id: str) -> int:
        """Drop every horizon cached for a dataset; returns how many."""
        with self._lock:
            stale = [k for k in self._entries if isinstance(k, tuple) and k and k[0] == dataset_id]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
