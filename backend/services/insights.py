"""
Insight service — cached, de-duplicated narrative explanations.

Flow for ``explain(dataset_id, horizon)``:
1. Cache hit within TTL → return it (even if the dataset changed since).
2. Another request for the same key already in flight → wait for its result.
3. Otherwise build the grounding payload, make the rate-limited reasoning call,
   cache the result on success and hand it to any waiters.

A failed call is never cached; it is raised to the leader and every waiter,
and the next request starts over.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Optional, Sequence, Tuple

from config import settings
from schemas import AiInsights
from services.grounding import build_grounding_payload
from services.insight_cache import InsightCache
from services.rate_limiter import RateLimiter
from services.reasoning import ReasoningClient

logger = logging.getLogger("Cashflow.Insights")

CacheKey = Tuple[str, int]


class InsightService:
    def __init__(self, client: ReasoningClient, cache: InsightCache, wait_timeout: Optional[float] = None):
        self.client = client
        self.cache = cache
        self.wait_timeout = wait_timeout
        self._inflight: Dict[CacheKey, Future] = {}
        self._inflight_lock = threading.Lock()

    def explain(
        self,
        dataset_id: str,
        horizon: int,
        load_transactions: Callable[[], Sequence],
    ) -> AiInsights:
        if horizon < 1:
            raise ValueError(f"horizon must be at least 1, got {horizon}")
        key = (dataset_id, horizon)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Insight cache hit for %s", key)
            return cached

        with self._inflight_lock:
            # re-check: a leader may have finished between the lookup and the lock
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future

        if not leader:
            logger.info("Insight request for %s already in flight, waiting", key)
            return future.result(timeout=self.wait_timeout)

        logger.info("Insight cache miss for %s", key)
        try:
            payload = build_grounding_payload(dataset_id, load_transactions(), horizon)
            insights = self.client.generate(payload)
        except BaseException as e:
            # waiters must be released however the leader exits
            future.set_exception(e)
            raise
        else:
            self.cache.put(key, insights)
            future.set_result(insights)
            return insights
        finally:
            with self._inflight_lock:
                self._inflight.pop(key, None)

    def forget_dataset(self, dataset_id: str) -> None:
        removed = self.cache.invalidate_dataset(dataset_id)
        if removed:
            logger.info("Dropped %d cached insight(s) for dataset %s", removed, dataset_id)


def build_insight_service(completion: Optional[Callable[..., str]] = None) -> InsightService:
    """Wire one rate limiter, client and cache from settings."""
    limiter = RateLimiter(min_interval=settings.LLM_MIN_INTERVAL_MS / 1000.0)
    client_kwargs = {"completion": completion} if completion is not None else {}
    client = ReasoningClient(limiter, **client_kwargs)
    cache = InsightCache(
        ttl_seconds=settings.INSIGHT_CACHE_TTL_SECONDS,
        max_entries=settings.INSIGHT_CACHE_MAX_ENTRIES,
    )
    return InsightService(client, cache)
