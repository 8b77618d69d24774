"""Search response caching: Redis when reachable, process memory otherwise.

Values are ``SmartSearchResult`` payloads dumped to JSON-compatible dicts.
Keys come from :func:`search_cache_key` and embed the catalog fingerprint, so a
reload never serves rankings of the previous catalog.
"""
from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Protocol

import redis

from .config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "portal-search:"
# Live search issues a query per pause in typing; keep memory bounded.
MAX_MEMORY_ENTRIES = 2048

Payload = Dict[str, Any]


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[Payload]: ...

    def set(self, key: str, value: Payload, ttl: int) -> None: ...


@dataclass
class RedisCache:
    client: redis.Redis
    prefix: str = KEY_PREFIX

    def get(self, key: str) -> Optional[Payload]:
        try:
            data = self.client.get(self.prefix + key)
        except redis.RedisError as exc:
            logger.warning("Redis get failed: %s", exc)
            return None
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            logger.warning("Dropping undecodable cache entry %s", key)
            return None

    def set(self, key: str, value: Payload, ttl: int) -> None:
        try:
            self.client.setex(self.prefix + key, ttl, json.dumps(value))
        except redis.RedisError as exc:
            logger.warning("Redis set failed: %s", exc)


class InMemoryCache:
    """TTL cache that evicts the oldest entries past ``max_entries``."""

    def __init__(self, max_entries: int = MAX_MEMORY_ENTRIES) -> None:
        self._store: "OrderedDict[str, tuple[float, Payload]]" = OrderedDict()
        self._max_entries = max_entries
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Payload]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if expires_at < time.time():
                del self._store[key]
                return None
            return payload

    def set(self, key: str, value: Payload, ttl: int) -> None:
        with self._lock:
            self._store[key] = (time.time() + ttl, value)
            self._store.move_to_end(key)
            while len(self._store) > self._max_entries:
                self._store.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


def search_cache_key(
    query: str, categories: Iterable[str], brands: Iterable[str], catalog_version: str
) -> str:
    """Stable key for one search over one catalog snapshot.

    The query keeps its case because ``noResultsMessage`` echoes it back.
    """
    payload = json.dumps(
        {
            "q": (query or "").strip(),
            "categories": sorted(item.casefold() for item in categories),
            "brands": sorted(item.casefold() for item in brands),
            "catalog": catalog_version,
        },
        sort_keys=True,
    )
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


_cache: CacheBackend | None = None


def get_cache() -> CacheBackend:
    global _cache
    if _cache is not None:
        return _cache
    try:
        client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
        client.ping()
        logger.info("Using Redis cache at %s:%s", settings.redis_host, settings.redis_port)
        _cache = RedisCache(client)
    except redis.RedisError:
        logger.warning("Redis not available, caching search responses in memory")
        _cache = InMemoryCache()
    return _cache
