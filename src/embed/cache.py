"""
Bounded, time-expiring cache of query embeddings.

Avoids repeated Embedding Provider calls for the same query. Create one
instance per process and share it; call clear() to reset (e.g. in tests).
"""

import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from core.errors import InputError, ProviderError
from core.models import EmbeddingVector, to_vector

from .provider import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 100


@dataclass(frozen=True)
class CacheEntry:
    key: str
    vector: EmbeddingVector
    created_at: float


class VectorCache:
    """
    Query text -> embedding cache with TTL expiry and a size bound.

    Keys are SHA-256 digests of the trimmed, case-folded text. When full,
    the entry with the oldest creation time is evicted (not LRU).

    All reads and writes happen under one lock; the provider call in
    resolve() runs outside it. Failed provider calls are not cached.

    Args:
        provider: Embedding Provider used on cache misses
        ttl_seconds: Maximum entry age
        max_entries: Maximum number of entries
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        provider: Optional[EmbeddingProvider] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic
    ):
        if ttl_seconds <= 0:
            raise InputError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries < 1:
            raise InputError(f"max_entries must be >= 1, got {max_entries}")

        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def normalize(text: str) -> str:
        return text.strip().casefold()

    @classmethod
    def cache_key(cls, text: str) -> str:
        return hashlib.sha256(cls.normalize(text).encode('utf-8')).hexdigest()

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    def get(self, text: str) -> Optional[EmbeddingVector]:
        """Return the cached vector, or None if absent or expired."""
        key = self.cache_key(text)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key[:12]}")
                return None
            return entry.vector

    def put(self, text: str, vector: EmbeddingVector) -> None:
        """Store a vector, evicting expired entries and then the oldest if full."""
        key = self.cache_key(text)
        with self._lock:
            now = self._clock()
            self._evict_expired(now)

            if key in self._entries:
                # Re-insert so dict order keeps following creation time
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                self._evict_oldest()

            self._entries[key] = CacheEntry(key=key, vector=vector, created_at=now)

    def resolve(self, text: str) -> EmbeddingVector:
        """
        Return the embedding for text, calling the provider on a miss.

        Raises:
            ProviderError: If the provider fails or returns malformed output
        """
        vector = self.get(text)
        if vector is not None:
            logger.debug(f"Embedding cache hit ({self.size()} entries)")
            return vector

        if self.provider is None:
            raise ProviderError("No embedding provider configured for cache miss")

        logger.debug("Embedding cache miss, calling provider")
        raw = self.provider.embed(text)
        try:
            vector = to_vector(raw)
        except InputError as e:
            raise ProviderError(f"Malformed embedding from provider: {e}") from e

        self.put(text, vector)
        return vector

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Embedding cache cleared")

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")

    def _evict_oldest(self) -> None:
        oldest_key = None
        oldest_time = None
        for key, entry in self._entries.items():
            if oldest_time is None or entry.created_at < oldest_time:
                oldest_key = key
                oldest_time = entry.created_at
        if oldest_key is not None:
            del self._entries[oldest_key]
            logger.debug(f"Evicted oldest cache entry: {oldest_key[:12]}")
