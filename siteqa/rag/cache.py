"""
Thread-safe TTL cache of full question responses.

Keys are the sha256 of the normalized question (trimmed, whitespace
collapsed, case-folded), so "What are the fees?" and "  what are the  FEES? "
share an entry. Entries expire after a fixed TTL and are dropped lazily on
access. Concurrent writers for the same key race with last-write-wins.
"""

import copy
import hashlib
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from ..utils.core import collapse_whitespace

logger = logging.getLogger(__name__)


def normalize_question(text: str) -> str:
    """Canonical form of a question used for cache lookups."""
    return collapse_whitespace(text).casefold()


class ResponseCache:
    """
    In-memory response cache with TTL (Time To Live).

    Uses the sha256 hash of the normalized question as key and a
    ``threading.Lock`` around every access for concurrent FastAPI requests.
    """

    def __init__(self, ttl_seconds: int = 3600, enabled: bool = True):
        """
        Initialize cache with TTL.

        Args:
            ttl_seconds: Time to live in seconds for cached entries
            enabled: When False, lookups always miss and writes are ignored
        """
        self._cache: Dict[str, Tuple[Dict[str, Any], datetime]] = {}
        self._lock = threading.Lock()
        self._ttl = timedelta(seconds=ttl_seconds)
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self.hits = 0
        self.misses = 0

    @classmethod
    def from_config(cls, cache_config) -> "ResponseCache":
        """Build a cache from a ``CacheConfig`` section."""
        return cls(ttl_seconds=cache_config.ttl_seconds, enabled=cache_config.enabled)

    @staticmethod
    def make_key(question: str) -> str:
        """Generate cache key from question text using sha256 hash."""
        return hashlib.sha256(normalize_question(question).encode("utf-8")).hexdigest()

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def get(self, question: str) -> Optional[Dict[str, Any]]:
        """
        Get cached response if it exists and has not expired.

        Returns:
            A copy of the cached response, or None
        """
        if not self.enabled:
            return None

        key = self.make_key(question)
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                value, expiry = entry
                if self._now() < expiry:
                    self.hits += 1
                    return copy.deepcopy(value)
                # Expired
                del self._cache[key]
            self.misses += 1
            return None

    def set(self, question: str, response: Dict[str, Any]) -> None:
        """Store a response under the question's key."""
        if not self.enabled:
            return

        key = self.make_key(question)
        now = self._now()
        with self._lock:
            # Writes sweep expired entries so unread questions do not pile up
            purged = self._purge_locked(now)
            self._cache[key] = (copy.deepcopy(response), now + self._ttl)
        if purged:
            logger.debug(f"Purged {purged} expired cache entries")
        logger.debug(f"Cached response for key {key[:16]}")

    def _purge_locked(self, now: datetime) -> int:
        expired = [key for key, (_, expiry) in self._cache.items() if expiry <= now]
        for key in expired:
            del self._cache[key]
        return len(expired)

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._now()
        with self._lock:
            return self._purge_locked(now)

    def clear(self) -> None:
        """Clear all cached entries and reset hit/miss counters."""
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0
        logger.info("Response cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def stats(self) -> Dict[str, int]:
        """Counters reported by the health and cache stats endpoints."""
        self.purge_expired()
        with self._lock:
            return {
                "hits": self.hits,
                "misses": self.misses,
                "keys": len(self._cache),
                "ttlSeconds": self.ttl_seconds,
            }
