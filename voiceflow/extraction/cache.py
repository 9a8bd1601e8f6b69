"""Time-bounded in-memory cache for extraction results.

Entries are keyed by a transcript fingerprint (language + transcript text) and
expire after a fixed TTL. Expired entries are dropped lazily on lookup and swept
in bulk once the cache grows past its size threshold. There is no LRU eviction
and no persistence; the cache lives as long as the process.
"""

import logging
import threading
import time
import zlib
from collections.abc import Callable
from dataclasses import dataclass

from voiceflow.extraction.schema import TransactionData
from voiceflow.shared.config import Settings

logger = logging.getLogger(__name__)


def transcript_fingerprint(transcript: str, language: str) -> str:
    """Build the cache key for a transcript.

    CRC32 over transcript + language. Collisions are possible and accepted.

    Args:
        transcript: Transcribed text
        language: Supported language code

    Returns:
        Key such as 'th:1a2b3c4d'
    """
    digest = zlib.crc32(f"{transcript}{language}".encode()) & 0xFFFFFFFF
    return f"{language}:{digest:08x}"


@dataclass
class CacheEntry:
    data: TransactionData
    timestamp: float


class TransactionCache:
    """Thread-safe TTL cache of validated TransactionData.

    Args:
        ttl_seconds: Entry lifetime
        max_entries: Size above which a write triggers an expiry sweep
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TransactionCache":
        return cls(ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> TransactionData | None:
        """Return a copy of the cached transaction, or None on miss/expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss for {key}")
                return None
            if self._is_expired(entry):
                del self._entries[key]
                logger.debug(f"Cache entry {key} expired")
                return None
            logger.debug(f"Cache hit for {key}")
            return entry.data.model_copy(deep=True)

    def put(self, key: str, data: TransactionData) -> None:
        """Store a transaction, sweeping expired entries past the size threshold."""
        with self._lock:
            self._entries[key] = CacheEntry(data=data.model_copy(deep=True), timestamp=self._clock())
            if len(self._entries) > self.max_entries:
                removed = self._sweep()
                logger.info(f"Cache sweep removed {removed} expired entries")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp >= self.ttl_seconds

    def _sweep(self) -> int:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired:
            del self._entries[key]
        return len(expired)
