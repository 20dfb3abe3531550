"""In-memory TTL cache for upstream search responses with size limits."""
import hashlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from app.config import settings
from app.models.search_models import Job, SearchRequest
from app.utils.cleaning import normalize_text
from app.utils.logging import get_logger

logger = get_logger(__name__)

CACHE_ENDPOINT_TAG = "jsearch:search"


@dataclass(frozen=True)
class RateLimitMeta:
    """Details of an upstream 429, kept so callers can back off."""
    classification: Optional[str]
    retry_after_seconds: Optional[int] = None
    reset_hint: Optional[str] = None
    message: str = ""


@dataclass
class CacheEntry:
    """A completed upstream call."""
    status_code: int
    payload: Any
    jobs: List[Job] = field(default_factory=list)
    rate_limit: Optional[RateLimitMeta] = None
    timestamp: float = 0.0
    ttl: float = 0.0


def build_cache_key(
    facet_label: str,
    query: str,
    filters: SearchRequest,
    page: Optional[int] = None,
    page_count: Optional[int] = None,
) -> str:
    """
    Build the canonical cache key for one facet query.

    Text fields are normalized so casing and whitespace differences map to the
    same key. maxResults is clamped to the configured ceiling. page and
    page_count default to the values carried by filters.
    """
    canonical = {
        "endpoint": CACHE_ENDPOINT_TAG,
        "facet": normalize_text(facet_label),
        "query": normalize_text(query),
        "location": normalize_text(filters.location),
        "locationMode": normalize_text(filters.location_mode),
        "sortBy": normalize_text(filters.sort_by),
        "maxResults": clamp_max_results(filters.max_results),
        "page": int(page if page is not None else filters.page),
        "pageCount": int(page_count if page_count is not None else filters.num_pages),
        "datePosted": normalize_text(filters.date_posted),
    }
    # Insertion order above is the serialization order
    return json.dumps(canonical, separators=(",", ":"), ensure_ascii=False)


def clamp_max_results(max_results: int) -> int:
    """Clamp a requested result count to [1, MAX_RESULTS_CEILING]."""
    return max(1, min(int(max_results), settings.max_results_ceiling))


def hash_cache_key(key: str) -> str:
    """Short stable digest of a cache key for logs."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]


class SearchCache:
    """Bounded in-memory cache with per-entry TTL and FIFO eviction.

    Expiry is checked lazily on read. When the item count exceeds max_items,
    the oldest inserted entries are dropped first.
    """

    def __init__(
        self,
        max_items: Optional[int] = None,
        max_entry_bytes: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_items = max_items or settings.cache_max_items
        self.max_entry_bytes = max_entry_bytes or settings.cache_max_entry_bytes
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for key if it has not expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.timestamp > entry.ttl:
            del self._entries[key]
            logger.debug(
                "Cache entry expired",
                extra={"key_hash": hash_cache_key(key), "cache_size": len(self._entries)}
            )
            return None

        return entry

    def set(self, key: str, entry: CacheEntry, ttl: float) -> bool:
        """Store entry under key with the given TTL. Returns False when skipped."""
        if ttl is None or ttl <= 0:
            return False

        size = self._payload_size(entry.payload)
        if size > self.max_entry_bytes:
            logger.warning(
                f"Skipping cache for oversized payload ({size} bytes)",
                extra={"key_hash": hash_cache_key(key), "payload_bytes": size, "max_entry_bytes": self.max_entry_bytes}
            )
            return False

        entry.timestamp = self._clock()
        entry.ttl = ttl

        # Re-inserting moves the key to the tail
        self._entries.pop(key, None)
        self._entries[key] = entry

        while len(self._entries) > self.max_items:
            oldest_key, _ = self._entries.popitem(last=False)
            logger.debug(
                "Cache full, evicted oldest entry",
                extra={"key_hash": hash_cache_key(oldest_key), "cache_size": len(self._entries)}
            )

        return True

    def delete(self, key: str) -> None:
        """Remove an entry if present."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    @staticmethod
    def _payload_size(payload: Any) -> int:
        if payload is None:
            return 0
        if isinstance(payload, (bytes, bytearray)):
            return len(payload)
        if isinstance(payload, str):
            return len(payload.encode("utf-8"))
        return len(json.dumps(payload, default=str).encode("utf-8"))
