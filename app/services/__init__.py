"""Service layer for business logic."""
from app.services.search_cache import SearchCache, CacheEntry, RateLimitMeta, build_cache_key
from app.services.inflight_registry import InflightRegistry
from app.services.rate_limiter import TokenBucketRateLimiter, get_client_identifier
from app.services.jsearch_client import JSearchClient, FacetResult
from app.services.job_aggregator import JobAggregator, AggregatedSearch

__all__ = [
    "SearchCache",
    "CacheEntry",
    "RateLimitMeta",
    "build_cache_key",
    "InflightRegistry",
    "TokenBucketRateLimiter",
    "get_client_identifier",
    "JSearchClient",
    "FacetResult",
    "JobAggregator",
    "AggregatedSearch",
]
