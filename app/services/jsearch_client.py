"""Client for the JSearch job API with caching and request coalescing."""
import asyncio
import logging
import math
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx

from app.config import settings
from app.constants.search_options import (
    FACET_SEARCH_TERMS,
    LOCATION_REMOTE_ONLY,
    MONTHLY_QUOTA_EXCEEDED,
    RATE_LIMITED,
)
from app.exceptions import ConfigurationError, UpstreamError, UpstreamRateLimited, UpstreamTimeout
from app.models.search_models import Job, SearchRequest
from app.services.inflight_registry import InflightRegistry
from app.services.job_normalizer import map_upstream_jobs
from app.services.search_cache import (
    CacheEntry,
    RateLimitMeta,
    SearchCache,
    build_cache_key,
    hash_cache_key,
)
from app.utils.cleaning import collapse_whitespace
from app.utils.logging import get_logger
from app.utils.safe_logger import safe_log

logger = get_logger(__name__)

# Fragile: relies on the wording of RapidAPI's quota message
MONTHLY_QUOTA_PATTERN = re.compile(r"monthly\s+quota|exceeded\s+the\s+monthly|monthly\s+limit", re.IGNORECASE)

RESET_HEADERS = ["x-ratelimit-requests-reset", "x-ratelimit-reset"]

# Reset header values above this are absolute unix timestamps
_EPOCH_THRESHOLD = 1_000_000_000


@dataclass
class FacetResult:
    """Jobs for one facet plus how they were obtained."""
    facet: str
    jobs: List[Job] = field(default_factory=list)
    cache_hit: bool = False
    inflight_hit: bool = False


def build_upstream_query(facet_label: str, filters: SearchRequest) -> str:
    """
    Compose the upstream query text for one facet.

    keyword + facet search terms + location, plus "remote" for Remote Only.
    """
    parts = [filters.keyword, FACET_SEARCH_TERMS.get(facet_label, ""), filters.location or ""]
    if filters.location_mode == LOCATION_REMOTE_ONLY:
        parts.append("remote")
    return collapse_whitespace(" ".join(parts))


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
    """
    Parse a Retry-After header value.

    Accepts delta-seconds ("5", "2.5") or an HTTP-date. Returns whole seconds,
    never negative, or None when the value is missing or unparseable.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            return None
        return max(0, math.ceil(seconds))

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0, math.ceil((when - now).total_seconds()))


def parse_reset_header(value: Optional[str], now: Optional[float] = None) -> Optional[int]:
    """Parse a rate-limit reset header given in seconds or as a unix timestamp."""
    if value is None:
        return None
    try:
        seconds = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(seconds):
        return None
    if seconds > _EPOCH_THRESHOLD:
        seconds -= now if now is not None else time.time()
    return max(0, math.ceil(seconds))


def humanize_seconds(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    if seconds < 3600:
        minutes = math.ceil(seconds / 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    if seconds < 86400:
        hours = math.ceil(seconds / 3600)
        return f"{hours} hour{'s' if hours != 1 else ''}"
    days = math.ceil(seconds / 86400)
    return f"{days} day{'s' if days != 1 else ''}"


def extract_upstream_message(response: httpx.Response) -> str:
    """Best-effort human message from an upstream error response."""
    try:
        body = response.json()
    except ValueError:
        return collapse_whitespace(response.text)[:500]

    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
    return collapse_whitespace(str(body))[:500]


def classify_rate_limit(response: httpx.Response) -> RateLimitMeta:
    """Build rate-limit metadata from an upstream 429 response."""
    message = extract_upstream_message(response)
    classification = MONTHLY_QUOTA_EXCEEDED if MONTHLY_QUOTA_PATTERN.search(message) else RATE_LIMITED

    retry_after = parse_retry_after(response.headers.get("retry-after"))
    if retry_after is None:
        for header in RESET_HEADERS:
            retry_after = parse_reset_header(response.headers.get(header))
            if retry_after is not None:
                break

    if classification == MONTHLY_QUOTA_EXCEEDED:
        if retry_after is not None:
            reset_hint = f"Monthly request quota exhausted; resets in about {humanize_seconds(retry_after)}"
        else:
            reset_hint = "Monthly request quota exhausted; resets at the start of the next billing period"
    elif retry_after is not None:
        reset_hint = f"Try again in {humanize_seconds(retry_after)}"
    else:
        reset_hint = "Try again in a few seconds"

    return RateLimitMeta(
        classification=classification,
        retry_after_seconds=retry_after,
        reset_hint=reset_hint,
        message=message,
    )


def rate_limit_error(meta: RateLimitMeta) -> UpstreamRateLimited:
    if meta.classification == MONTHLY_QUOTA_EXCEEDED:
        message = "Job search provider monthly quota exceeded"
    else:
        message = "Job search provider rate limit reached"
    return UpstreamRateLimited(
        message,
        code=meta.classification or RATE_LIMITED,
        retry_after_seconds=meta.retry_after_seconds,
        reset_hint=meta.reset_hint,
        upstream_status=429,
    )


class JSearchClient:
    """Fetches one facet of a search from JSearch.

    Lookup order per facet: cache, then an in-progress identical call, then a
    new upstream request. Successful responses are cached with the long TTL and
    429 responses with the short TTL; timeouts and other errors are not cached.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: SearchCache,
        inflight: InflightRegistry,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        host: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        success_ttl: Optional[float] = None,
        rate_limited_ttl: Optional[float] = None,
    ):
        self.http_client = http_client
        self.cache = cache
        self.inflight = inflight
        self.api_key = api_key if api_key is not None else settings.rapidapi_key
        self.base_url = (base_url or settings.jsearch_base_url).rstrip("/")
        self.host = host or settings.jsearch_host
        self.timeout_seconds = timeout_seconds or settings.upstream_timeout_seconds
        self.success_ttl = success_ttl if success_ttl is not None else settings.cache_ttl_seconds
        self.rate_limited_ttl = (
            rate_limited_ttl if rate_limited_ttl is not None else settings.rate_limited_cache_ttl_seconds
        )

    async def fetch_facet(self, facet_label: str, filters: SearchRequest) -> FacetResult:
        """Return the jobs for one facet, raising a SearchError on failure."""
        started = time.perf_counter()
        query = build_upstream_query(facet_label, filters)
        key = build_cache_key(facet_label, filters.keyword, filters)
        key_hash = hash_cache_key(key)

        entry = self.cache.get(key)
        if entry is not None:
            self._log_outcome(
                logging.INFO, "Facet served from cache",
                facet=facet_label, key_hash=key_hash, started=started,
                cache="HIT", inflight="SKIP", upstream="SKIP", status_code=entry.status_code,
            )
            return self._result_from_entry(facet_label, entry, cache_hit=True, inflight_hit=False)

        task, joined = self.inflight.get_or_create(
            key, lambda: self._call_upstream(key, key_hash, facet_label, query, filters)
        )
        if joined:
            self._log_outcome(
                logging.INFO, "Facet joined in-flight upstream call",
                facet=facet_label, key_hash=key_hash, started=started,
                cache="MISS", inflight="HIT", upstream="SHARED",
            )

        entry = await asyncio.shield(task)
        return self._result_from_entry(facet_label, entry, cache_hit=False, inflight_hit=joined)

    def _result_from_entry(
        self, facet_label: str, entry: CacheEntry, cache_hit: bool, inflight_hit: bool
    ) -> FacetResult:
        if entry.status_code == 429:
            raise rate_limit_error(entry.rate_limit or RateLimitMeta(classification=RATE_LIMITED))
        return FacetResult(
            facet=facet_label,
            jobs=list(entry.jobs),
            cache_hit=cache_hit,
            inflight_hit=inflight_hit,
        )

    async def _call_upstream(
        self, key: str, key_hash: str, facet_label: str, query: str, filters: SearchRequest
    ) -> CacheEntry:
        started = time.perf_counter()
        outcome = {"facet": facet_label, "key_hash": key_hash, "cache": "MISS", "inflight": "MISS"}

        if not self.api_key:
            self._log_outcome(
                logging.ERROR, "RAPIDAPI_KEY is not configured",
                started=started, upstream="SKIP", **outcome,
            )
            raise ConfigurationError("API configuration error")

        try:
            response = await asyncio.wait_for(
                self.http_client.get(
                    f"{self.base_url}/search",
                    params=self._build_params(query, filters),
                    headers=self._build_headers(),
                    timeout=self.timeout_seconds,
                ),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            self._log_outcome(logging.WARNING, "Upstream call timed out", started=started, upstream="TIMEOUT", **outcome)
            raise UpstreamTimeout(
                f"Job search provider did not respond within {self.timeout_seconds:g} seconds",
                upstream_status=504,
            )
        except httpx.TransportError as e:
            self._log_outcome(
                logging.WARNING, f"Upstream transport error: {e}",
                started=started, upstream="UNAVAILABLE", error=str(e), **outcome,
            )
            raise UpstreamError(
                "Job search provider is unreachable",
                code="UPSTREAM_UNAVAILABLE",
            )

        status = response.status_code

        if 200 <= status < 300:
            try:
                jobs, payload = self._parse_success(response, facet_label)
            except UpstreamError as e:
                self._log_outcome(
                    logging.ERROR, f"Upstream returned a malformed response: {e.message}",
                    started=started, upstream="BAD_RESPONSE", status_code=status, **outcome,
                )
                raise
            entry = CacheEntry(status_code=status, payload=payload, jobs=jobs)
            cached = self.cache.set(key, entry, self.success_ttl)
            self._log_outcome(
                logging.INFO, f"Upstream returned {len(jobs)} jobs",
                started=started, upstream="OK", status_code=status, job_count=len(jobs), cached=cached, **outcome,
            )
            return entry

        if status == 429:
            meta = classify_rate_limit(response)
            entry = CacheEntry(status_code=status, payload={"message": meta.message}, rate_limit=meta)
            cached = self.cache.set(key, entry, self.rate_limited_ttl)
            self._log_outcome(
                logging.WARNING, f"Upstream rate limited: {meta.classification}",
                started=started, upstream="RATE_LIMITED", status_code=status, cached=cached,
                classification=meta.classification, retry_after_seconds=meta.retry_after_seconds,
                upstream_message=meta.message, **outcome,
            )
            return entry

        message = extract_upstream_message(response)
        self._log_outcome(
            logging.ERROR, f"Upstream error {status}: {message}",
            started=started, upstream="ERROR", status_code=status, upstream_message=message, **outcome,
        )
        raise UpstreamError(
            message or f"Job search provider returned HTTP {status}",
            status_code=status,
            upstream_status=status,
        )

    def _parse_success(self, response: httpx.Response, facet_label: str) -> Tuple[List[Job], Dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError:
            raise UpstreamError(
                "Job search provider returned an unreadable response",
                code="UPSTREAM_BAD_RESPONSE",
                upstream_status=response.status_code,
            )

        if not isinstance(payload, dict):
            raise UpstreamError(
                "Job search provider returned an unexpected response",
                code="UPSTREAM_BAD_RESPONSE",
                upstream_status=response.status_code,
            )

        upstream_status = payload.get("status")
        if upstream_status is not None and str(upstream_status).upper() != "OK":
            raise UpstreamError(
                extract_upstream_message(response) or f"Job search provider status {upstream_status}",
                code="UPSTREAM_BAD_RESPONSE",
                upstream_status=response.status_code,
            )

        data = payload.get("data")
        if data is None:
            data = []
        if not isinstance(data, list):
            raise UpstreamError(
                "Job search provider returned an unexpected response",
                code="UPSTREAM_BAD_RESPONSE",
                upstream_status=response.status_code,
            )

        return map_upstream_jobs(data, facet_label), payload

    def _build_params(self, query: str, filters: SearchRequest) -> Dict[str, str]:
        return {
            "query": query,
            "page": str(filters.page),
            "num_pages": str(filters.num_pages),
            "date_posted": filters.date_posted or "all",
        }

    def _build_headers(self) -> Dict[str, str]:
        return {
            "X-RapidAPI-Key": self.api_key or "",
            "X-RapidAPI-Host": self.host,
        }

    @staticmethod
    def _log_outcome(level: int, message: str, *, started: float, **context: Any) -> None:
        context["duration_ms"] = round((time.perf_counter() - started) * 1000, 1)
        safe_log(logger, level, message, extra=context)
