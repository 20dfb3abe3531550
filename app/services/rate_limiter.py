"""Per-client token bucket rate limiting for inbound search requests."""
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from app.config import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class TokenBucket:
    tokens: float
    last_refill: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int = 0


def get_client_identifier(headers: Mapping[str, str], client_host: Optional[str] = None) -> str:
    """
    Derive a client identifier for rate limiting.

    Uses the first X-Forwarded-For address, then X-Real-IP, then the direct
    connection host. Header values are client-controlled, so this is an abuse
    deterrent rather than a security boundary.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return client_host or UNKNOWN_CLIENT


class TokenBucketRateLimiter:
    """Token bucket per client identifier.

    Each bucket holds up to `capacity` tokens and regains `capacity` tokens per
    `window_seconds`, added in whole tokens. Buckets are created on first use
    and live for the lifetime of the process.
    """

    def __init__(
        self,
        capacity: Optional[int] = None,
        window_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.capacity = capacity or settings.rate_limit_capacity
        self.window_seconds = window_seconds or settings.rate_limit_window_seconds
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}

    @property
    def seconds_per_token(self) -> float:
        return self.window_seconds / self.capacity

    def __len__(self) -> int:
        return len(self._buckets)

    def consume(self, client_id: str) -> RateLimitDecision:
        """Take one token for client_id if available."""
        now = self._clock()
        bucket = self._buckets.get(client_id)
        if bucket is None:
            bucket = TokenBucket(tokens=float(self.capacity), last_refill=now)
            self._buckets[client_id] = bucket
        else:
            self._refill(bucket, now)

        if bucket.tokens >= 1:
            bucket.tokens -= 1
            return RateLimitDecision(allowed=True, remaining=int(bucket.tokens))

        wait = self.seconds_per_token - (now - bucket.last_refill)
        retry_after = max(1, math.ceil(wait))
        logger.warning(
            f"Client rate limit exceeded: {client_id}",
            extra={"client_id": client_id, "retry_after_seconds": retry_after}
        )
        return RateLimitDecision(allowed=False, remaining=0, retry_after_seconds=retry_after)

    def _refill(self, bucket: TokenBucket, now: float) -> None:
        if bucket.tokens >= self.capacity:
            bucket.last_refill = now
            return

        elapsed = now - bucket.last_refill
        new_tokens = math.floor(elapsed / self.window_seconds * self.capacity)
        if new_tokens <= 0:
            return

        if bucket.tokens + new_tokens >= self.capacity:
            bucket.tokens = float(self.capacity)
            bucket.last_refill = now
        else:
            bucket.tokens += new_tokens
            # Keep the fractional progress toward the next token
            bucket.last_refill += new_tokens * self.seconds_per_token

    def reset(self) -> None:
        """Forget every bucket."""
        self._buckets.clear()
