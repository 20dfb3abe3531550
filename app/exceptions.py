"""Error types surfaced by the search API."""
from typing import Any, Dict, Optional

from app.constants.search_options import RATE_LIMITED


class SearchError(Exception):
    """Base error rendered as a structured JSON response."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        reset_hint: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.retry_after_seconds = retry_after_seconds
        self.reset_hint = reset_hint
        self.upstream_status = upstream_status

    def to_dict(self) -> Dict[str, Any]:
        """Response body for this error."""
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.retry_after_seconds is not None:
            body["retryAfterSeconds"] = self.retry_after_seconds
        if self.reset_hint:
            body["resetHint"] = self.reset_hint
        if self.upstream_status is not None:
            body["upstreamStatus"] = self.upstream_status
        return body

    def headers(self) -> Dict[str, str]:
        """Extra response headers for this error."""
        if self.retry_after_seconds is not None:
            return {"Retry-After": str(self.retry_after_seconds)}
        return {}


class ClientValidationError(SearchError):
    status_code = 400
    code = "INVALID_REQUEST"


class ClientRateLimited(SearchError):
    status_code = 429
    code = "CLIENT_RATE_LIMIT"


class UpstreamRateLimited(SearchError):
    """Upstream returned 429; code is RATE_LIMITED or MONTHLY_QUOTA_EXCEEDED."""

    status_code = 429
    code = RATE_LIMITED


class UpstreamTimeout(SearchError):
    status_code = 504
    code = "UPSTREAM_TIMEOUT"


class UpstreamError(SearchError):
    """Upstream failure; status_code mirrors the upstream status when known."""

    status_code = 502
    code = "UPSTREAM_ERROR"


class ConfigurationError(SearchError):
    status_code = 500
    code = "CONFIGURATION_ERROR"


class InternalError(SearchError):
    status_code = 500
    code = "INTERNAL_ERROR"
