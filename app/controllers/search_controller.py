"""Controller for job search requests."""
from typing import Dict, Tuple

from app.constants.search_options import VALID_LOCATION_MODES, VALID_SORT_MODES
from app.exceptions import (
    ClientRateLimited,
    ClientValidationError,
    ConfigurationError,
    InternalError,
    SearchError,
)
from app.models.search_models import SearchRequest, SearchResponse
from app.services.job_aggregator import JobAggregator
from app.services.rate_limiter import TokenBucketRateLimiter
from app.utils.logging import get_logger

logger = get_logger(__name__)


class SearchController:
    """Controller for handling aggregated job searches."""

    def __init__(
        self,
        rate_limiter: TokenBucketRateLimiter,
        aggregator: JobAggregator,
        api_key_configured: bool = True,
    ):
        self.rate_limiter = rate_limiter
        self.aggregator = aggregator
        self.api_key_configured = api_key_configured

    async def search(self, search_request: SearchRequest, client_id: str) -> Tuple[SearchResponse, Dict[str, str]]:
        """Admit, validate and run a search. Returns the response body and headers."""
        decision = self.rate_limiter.consume(client_id)
        if not decision.allowed:
            raise ClientRateLimited(
                "Too many requests. Please slow down.",
                retry_after_seconds=decision.retry_after_seconds,
            )

        self._validate(search_request)

        if not self.api_key_configured:
            logger.error("RAPIDAPI_KEY is not configured")
            raise ConfigurationError("API configuration error")

        try:
            result = await self.aggregator.search(search_request)
        except SearchError:
            raise
        except Exception as e:
            logger.error(f"Error running search: {e}", extra={"error": str(e)}, exc_info=True)
            raise InternalError("Internal server error")

        logger.info(
            f"Search returned {len(result.jobs)} jobs",
            extra={
                "client_id": client_id,
                "facet_count": len(search_request.job_types),
                "failed_facets": result.failed_facets,
                "cache_hit": result.cache_hit,
                "inflight_hit": result.inflight_hit,
            }
        )

        headers = {
            "x-cache": "HIT" if result.cache_hit else "MISS",
            "x-inflight": "HIT" if result.inflight_hit else "MISS",
            "x-ratelimit-remaining": str(decision.remaining),
        }
        response = SearchResponse(
            jobs=result.jobs,
            total_results=len(result.jobs),
            failed_facets=result.failed_facets,
        )
        return response, headers

    @staticmethod
    def _validate(search_request: SearchRequest) -> None:
        if not search_request.keyword or not search_request.keyword.strip():
            raise ClientValidationError("Keyword is required")

        search_request.job_types = [
            facet.strip() for facet in (search_request.job_types or []) if facet and facet.strip()
        ]
        if not search_request.job_types:
            raise ClientValidationError("At least one job type must be selected")

        if search_request.location_mode not in VALID_LOCATION_MODES:
            raise ClientValidationError(
                f"locationMode must be one of: {', '.join(VALID_LOCATION_MODES)}"
            )
        if search_request.sort_by not in VALID_SORT_MODES:
            raise ClientValidationError(
                f"sortBy must be one of: {', '.join(VALID_SORT_MODES)}"
            )
        if search_request.max_results < 1:
            raise ClientValidationError("maxResults must be at least 1")
