"""API route definitions."""
from fastapi import APIRouter, Depends, Request, Response

from app.controllers.search_controller import SearchController
from app.models.search_models import SearchRequest, SearchResponse
from app.services.inflight_registry import InflightRegistry
from app.services.job_aggregator import JobAggregator
from app.services.jsearch_client import JSearchClient
from app.services.rate_limiter import TokenBucketRateLimiter, get_client_identifier
from app.services.search_cache import SearchCache
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


# Dependency factories; components live on app.state for the process lifetime
def get_search_cache(request: Request) -> SearchCache:
    return request.app.state.search_cache


def get_inflight_registry(request: Request) -> InflightRegistry:
    return request.app.state.inflight_registry


def get_rate_limiter(request: Request) -> TokenBucketRateLimiter:
    return request.app.state.rate_limiter


def get_jsearch_client(request: Request) -> JSearchClient:
    return request.app.state.jsearch_client


async def get_search_controller(
    rate_limiter: TokenBucketRateLimiter = Depends(get_rate_limiter),
    jsearch_client: JSearchClient = Depends(get_jsearch_client),
) -> SearchController:
    """Create SearchController with dependencies."""
    return SearchController(
        rate_limiter,
        JobAggregator(jsearch_client),
        api_key_configured=bool(jsearch_client.api_key),
    )


@router.post("/search", response_model=SearchResponse, status_code=200)
async def search_jobs(
    search_request: SearchRequest,
    request: Request,
    response: Response,
    controller: SearchController = Depends(get_search_controller),
):
    """
    Search jobs across one or more job-type facets.

    Request body:
    - keyword: Search keyword (required)
    - location: Optional location text
    - jobTypes: Job-type facets, e.g. ["Summer 2026 Internship"] (required, non-empty)
    - locationMode: "Remote Only" | "On-site Only" | "Include Remote"
    - maxResults: Maximum jobs to return (clamped to 100)
    - sortBy: "Relevance" | "Date Posted" | "Company"

    Response headers:
    - x-cache: HIT when any facet was served from cache
    - x-inflight: HIT when any facet joined an identical in-progress call
    """
    client_id = get_client_identifier(
        request.headers,
        request.client.host if request.client else None,
    )
    body, headers = await controller.search(search_request, client_id)
    response.headers.update(headers)
    return body


@router.get("/health")
async def health_check(
    cache: SearchCache = Depends(get_search_cache),
    inflight: InflightRegistry = Depends(get_inflight_registry),
    jsearch_client: JSearchClient = Depends(get_jsearch_client),
):
    """Health check with cache and upstream configuration status."""
    api_key_ok = bool(jsearch_client.api_key)
    health_status = {
        "status": "healthy" if api_key_ok else "degraded",
        "service": "Job Search API",
        "checks": {
            "upstream_api_key": "ok" if api_key_ok else "missing",
            "cache_items": len(cache),
            "inflight": len(inflight),
        },
    }
    if not api_key_ok:
        logger.warning("Health check: RAPIDAPI_KEY is not configured")
    return health_status
