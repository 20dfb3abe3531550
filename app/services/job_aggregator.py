"""Fan a search out across job-type facets and merge the results."""
import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import List, Protocol

from app.constants.search_options import (
    LOCATION_ONSITE_ONLY,
    LOCATION_REMOTE_ONLY,
    REMOTE_KEYWORDS,
    REMOTE_STATUS_REMOTE,
    SORT_COMPANY,
    SORT_DATE_POSTED,
)
from app.exceptions import SearchError, UpstreamError, UpstreamRateLimited
from app.models.search_models import Job, SearchRequest
from app.services.jsearch_client import FacetResult
from app.services.job_tagger import tag_jobs
from app.services.search_cache import clamp_max_results
from app.utils.logging import get_logger

logger = get_logger(__name__)

_EPOCH = "1970-01-01"


class FacetFetcher(Protocol):
    async def fetch_facet(self, facet_label: str, filters: SearchRequest) -> FacetResult:
        ...


@dataclass
class AggregatedSearch:
    """Merged outcome of one logical search."""
    jobs: List[Job] = field(default_factory=list)
    cache_hit: bool = False
    inflight_hit: bool = False
    failed_facets: List[str] = field(default_factory=list)


def is_remote_job(job: Job) -> bool:
    """Remote flag, or a remote keyword in title, location or job type."""
    if job.remote_status == REMOTE_STATUS_REMOTE:
        return True
    text = f"{job.title} {job.location} {job.job_type}".lower()
    return any(keyword in text for keyword in REMOTE_KEYWORDS)


def filter_by_location(jobs: List[Job], location_mode: str) -> List[Job]:
    if location_mode == LOCATION_REMOTE_ONLY:
        return [job for job in jobs if is_remote_job(job)]
    if location_mode == LOCATION_ONSITE_ONLY:
        return [job for job in jobs if not is_remote_job(job)]
    return list(jobs)


def _date_sort_key(job: Job) -> str:
    try:
        return date.fromisoformat(job.posting_date).isoformat()
    except ValueError:
        return _EPOCH


def sort_jobs(jobs: List[Job], sort_by: str) -> List[Job]:
    """Date Posted (newest first), Company (A-Z), otherwise upstream order."""
    if sort_by == SORT_DATE_POSTED:
        return sorted(jobs, key=_date_sort_key, reverse=True)
    if sort_by == SORT_COMPANY:
        return sorted(jobs, key=lambda job: job.company.casefold())
    return list(jobs)


def dedupe_jobs(jobs: List[Job]) -> List[Job]:
    """Drop jobs whose (id, apply link, title, company) was already seen, ignoring case."""
    seen = set()
    unique = []
    for job in jobs:
        key = (
            job.id.casefold(),
            job.apply_link.casefold(),
            job.title.casefold(),
            job.company.casefold(),
        )
        if key in seen:
            continue
        seen.add(key)
        unique.append(job)
    return unique


def select_failure(errors: List[BaseException]) -> SearchError:
    """Pick the error to surface when every facet failed.

    A rate-limit error wins since the caller can act on it; otherwise the
    first facet's error is used.
    """
    for error in errors:
        if isinstance(error, UpstreamRateLimited):
            return error
    first = errors[0]
    if isinstance(first, SearchError):
        return first
    return UpstreamError(f"Job search failed: {first}")


class JobAggregator:
    """Runs one fetch per facet concurrently and post-processes the merged jobs."""

    def __init__(self, fetcher: FacetFetcher):
        self.fetcher = fetcher

    async def search(self, filters: SearchRequest) -> AggregatedSearch:
        facets = list(dict.fromkeys(filters.job_types))
        outcomes = await asyncio.gather(
            *(self.fetcher.fetch_facet(facet, filters) for facet in facets),
            return_exceptions=True,
        )

        result = AggregatedSearch()
        merged: List[Job] = []
        errors: List[BaseException] = []

        for facet, outcome in zip(facets, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                errors.append(outcome)
                result.failed_facets.append(facet)
                logger.warning(
                    f"Facet failed: {facet}: {outcome}",
                    extra={"facet": facet, "error": str(outcome), "error_type": type(outcome).__name__}
                )
                continue
            merged.extend(outcome.jobs)
            result.cache_hit = result.cache_hit or outcome.cache_hit
            result.inflight_hit = result.inflight_hit or outcome.inflight_hit

        if facets and len(errors) == len(facets):
            failure = select_failure(errors)
            logger.error(
                f"All {len(facets)} facets failed",
                extra={"failed_facets": result.failed_facets, "code": failure.code, "status_code": failure.status_code}
            )
            raise failure

        result.jobs = self.post_process(merged, filters)
        logger.info(
            f"Aggregated {len(result.jobs)} jobs from {len(facets) - len(errors)}/{len(facets)} facets",
            extra={
                "merged_count": len(merged),
                "returned_count": len(result.jobs),
                "cache_hit": result.cache_hit,
                "inflight_hit": result.inflight_hit,
            }
        )
        return result

    @staticmethod
    def post_process(jobs: List[Job], filters: SearchRequest) -> List[Job]:
        """Filter, sort, tag, dedupe, then truncate."""
        processed = filter_by_location(jobs, filters.location_mode)
        processed = sort_jobs(processed, filters.sort_by)
        processed = tag_jobs(processed)
        processed = dedupe_jobs(processed)
        return processed[: clamp_max_results(filters.max_results)]
