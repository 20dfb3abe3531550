"""Pydantic models for job search operations."""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from app.constants.search_options import (
    DEFAULT_TAG,
    LOCATION_INCLUDE_REMOTE,
    SORT_RELEVANCE,
    REMOTE_STATUS_ONSITE,
)


class SearchRequest(BaseModel):
    """Request model for job search.

    keyword and jobTypes are checked by the controller so that a blank value
    produces a 400 rather than a schema error.
    """
    model_config = ConfigDict(populate_by_name=True)

    keyword: Optional[str] = Field("", description="Search keyword, e.g. 'data scientist'")
    location: Optional[str] = Field(None, description="Optional location text")
    job_types: Optional[List[str]] = Field(default_factory=list, alias="jobTypes", description="Job-type facets to search")
    location_mode: str = Field(LOCATION_INCLUDE_REMOTE, alias="locationMode", description="Remote Only | On-site Only | Include Remote")
    max_results: int = Field(50, alias="maxResults", description="Maximum number of jobs to return")
    sort_by: str = Field(SORT_RELEVANCE, alias="sortBy", description="Relevance | Date Posted | Company")
    page: int = Field(1, ge=1, description="Upstream results page")
    num_pages: int = Field(1, ge=1, le=10, alias="numPages", description="Upstream pages per query")
    date_posted: str = Field("all", alias="datePosted", description="Upstream date_posted filter")


class Job(BaseModel):
    """Normalized job record."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str
    company: str
    location: str
    description: str
    apply_link: str = Field("", alias="applyLink")
    job_type: str = Field("", alias="jobType")
    posting_date: str = Field("", alias="postingDate")
    query_flag: str = Field("", alias="queryFlag")
    tags: str = DEFAULT_TAG
    remote_status: str = Field(REMOTE_STATUS_ONSITE, alias="remoteStatus")


class SearchResponse(BaseModel):
    """Response model for job search."""
    model_config = ConfigDict(populate_by_name=True)

    jobs: List[Job]
    total_results: int = Field(..., alias="totalResults")
    failed_facets: List[str] = Field(default_factory=list, alias="failedFacets")
