"""Pydantic models for request/response validation."""
from app.models.search_models import SearchRequest, Job, SearchResponse

__all__ = [
    "SearchRequest",
    "Job",
    "SearchResponse",
]
