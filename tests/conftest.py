"""Shared fixtures for the job search tests."""
import pytest

from app.models.search_models import Job, SearchRequest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_filters():
    """Factory for SearchRequest objects with sensible defaults."""
    def _make(**overrides):
        data = {
            "keyword": "data scientist",
            "location": None,
            "job_types": ["Entry-Level / New-Grad Full-Time"],
            "location_mode": "Include Remote",
            "max_results": 10,
            "sort_by": "Relevance",
        }
        data.update(overrides)
        return SearchRequest(**data)
    return _make


@pytest.fixture
def make_job():
    """Factory for normalized Job records."""
    def _make(**overrides):
        data = {
            "id": "job-1",
            "title": "Data Scientist",
            "company": "Acme",
            "location": "Austin, TX, US",
            "description": "Analyze things",
            "apply_link": "https://jobs.example.com/1",
            "job_type": "FULLTIME",
            "posting_date": "2026-01-15",
            "query_flag": "Entry-Level / New-Grad Full-Time",
            "remote_status": "onsite",
        }
        data.update(overrides)
        return Job(**data)
    return _make


@pytest.fixture
def upstream_job():
    """Factory for raw JSearch job items."""
    def _make(**overrides):
        data = {
            "job_id": "abc123",
            "job_title": "  Data Scientist  ",
            "employer_name": " Acme Corp ",
            "job_city": "Austin",
            "job_state": "TX",
            "job_country": "US",
            "job_is_remote": False,
            "job_description": "<p>Work on <b>models</b></p>",
            "job_apply_link": "https://jobs.example.com/abc123",
            "job_employment_type": "FULLTIME",
            "job_posted_at_datetime_utc": "2026-01-15T08:30:00.000Z",
        }
        data.update(overrides)
        return data
    return _make
