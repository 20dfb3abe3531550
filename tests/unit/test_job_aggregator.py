"""Unit tests for facet fan-out and result post-processing."""

import asyncio

import pytest

from app.exceptions import UpstreamError, UpstreamRateLimited, UpstreamTimeout
from app.services.job_aggregator import (
    JobAggregator,
    dedupe_jobs,
    filter_by_location,
    is_remote_job,
    select_failure,
    sort_jobs,
)
from app.services.job_tagger import classify_tags, tag_job
from app.services.jsearch_client import FacetResult


class StubFetcher:
    """Returns a scripted FacetResult or raises a scripted error per facet."""

    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.calls = []

    async def fetch_facet(self, facet_label, filters):
        self.calls.append(facet_label)
        await asyncio.sleep(0)
        outcome = self.outcomes[facet_label]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.mark.unit
def test_partial_failure_returns_successful_facets(make_filters, make_job):
    fetcher = StubFetcher({
        "A": FacetResult(facet="A", jobs=[make_job(id="1")], cache_hit=True),
        "B": UpstreamTimeout("slow"),
    })
    filters = make_filters(job_types=["A", "B"])

    result = asyncio.run(JobAggregator(fetcher).search(filters))

    assert [job.id for job in result.jobs] == ["1"]
    assert result.failed_facets == ["B"]
    assert result.cache_hit is True
    assert result.inflight_hit is False


@pytest.mark.unit
def test_facet_with_zero_jobs_counts_as_success(make_filters):
    fetcher = StubFetcher({
        "A": FacetResult(facet="A", jobs=[]),
        "B": UpstreamError("boom"),
    })

    result = asyncio.run(JobAggregator(fetcher).search(make_filters(job_types=["A", "B"])))

    assert result.jobs == []
    assert result.failed_facets == ["B"]


@pytest.mark.unit
def test_total_failure_prefers_rate_limit(make_filters):
    limited = UpstreamRateLimited("limited", retry_after_seconds=5)
    fetcher = StubFetcher({
        "A": UpstreamError("boom", status_code=503),
        "B": limited,
    })

    with pytest.raises(UpstreamRateLimited) as exc_info:
        asyncio.run(JobAggregator(fetcher).search(make_filters(job_types=["A", "B"])))

    assert exc_info.value is limited


@pytest.mark.unit
def test_total_failure_surfaces_first_error(make_filters):
    first = UpstreamError("first", status_code=503)
    fetcher = StubFetcher({"A": first, "B": UpstreamTimeout("second")})

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(JobAggregator(fetcher).search(make_filters(job_types=["A", "B"])))

    assert exc_info.value is first
    assert exc_info.value.status_code == 503


@pytest.mark.unit
def test_unexpected_error_defaults_to_502():
    error = select_failure([KeyError("data")])

    assert isinstance(error, UpstreamError)
    assert error.status_code == 502


@pytest.mark.unit
def test_duplicate_facets_fetched_once(make_filters, make_job):
    fetcher = StubFetcher({"A": FacetResult(facet="A", jobs=[make_job()])})

    asyncio.run(JobAggregator(fetcher).search(make_filters(job_types=["A", "A"])))

    assert fetcher.calls == ["A"]


@pytest.mark.unit
def test_is_remote_job(make_job):
    assert is_remote_job(make_job(remote_status="remote"))
    assert is_remote_job(make_job(title="Engineer (Work From Home)"))
    assert is_remote_job(make_job(location="Hybrid - Boston"))
    assert is_remote_job(make_job(job_type="FULLTIME, Remote"))
    assert not is_remote_job(make_job())


@pytest.mark.unit
def test_location_filter_modes(make_job):
    remote = make_job(id="r", remote_status="remote")
    onsite = make_job(id="o")
    jobs = [remote, onsite]

    assert filter_by_location(jobs, "Remote Only") == [remote]
    assert filter_by_location(jobs, "On-site Only") == [onsite]
    assert filter_by_location(jobs, "Include Remote") == jobs


@pytest.mark.unit
def test_remote_only_filter_is_idempotent(make_job):
    jobs = [
        make_job(id="1", remote_status="remote"),
        make_job(id="2"),
        make_job(id="3", title="Virtual Assistant"),
        make_job(id="4", location="Denver, CO"),
    ]

    once = filter_by_location(jobs, "Remote Only")
    twice = filter_by_location(once, "Remote Only")

    assert twice == once
    assert [job.id for job in once] == ["1", "3"]


@pytest.mark.unit
def test_sort_by_date_posted_treats_missing_as_oldest(make_job):
    jobs = [
        make_job(id="old", posting_date="2025-06-01"),
        make_job(id="missing", posting_date="Not available"),
        make_job(id="new", posting_date="2026-02-01"),
    ]

    assert [job.id for job in sort_jobs(jobs, "Date Posted")] == ["new", "old", "missing"]


@pytest.mark.unit
def test_sort_by_company_case_insensitive(make_job):
    jobs = [make_job(id="1", company="zeta"), make_job(id="2", company="Alpha"), make_job(id="3", company="beta")]

    assert [job.company for job in sort_jobs(jobs, "Company")] == ["Alpha", "beta", "zeta"]


@pytest.mark.unit
def test_sort_by_relevance_keeps_upstream_order(make_job):
    jobs = [make_job(id="2"), make_job(id="1")]

    assert sort_jobs(jobs, "Relevance") == jobs


@pytest.mark.unit
def test_dedupe_case_insensitive_first_wins(make_job):
    first = make_job(id="ABC", title="Data Scientist", posting_date="2026-01-01")
    duplicate = make_job(id="abc", title="DATA SCIENTIST", apply_link="HTTPS://JOBS.EXAMPLE.COM/1", company="ACME")
    other = make_job(id="xyz")

    assert dedupe_jobs([first, duplicate, other]) == [first, other]


@pytest.mark.unit
def test_classify_tags_dictionary_order_and_cap():
    text = "machine learning and computer vision with nlp for generative ai"

    assert classify_tags(text) == ["Computer Vision", "Natural Language Processing", "Generative AI"]


@pytest.mark.unit
def test_tag_job_returns_copy(make_job):
    job = make_job(title="Computer Vision Engineer", description="Build deep learning models", company="Acme")
    tagged = tag_job(job)

    assert tagged.tags == "Computer Vision, Machine Learning"
    assert job.tags == "General Tech"


@pytest.mark.unit
def test_tag_job_default(make_job):
    job = make_job(title="Barista", description="Make coffee", company="Cafe")

    assert tag_job(job).tags == "General Tech"


@pytest.mark.unit
def test_limit_applied_after_filtering(make_filters, make_job):
    jobs = [make_job(id=str(i)) for i in range(5)] + [make_job(id=f"r{i}", remote_status="remote") for i in range(3)]
    filters = make_filters(location_mode="Remote Only", max_results=2)

    result = JobAggregator.post_process(jobs, filters)

    assert [job.id for job in result] == ["r0", "r1"]
