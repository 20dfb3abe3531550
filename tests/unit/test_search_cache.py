"""Unit tests for cache keys and the TTL cache store."""

import pytest

from app.services.search_cache import (
    CacheEntry,
    RateLimitMeta,
    SearchCache,
    build_cache_key,
    hash_cache_key,
)


def _entry(status_code=200, payload=None):
    return CacheEntry(status_code=status_code, payload=payload if payload is not None else {"data": []})


@pytest.mark.unit
def test_cache_key_ignores_case_and_whitespace(make_filters):
    a = make_filters(keyword="  Software   Engineer", location=" New York ", sort_by="Relevance")
    b = make_filters(keyword="software engineer", location="new york", sort_by="Relevance")

    key_a = build_cache_key("Summer 2026 Internship", a.keyword, a)
    key_b = build_cache_key("  summer 2026   internship", b.keyword, b)

    assert key_a == key_b


@pytest.mark.unit
@pytest.mark.parametrize(
    "override",
    [
        {"location": "Boston"},
        {"location_mode": "Remote Only"},
        {"sort_by": "Company"},
        {"max_results": 20},
        {"page": 2},
        {"num_pages": 3},
    ],
)
def test_cache_key_changes_with_filters(make_filters, override):
    base = make_filters()
    changed = make_filters(**override)

    assert build_cache_key("Facet", base.keyword, base) != build_cache_key("Facet", changed.keyword, changed)


@pytest.mark.unit
def test_cache_key_clamps_max_results(make_filters):
    big = make_filters(max_results=500)
    ceiling = make_filters(max_results=100)

    assert build_cache_key("Facet", big.keyword, big) == build_cache_key("Facet", ceiling.keyword, ceiling)


@pytest.mark.unit
def test_cache_key_explicit_page_overrides_filters(make_filters):
    filters = make_filters()
    assert build_cache_key("Facet", "q", filters, page=2) != build_cache_key("Facet", "q", filters)


@pytest.mark.unit
def test_hash_cache_key_is_stable_and_short():
    assert hash_cache_key("abc") == hash_cache_key("abc")
    assert len(hash_cache_key("abc")) == 12


@pytest.mark.unit
def test_get_returns_entry_within_ttl(fake_clock):
    cache = SearchCache(max_items=10, max_entry_bytes=10_000, clock=fake_clock)
    entry = _entry()
    cache.set("k", entry, ttl=60)

    fake_clock.advance(60)
    assert cache.get("k") is entry


@pytest.mark.unit
def test_get_evicts_expired_entry(fake_clock):
    cache = SearchCache(max_items=10, max_entry_bytes=10_000, clock=fake_clock)
    cache.set("k", _entry(), ttl=60)

    fake_clock.advance(60.5)
    assert cache.get("k") is None
    assert "k" not in cache
    assert len(cache) == 0


@pytest.mark.unit
def test_set_skips_non_positive_ttl(fake_clock):
    cache = SearchCache(max_items=10, max_entry_bytes=10_000, clock=fake_clock)

    assert cache.set("zero", _entry(), ttl=0) is False
    assert cache.set("negative", _entry(), ttl=-5) is False
    assert len(cache) == 0


@pytest.mark.unit
def test_set_skips_oversized_payload(fake_clock):
    cache = SearchCache(max_items=10, max_entry_bytes=100, clock=fake_clock)

    assert cache.set("big", _entry(payload={"data": ["x" * 500]}), ttl=60) is False
    assert cache.get("big") is None


@pytest.mark.unit
def test_fifo_eviction_ignores_reads(fake_clock):
    cache = SearchCache(max_items=2, max_entry_bytes=10_000, clock=fake_clock)
    cache.set("a", _entry(), ttl=60)
    cache.set("b", _entry(), ttl=60)

    # A read does not refresh position
    assert cache.get("a") is not None

    cache.set("c", _entry(), ttl=60)

    assert "a" not in cache
    assert "b" in cache
    assert "c" in cache
    assert len(cache) == 2


@pytest.mark.unit
def test_rate_limited_entry_expires_before_success_entry(fake_clock):
    cache = SearchCache(max_items=10, max_entry_bytes=10_000, clock=fake_clock)
    cache.set("ok", _entry(200), ttl=21600)
    cache.set(
        "limited",
        CacheEntry(status_code=429, payload={"message": "slow down"}, rate_limit=RateLimitMeta("RATE_LIMITED", 5)),
        ttl=30,
    )

    fake_clock.advance(31)

    assert cache.get("limited") is None
    assert cache.get("ok") is not None


@pytest.mark.unit
def test_delete_and_clear(fake_clock):
    cache = SearchCache(max_items=10, max_entry_bytes=10_000, clock=fake_clock)
    cache.set("a", _entry(), ttl=60)
    cache.set("b", _entry(), ttl=60)

    cache.delete("a")
    assert "a" not in cache

    cache.clear()
    assert len(cache) == 0
