"""Map raw JSearch job items to normalized Job records."""
import hashlib
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

from app.constants.search_options import (
    DEFAULT_TAG,
    LOCATION_UNSPECIFIED,
    POSTING_DATE_UNAVAILABLE,
    REMOTE_STATUS_HYBRID,
    REMOTE_STATUS_ONSITE,
    REMOTE_STATUS_REMOTE,
)
from app.models.search_models import Job
from app.utils.cleaning import clean_description
from app.utils.logging import get_logger

logger = get_logger(__name__)

POSTING_DATE_FIELDS = ["job_posted_at_datetime_utc", "job_posted_at_timestamp", "job_posted_at"]

# Timestamps above this are treated as milliseconds
_MILLISECOND_THRESHOLD = 10_000_000_000

# Smaller numbers (years, counters) are not treated as timestamps
_MIN_TIMESTAMP = 100_000_000


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def format_location(item: Dict[str, Any]) -> str:
    """Join city, state, country and a remote marker with commas."""
    parts = [_text(item.get(field)) for field in ("job_city", "job_state", "job_country")]
    parts = [part for part in parts if part]
    if item.get("job_is_remote"):
        parts.append("Remote")
    return ", ".join(parts) or LOCATION_UNSPECIFIED


def format_job_type(item: Dict[str, Any]) -> str:
    parts = []
    employment_type = _text(item.get("job_employment_type"))
    if employment_type:
        parts.append(employment_type)
    if item.get("job_is_remote"):
        parts.append("Remote")
    return ", ".join(parts) or LOCATION_UNSPECIFIED


def parse_posting_date(value: Any) -> Optional[str]:
    """
    Normalize one candidate date value to YYYY-MM-DD.

    Accepts ISO-8601 strings, RFC 2822 dates and unix timestamps in seconds or
    milliseconds. Returns None when the value cannot be parsed.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)) or (isinstance(value, str) and value.strip().isdigit()):
        seconds = float(value)
        if not math.isfinite(seconds) or seconds < _MIN_TIMESTAMP:
            return None
        if seconds > _MILLISECOND_THRESHOLD:
            seconds /= 1000
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError):
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def format_posting_date(item: Dict[str, Any]) -> str:
    """Take the first populated date field that parses."""
    for field in POSTING_DATE_FIELDS:
        if item.get(field):
            parsed = parse_posting_date(item[field])
            if parsed:
                return parsed
    return POSTING_DATE_UNAVAILABLE


def classify_remote_status(item: Dict[str, Any], title: str, location: str, job_type: str) -> str:
    if item.get("job_is_remote"):
        return REMOTE_STATUS_REMOTE
    if "hybrid" in f"{title} {location} {job_type}".lower():
        return REMOTE_STATUS_HYBRID
    return REMOTE_STATUS_ONSITE


def _fallback_id(apply_link: str, title: str, company: str) -> str:
    digest = hashlib.sha1(f"{apply_link}|{title}|{company}".lower().encode("utf-8")).hexdigest()
    return f"job_{digest[:16]}"


def map_upstream_job(item: Dict[str, Any], query_flag: str) -> Job:
    """Build a Job from one upstream item."""
    title = _text(item.get("job_title"))
    company = _text(item.get("employer_name"))
    location = format_location(item)
    job_type = format_job_type(item)
    apply_link = _text(item.get("job_apply_link"))

    return Job(
        id=_text(item.get("job_id")) or _fallback_id(apply_link, title, company),
        title=title,
        company=company,
        location=location,
        description=clean_description(item.get("job_description")),
        apply_link=apply_link,
        job_type=job_type,
        posting_date=format_posting_date(item),
        query_flag=query_flag,
        tags=DEFAULT_TAG,
        remote_status=classify_remote_status(item, title, location, job_type),
    )


def map_upstream_jobs(items: List[Any], query_flag: str) -> List[Job]:
    """Map every item, skipping the ones that are not usable job objects."""
    jobs = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object upstream job item", extra={"facet": query_flag})
            continue
        try:
            jobs.append(map_upstream_job(item, query_flag))
        except (TypeError, ValueError) as e:
            logger.warning(
                f"Skipping malformed upstream job item: {e}",
                extra={"facet": query_flag, "error": str(e)}
            )
    return jobs
