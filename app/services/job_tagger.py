"""Keyword-based category tagging for jobs."""
from typing import Dict, List, Optional

from app.constants.search_options import DEFAULT_TAG, MAX_TAGS, TAG_CATEGORIES
from app.models.search_models import Job


def classify_tags(text: str, categories: Optional[Dict[str, List[str]]] = None) -> List[str]:
    """Return up to MAX_TAGS categories whose keywords occur in text, in dictionary order."""
    categories = categories or TAG_CATEGORIES
    haystack = text.lower()
    matches = []
    for category, keywords in categories.items():
        if any(keyword.lower() in haystack for keyword in keywords):
            matches.append(category)
            if len(matches) == MAX_TAGS:
                break
    return matches


def tag_job(job: Job) -> Job:
    """Copy of job with its tags set from title, description and company."""
    tags = classify_tags(f"{job.title} {job.description} {job.company}")
    return job.model_copy(update={"tags": ", ".join(tags) or DEFAULT_TAG})


def tag_jobs(jobs: List[Job]) -> List[Job]:
    return [tag_job(job) for job in jobs]
