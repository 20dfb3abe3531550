"""Utility functions for text cleaning and normalization."""
import html
import re
from typing import Optional

_WHITESPACE_RE = re.compile(r'\s+')
_HTML_TAG_RE = re.compile(r'<[^>]+>')


def collapse_whitespace(text: Optional[str]) -> str:
    """Trim and collapse internal whitespace runs to a single space."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(' ', text).strip()


def normalize_text(text: Optional[str]) -> str:
    """
    Canonicalize free text for use in cache keys.

    Trims, lowercases and collapses whitespace runs to single spaces.

    Examples:
    - "  Software   Engineer" -> "software engineer"
    - "New\tYork " -> "new york"
    - None -> ""
    """
    return collapse_whitespace(text).lower()


def strip_html(text: Optional[str]) -> str:
    """Remove HTML tags and decode entities."""
    if not text:
        return ""
    return html.unescape(_HTML_TAG_RE.sub('', text))


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Cut text to max_length characters, appending suffix when something was removed."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def clean_description(description: Optional[str], max_length: int = 300) -> str:
    """
    Prepare an upstream job description for display.

    Rules:
    - Strip HTML tags
    - Collapse whitespace
    - Truncate to max_length characters followed by "..."
    - Empty input yields "No description available"
    """
    clean = collapse_whitespace(strip_html(description))
    if not clean:
        return "No description available"
    return truncate_text(clean, max_length)
