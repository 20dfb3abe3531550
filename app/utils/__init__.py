"""Utility modules."""
from app.utils.cleaning import (
    collapse_whitespace,
    normalize_text,
    strip_html,
    truncate_text,
    clean_description,
)
from app.utils.logging import setup_logging, get_logger

__all__ = [
    "collapse_whitespace",
    "normalize_text",
    "strip_html",
    "truncate_text",
    "clean_description",
    "setup_logging",
    "get_logger",
]
