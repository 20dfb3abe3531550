"""Helpers that keep structured log context from clobbering LogRecord attributes."""
import logging
from typing import Any, Dict, Optional

# Reserved LogRecord attributes that cannot be overwritten
RESERVED_LOGRECORD_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs', 'message',
    'pathname', 'process', 'processName', 'relativeCreated', 'thread',
    'threadName', 'exc_info', 'exc_text', 'stack_info', 'taskName'
}


def safe_extra(extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Sanitize extra dict to remove reserved LogRecord attributes.

    Reserved keys are prefixed with an underscore ("module" -> "_module"),
    except "filename" which becomes "file_name". Values of None are dropped.

    Args:
        extra: Dictionary of extra attributes for logging

    Returns:
        Sanitized dictionary safe to pass as ``extra=``
    """
    if not extra:
        return {}

    safe_dict = {}
    for key, value in extra.items():
        if value is None:
            continue
        if key in RESERVED_LOGRECORD_ATTRS:
            if key == 'filename':
                safe_dict['file_name'] = value
            else:
                safe_dict[f'_{key}'] = value
        else:
            safe_dict[key] = value

    return safe_dict


def safe_log(logger: logging.Logger, level: int, msg: str, *args, extra: Optional[Dict[str, Any]] = None, **kwargs):
    """
    Log with sanitized structured context.

    Usage:
        from app.utils.safe_logger import safe_log
        safe_log(logger, logging.INFO, "Facet served", extra={"facet": "Summer 2026 Internship"})
    """
    safe_extra_dict = safe_extra(extra)
    logger.log(level, msg, *args, extra=safe_extra_dict if safe_extra_dict else None, **kwargs)
